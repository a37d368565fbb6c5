"""
GitHub CLI - Drive Pull Requests through the gh command-line tool

This module handles:
1. Resolving the repository and the authenticated token
2. Creating Pull Requests and waiting for them to propagate
3. Adding labels and approval reviews
4. Scoped credential changes for pushes and API calls
"""

import logging
import os
import shutil
import subprocess
import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence

from .errors import BinaryNotFoundError, CommandError, PRGeneratorError
from .git_operations import GitOperations

logger = logging.getLogger(__name__)


class GitHubCLI:
    """
    GitHub collaborator for the capture workflow.

    Every call shells out to ``gh`` in the repository directory. The actual
    API traffic is handled by gh itself.
    """

    def __init__(self, config: Dict, git_ops: GitOperations):
        """
        Initialize the gh wrapper.

        Args:
            config: Pipeline configuration
            git_ops: Git collaborator for the same repository
        """
        github_config = config.get('github', {}) or {}
        self.retry_tries = github_config.get('retry_tries', 5)
        self.retry_delay = github_config.get('retry_delay', 2)  # seconds
        if self.retry_tries < 1:
            raise PRGeneratorError(f"github.retry_tries must be at least 1, got {self.retry_tries}")

        self.git_ops = git_ops
        self._token: Optional[str] = None
        self._repo_full_name: Optional[str] = None

    @staticmethod
    def verify_binary():
        """Fail unless the gh executable can be found on PATH."""
        if shutil.which("gh") is None:
            raise BinaryNotFoundError("gh")

    def _env(self) -> Dict[str, str]:
        env = dict(os.environ)
        if self._token is not None:
            env['GITHUB_TOKEN'] = self._token
            env['GH_TOKEN'] = self._token
        return env

    def run(self, args: Sequence[str], fail_on_error: bool = True) -> str:
        """
        Run a gh command in the repository.

        Args:
            args: Arguments following ``gh``
            fail_on_error: Raise CommandError when the command fails

        Returns:
            Standard output of the command
        """
        cmd = ["gh", *args]
        logger.debug(f"Running: {' '.join(cmd)}")

        result = subprocess.run(
            cmd,
            cwd=str(self.git_ops.repo_path),
            env=self._env(),
            capture_output=True,
            text=True
        )

        if result.returncode != 0:
            if fail_on_error:
                raise CommandError(cmd, result.returncode, result.stderr or result.stdout)
            logger.warning(f"Ignoring failure of {' '.join(cmd)}: {result.stderr.strip()}")

        return result.stdout

    def retry(self, args: Sequence[str], tries: Optional[int] = None, delay: Optional[float] = None) -> str:
        """
        Run a gh command until it succeeds.

        Args:
            args: Arguments following ``gh``
            tries: Maximum number of attempts
            delay: Base delay in seconds, multiplied by the attempt number

        Returns:
            Standard output of the first successful attempt
        """
        tries = self.retry_tries if tries is None else tries
        delay = self.retry_delay if delay is None else delay
        if tries < 1:
            raise PRGeneratorError(f"retry needs at least one attempt, got tries={tries}")
        last_error = None

        for attempt in range(tries):
            try:
                return self.run(args)
            except CommandError as e:
                last_error = e
                logger.warning(f"Attempt {attempt + 1} of gh {' '.join(args)} failed")

                if attempt < tries - 1:
                    time.sleep(delay * (attempt + 1))

        logger.error(f"All {tries} attempts failed. Last error: {last_error}")
        raise last_error

    def repo_full_name(self) -> str:
        """The ``owner/name`` of the repository, as gh resolves it."""
        if self._repo_full_name is None:
            output = self.run(["repo", "view", "--json", "nameWithOwner", "-q", ".nameWithOwner"])
            self._repo_full_name = output.strip()
        return self._repo_full_name

    def current_token(self) -> str:
        """The token gh is currently authenticated with."""
        if self._token is not None:
            return self._token
        return self.run(["auth", "token"]).strip()

    @contextmanager
    def with_token(self, token: str) -> Iterator[None]:
        """Authenticate every gh call inside the block with the given token."""
        saved_token = self._token
        self._token = token
        try:
            yield
        finally:
            self._token = saved_token

    @contextmanager
    def without_standard_git_auth(self, remote: str = 'origin') -> Iterator[None]:
        """
        Disable gh's git credential helper while pushing to a remote that
        carries its own credentials. Otherwise the helper's token would be
        offered instead of the one in the URL.
        """
        if not self.git_ops.remote_has_credentials(remote):
            yield
            return

        saved_helpers = self.git_ops.get_credential_helpers()
        if not saved_helpers:
            yield
            return

        logger.info("Temporarily disabling the gh credential helper")
        self.git_ops.set_credential_helpers([])
        try:
            yield
        finally:
            self.git_ops.set_credential_helpers(saved_helpers)

    def create_pr(self, repo_name: str, title: str, body: str) -> str:
        """
        Open a pull request for the current branch.

        Returns:
            Raw output of ``gh pr create``; its last line is the PR URL
        """
        return self.run(["pr", "create", "--repo", repo_name, "--title", title, "--body", body])

    def wait_for_pr(self, repo_name: str, pr_number: int) -> str:
        """Poll until a new pull request is visible to read endpoints."""
        return self.retry(["pr", "view", str(pr_number), "--repo", repo_name, "--json=number"])

    def add_labels(self, repo_name: str, pr_number: int, labels: List[str]):
        self.run(["issue", "edit", str(pr_number), "--repo", repo_name, "--add-label", ",".join(labels)])
        logger.info(f"Added labels: {labels}")

    def approve_pr(self, repo_name: str, pr_number: int, body: str):
        self.run(["pr", "review", str(pr_number), "--repo", repo_name, "--approve", "--body", body])
        logger.info(f"Approved pull request {pr_number}")


def parse_pr_number(output: str) -> int:
    """
    Extract the pull request number from ``gh pr create`` output.

    The last non-empty line is the PR URL, e.g.
    ``https://github.com/owner/repo/pull/123``.
    """
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        raise ValueError("gh pr create produced no output")

    last_segment = lines[-1].rstrip("/").split("/")[-1]
    try:
        return int(last_segment)
    except ValueError:
        raise ValueError(f"Could not find a pull request number in: {lines[-1]}") from None
