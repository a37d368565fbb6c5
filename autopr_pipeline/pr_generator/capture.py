"""
Capture Session - Turn the changes made by a block of work into a Pull Request

The workflow:
1. Verify the checkout is clean and switch to a fresh branch
2. Run the caller's work, which may abort the capture
3. Commit, push and open a Pull Request if any files changed
4. Apply labels and an approval review
5. Switch back to the original branch and delete the temporary one
"""

import logging
import random
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .errors import CaptureUsageError, CommandError
from .git_operations import GitOperations
from .github_cli import GitHubCLI, parse_pr_number
from .options import CaptureOptions
from .outcome import Aborted, Created, Disabled, Outcome, Unchanged

logger = logging.getLogger(__name__)


class CaptureAborted(BaseException):
    """
    Raised by abort_capture to abandon the running capture.

    Derives from BaseException so that ``except Exception`` blocks inside the
    work do not intercept it. Only the capture of the session that raised it
    consumes it.
    """

    def __init__(self, session: Optional["CaptureSession"] = None):
        super().__init__("Pull request capture aborted")
        self.session = session


# Sessions currently running work, innermost last
_running_sessions: List["CaptureSession"] = []


def abort_capture():
    """Abort the innermost capture whose work is currently running."""
    if not _running_sessions:
        raise CaptureUsageError("abort_capture called outside of a capture")
    _running_sessions[-1].abort_capture()


class CaptureSession:
    """
    Runs work on an isolated branch and proposes the result as a Pull Request.

    A session handles one capture at a time; calling capture from inside the
    work of another capture on the same session is an error.
    """

    def __init__(self, git_ops: GitOperations, github: GitHubCLI):
        """
        Initialize the session.

        Args:
            git_ops: Git collaborator
            github: GitHub collaborator
        """
        github.verify_binary()
        git_ops.verify_binary()

        self.git_ops = git_ops
        self.github = github
        self.capturing = False

    @classmethod
    def from_config(cls, config: Dict, repo_path: Optional[Path] = None) -> "CaptureSession":
        """Build a session and its collaborators from the pipeline configuration."""
        git_ops = GitOperations(config, repo_path)
        return cls(git_ops, GitHubCLI(config, git_ops))

    def capture(self, work: Callable[[], object], options: Optional[CaptureOptions] = None, **overrides) -> Outcome:
        """
        Run work and open a Pull Request for whatever it changed.

        Calling capture from inside the work of a running capture raises
        CaptureUsageError, even when the nested call has enabled=False.

        Args:
            work: Zero-argument callable that modifies the working tree
            options: Capture options (defaults if omitted)
            **overrides: Individual option values taking precedence over options

        Returns:
            Disabled, Aborted, Unchanged or Created(pr_number)
        """
        options = (options or CaptureOptions()).with_overrides(**overrides)
        if self.capturing:
            raise CaptureUsageError("Attempted to re-enter CaptureSession.capture")

        if not options.enabled:
            logger.info("Pull request generation disabled")
            if self._call_abortable(work):
                logger.info("Work aborted while pull request generation was disabled")
            return Disabled()

        branch_name = options.branch_name or generate_default_branch_name()
        saved_branch_name = self._start_capture(branch_name)

        try:
            self.capturing = True
            try:
                aborted = self._call_abortable(work)
            finally:
                self.capturing = False

            if aborted:
                outcome = Aborted()
            elif self.git_ops.is_clean():
                outcome = Unchanged()
            else:
                outcome = Created(self._create_pr(branch_name, options))
                self._update_pr(outcome.pr_number, options)

            return self._finish_capture(outcome, branch_name, saved_branch_name)
        except BaseException:
            self._restore_after_failure(branch_name, saved_branch_name)
            raise

    def abort_capture(self):
        """Abandon the capture; call from anywhere inside the work."""
        raise CaptureAborted(self)

    def _call_abortable(self, work: Callable[[], object]) -> bool:
        _running_sessions.append(self)
        try:
            work()
        except CaptureAborted as e:
            if e.session is not self:
                raise
            return True
        finally:
            _running_sessions.pop()
        return False

    def _start_capture(self, branch_name: str) -> str:
        logger.info("Capturing changes for pull request")
        if not self.git_ops.is_clean():
            raise CaptureUsageError("Git checkout is not clean")

        saved_branch_name = self.git_ops.current_branch()
        self.git_ops.execute("switch", "-c", branch_name)
        logger.info(f"Created and checked out branch: {branch_name}")
        return saved_branch_name

    def _create_pr(self, branch_name: str, options: CaptureOptions) -> int:
        commit_message = options.commit_message or generate_default_commit_message()
        pr_body = options.pr_body or generate_default_pr_body()

        self.git_ops.execute("add", ".")
        self.git_ops.execute("commit", "-m", commit_message)
        with self.github.without_standard_git_auth(options.remote):
            self.git_ops.execute("push", "-u", options.remote, branch_name)
        logger.info(f"Pushed {branch_name} to {options.remote}")

        repo_name = self.github.repo_full_name()
        output = self.github.create_pr(repo_name, commit_message, pr_body)
        logger.info(output.strip())
        pr_number = parse_pr_number(output)

        # New PRs take a while to show up in GitHub's read APIs
        self.github.wait_for_pr(repo_name, pr_number)
        time.sleep(options.extra_propagation_wait)
        return pr_number

    def _update_pr(self, pr_number: int, options: CaptureOptions):
        labels = options.labels
        approval_text = options.approval_text
        if not labels and not approval_text:
            return

        repo_name = self.github.repo_full_name()
        approval_token = options.approval_token or self.github.current_token()
        with self.github.with_token(approval_token):
            if labels:
                self.github.add_labels(repo_name, pr_number, labels)
            if approval_text:
                self.github.approve_pr(repo_name, pr_number, approval_text)

    def _finish_capture(self, outcome: Outcome, branch_name: str, saved_branch_name: str) -> Outcome:
        self.git_ops.execute("switch", saved_branch_name)
        self.git_ops.execute("branch", "-D", branch_name)
        if not isinstance(outcome, Unchanged):
            self.git_ops.execute("clean", "-df")
        logger.info(outcome.describe())
        return outcome

    def _restore_after_failure(self, branch_name: str, saved_branch_name: str):
        logger.warning(f"Capture failed; restoring branch {saved_branch_name}")
        self._try_restore_step("switch", "--discard-changes", saved_branch_name)
        # The finish step may already have deleted it
        if self.git_ops.branch_exists(branch_name):
            self._try_restore_step("branch", "-D", branch_name)
        self._try_restore_step("clean", "-df")

    def _try_restore_step(self, *args: str):
        try:
            self.git_ops.execute(*args)
        except CommandError as e:
            logger.warning(f"Could not restore repository state: {e}")


def generate_default_branch_name() -> str:
    now = datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')
    ran = random.randint(0, 9999)
    return f"autopr/{now}-{ran}"


def generate_default_commit_message() -> str:
    return "[CHANGE ME] Automated pull request"


def generate_default_pr_body() -> str:
    now = datetime.now().astimezone().strftime('%Y-%m-%d %H:%M:%S %z')
    return f"Auto-created at {now} using the toys pull request generator."
