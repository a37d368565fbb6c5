"""
Automated Pull Request Pipeline - Main Entry Point

Runs a command that modifies the repository and, if it changed anything,
opens a Pull Request with the result:
1. Switches to a temporary branch
2. Runs the command
3. Commits, pushes and opens a Pull Request
4. Returns to the original branch

Usage:
    autopr --config config/config.yaml -- make regenerate
    autopr --config config/config.yaml --dry-run -- make regenerate
    autopr --label automerge --auto-approve -- ./scripts/update_deps.sh
"""

import argparse
import logging
import subprocess
import sys
import time
import yaml
from pathlib import Path
from typing import Dict, List, Optional

from autopr_pipeline.pr_generator import (
    CaptureOptions,
    CaptureSession,
    CommandError,
    Created,
    Outcome,
)

logger = logging.getLogger(__name__)


def setup_logging(log_file: Optional[str] = None, verbose: bool = False):
    """Configure root logging for a pipeline run."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def load_config(config_path: Optional[str]) -> Dict:
    """
    Load the YAML configuration.

    A missing default config file yields an empty configuration; an explicit
    path that does not exist is an error.
    """
    if config_path is None:
        default_path = Path('config/config.yaml')
        if not default_path.exists():
            return {}
        config_path = str(default_path)

    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


class AutoPRPipeline:
    """
    Orchestrates a single command run under a pull request capture.
    """

    def __init__(
        self,
        config: Dict,
        command: List[str],
        dry_run: bool = False,
        abort_on_failure: bool = False,
        **overrides
    ):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration
            command: Command whose changes should be captured
            dry_run: If True, run the command without creating a PR
            abort_on_failure: Abandon the capture if the command fails
            **overrides: Capture option values from the command line
        """
        self.config = config
        self.command = command
        self.abort_on_failure = abort_on_failure
        self.options = CaptureOptions.from_config(config, **overrides)
        if dry_run:
            self.options.enabled = False

        self.session: Optional[CaptureSession] = None
        self.start_time = None

    def run(self) -> bool:
        """
        Run the command under a capture.

        Returns:
            True for every capture outcome, False on failure
        """
        self.start_time = time.time()
        logger.info("=" * 60)
        logger.info(f"Capturing changes made by: {' '.join(self.command)}")
        logger.info("=" * 60)

        try:
            self.session = CaptureSession.from_config(self.config)
            outcome = self.session.capture(self._run_command, self.options)
            self._log_summary(outcome)
            return True

        except Exception as e:
            logger.exception(f"Pipeline failed with error: {e}")
            return False

        finally:
            execution_time = time.time() - self.start_time
            logger.info(f"Total execution time: {execution_time:.2f} seconds")

    def _run_command(self):
        """Work callable handed to the capture."""
        cwd = self.session.git_ops.repo_path
        logger.info(f"Running: {' '.join(self.command)}")
        result = subprocess.run(self.command, cwd=str(cwd))

        if result.returncode != 0:
            if self.abort_on_failure:
                logger.warning(f"Command exited with {result.returncode}; aborting pull request")
                self.session.abort_capture()
            raise CommandError(self.command, result.returncode)

    def _log_summary(self, outcome: Outcome):
        if isinstance(outcome, Created):
            repo_name = self.session.github.repo_full_name()
            logger.info(f"✅ Pull request: https://github.com/{repo_name}/pull/{outcome.pr_number}")
        else:
            logger.info(f"Outcome: {outcome.describe()}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Capture changes made by a command as a GitHub Pull Request'
    )
    parser.add_argument(
        '--config', '-c',
        type=str,
        default=None,
        help='Path to configuration file (default: config/config.yaml if present)'
    )
    parser.add_argument(
        '--dry-run', '-d',
        action='store_true',
        help='Run the command without creating a Pull Request'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument('--remote', help='Remote to push the branch to')
    parser.add_argument('--branch', dest='branch_name', help='Name of the temporary branch')
    parser.add_argument('--message', '-m', dest='commit_message', help='Commit message and PR title')
    parser.add_argument('--body', dest='pr_body', help='Pull Request description')
    parser.add_argument(
        '--label', '-l',
        dest='labels',
        action='append',
        help='Label to add to the Pull Request (repeatable)'
    )
    parser.add_argument(
        '--auto-approve',
        nargs='?',
        const=True,
        default=None,
        help='Approve the Pull Request, optionally with a custom review body'
    )
    parser.add_argument(
        '--propagation-wait',
        dest='extra_propagation_wait',
        type=float,
        help='Seconds to wait after the Pull Request becomes visible'
    )
    parser.add_argument(
        '--abort-on-failure',
        action='store_true',
        help='Abandon the Pull Request instead of failing when the command fails'
    )
    parser.add_argument(
        'command',
        nargs=argparse.REMAINDER,
        help='Command to run (prefix with -- to pass options through)'
    )
    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    command = args.command
    if command and command[0] == '--':
        command = command[1:]
    if not command:
        parser.error('a command to run is required')

    config = load_config(args.config)
    setup_logging((config.get('logging') or {}).get('file'), verbose=args.verbose)

    pipeline = AutoPRPipeline(
        config,
        command,
        dry_run=args.dry_run,
        abort_on_failure=args.abort_on_failure,
        remote=args.remote,
        branch_name=args.branch_name,
        commit_message=args.commit_message,
        pr_body=args.pr_body,
        labels=args.labels,
        auto_approve=args.auto_approve,
        extra_propagation_wait=args.extra_propagation_wait,
    )
    success = pipeline.run()

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
