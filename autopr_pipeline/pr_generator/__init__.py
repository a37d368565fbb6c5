"""
PR Generator Module - Capture working tree changes as GitHub Pull Requests
"""

from .capture import CaptureAborted, CaptureSession, abort_capture
from .errors import BinaryNotFoundError, CaptureUsageError, CommandError, PRGeneratorError
from .git_operations import GitOperations
from .github_cli import GitHubCLI
from .options import CaptureOptions
from .outcome import Aborted, Created, Disabled, Outcome, Unchanged

__all__ = [
    'CaptureSession', 'CaptureAborted', 'abort_capture', 'CaptureOptions',
    'GitOperations', 'GitHubCLI',
    'Outcome', 'Disabled', 'Aborted', 'Unchanged', 'Created',
    'PRGeneratorError', 'CaptureUsageError', 'CommandError', 'BinaryNotFoundError',
]
