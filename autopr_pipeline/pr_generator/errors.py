"""
Errors - Exception types raised by the pull request generator
"""

from typing import Optional, Sequence


class PRGeneratorError(Exception):
    """Base class for pull request generator failures"""


class CaptureUsageError(PRGeneratorError):
    """The capture was invoked in a state it cannot work from"""


class BinaryNotFoundError(PRGeneratorError):
    """A required command-line tool is not installed"""

    def __init__(self, binary: str):
        super().__init__(f"{binary} not found. Please ensure {binary} is installed and in PATH")
        self.binary = binary


class CommandError(PRGeneratorError):
    """
    A git or gh command exited with a failure status.

    Attributes:
        command: The argument list that was executed
        returncode: Exit status of the process
        stderr: Captured error output
    """

    def __init__(self, command: Sequence[str], returncode: int, stderr: Optional[str] = None):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"Command failed (exit code {returncode}): {' '.join(self.command)}"
        if self.stderr:
            message = f"{message}\n{self.stderr}"
        super().__init__(message)
