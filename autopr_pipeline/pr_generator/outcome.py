"""
Outcome - The result of a single capture
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Disabled:
    """Pull request generation was turned off; the work still ran"""

    def describe(self) -> str:
        return "Pull request generation disabled"


@dataclass(frozen=True)
class Aborted:
    """The work requested that the capture be abandoned"""

    def describe(self) -> str:
        return "Pull request aborted."


@dataclass(frozen=True)
class Unchanged:
    """The work ran to completion without touching the working tree"""

    def describe(self) -> str:
        return "No files changed; no pull request created"


@dataclass(frozen=True)
class Created:
    """A pull request was opened for the captured changes"""
    pr_number: int

    def describe(self) -> str:
        return f"Finished capture and opened pull request {self.pr_number}"


Outcome = Union[Disabled, Aborted, Unchanged, Created]
