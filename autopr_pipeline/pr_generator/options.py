"""
Capture Options - Per-call configuration for a pull request capture
"""

from dataclasses import dataclass, field, fields, replace
from typing import Dict, List, Optional, Union

DEFAULT_AUTO_APPROVE = "Auto-approved by the Toys pull request generator"


@dataclass
class CaptureOptions:
    """
    Options controlling one call to CaptureSession.capture.

    Any field left as None is filled in with a generated default when the
    capture runs (branch name, commit message, PR body, approval token).
    """
    enabled: bool = True
    remote: str = "origin"
    branch_name: Optional[str] = None
    commit_message: Optional[str] = None
    pr_body: Optional[str] = None
    labels: List[str] = field(default_factory=list)
    auto_approve: Union[bool, str] = False
    approval_token: Optional[str] = None
    extra_propagation_wait: float = 5

    def __post_init__(self):
        if self.labels is None:
            self.labels = []
        elif isinstance(self.labels, str):
            self.labels = [self.labels]
        else:
            self.labels = list(self.labels)

    @classmethod
    def from_config(cls, config: Dict, **overrides) -> "CaptureOptions":
        """
        Build options from the pipeline configuration.

        Reads the ``pr`` section for capture settings and ``git.remote`` for
        the push target. Keyword overrides that are not None take precedence.

        Args:
            config: Pipeline configuration
            **overrides: Explicit option values

        Returns:
            CaptureOptions instance
        """
        pr_config = config.get('pr', {}) or {}
        git_config = config.get('git', {}) or {}

        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown capture options: {', '.join(sorted(unknown))}")

        values = {name: pr_config[name] for name in known if name in pr_config}
        if 'remote' not in values and git_config.get('remote'):
            values['remote'] = git_config['remote']
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_overrides(self, **overrides) -> "CaptureOptions":
        """Return a copy with the given non-None values replaced."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @property
    def approval_text(self) -> Optional[str]:
        """Body of the approval review, or None when auto-approval is off."""
        if self.auto_approve is True:
            return DEFAULT_AUTO_APPROVE
        return self.auto_approve or None

