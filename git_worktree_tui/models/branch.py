"""Branch reference model"""
from dataclasses import dataclass


@dataclass(frozen=True)
class BranchRef:
    """A branch offered in the create and merge dialogs."""
    name: str
    is_remote: bool = False
    is_current: bool = False
