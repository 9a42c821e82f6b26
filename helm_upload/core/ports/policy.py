"""
Content permission port.

The policy engine is opaque to the pipeline: it answers a single yes/no
question for a resource scope and an action.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

EDIT_ACTION = "edit"


@dataclass(frozen=True)
class ContentScope:
    """Protected resource: a path inside a repository of a given format."""

    repository: str
    format: str
    path: str


class PermissionCheckerPort(Protocol):
    def permitted(self, scope: ContentScope, action: str) -> bool:
        """Return True if the action is allowed on the scope."""
        ...
