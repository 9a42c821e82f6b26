"""
Access component - authorize a write against the resolved path.

The protected resource is the derived storage path, never the declared
filename.
"""

from __future__ import annotations

import logging

from helm_upload.core.errors import PermissionDenied
from helm_upload.core.ports.policy import EDIT_ACTION, ContentScope, PermissionCheckerPort

logger = logging.getLogger(__name__)


class AccessGate:
    def __init__(self, permissions: PermissionCheckerPort, action: str = EDIT_ACTION) -> None:
        self._permissions = permissions
        self._action = action

    def authorize(self, repository: str, format: str, path: str) -> ContentScope:
        """
        Raises:
            PermissionDenied: If the policy engine refuses the action.
        """
        scope = ContentScope(repository=repository, format=format, path=path)
        if not self._permissions.permitted(scope, self._action):
            logger.warning("Denied %s on %s/%s", self._action, repository, path)
            raise PermissionDenied(path)
        return scope
