from collections.abc import Sequence
from fnmatch import fnmatchcase

from helm_upload.core.ports.policy import ContentScope
from helm_upload.rules.models import AccessGrant, AccessRules


class RulesPermissionChecker:
    """
    PermissionCheckerPort driven by the grants in the rules file.

    A grant allows an action when its repository, format and one of its path
    patterns match the scope. Patterns are shell-style globs; "*" in actions
    allows everything.
    """

    def __init__(self, rules: AccessRules):
        self.grants: Sequence[AccessGrant] = list(rules.grants)

    def permitted(self, scope: ContentScope, action: str) -> bool:
        for grant in self.grants:
            if not fnmatchcase(scope.repository, grant.repository):
                continue
            if grant.format not in ("*", scope.format):
                continue
            if "*" not in grant.actions and action not in grant.actions:
                continue
            if any(fnmatchcase(scope.path, pattern) for pattern in grant.paths):
                return True
        return False
