"""
Authorization engine.

authorize(user, permission, resource=None) -> bool

1. Admin bypass: a user holding the admin role is allowed everything,
   before any registry lookup (unknown permission names included).
2. Rule lookup: an unknown permission raises UnknownPermissionError.
   That is a configuration defect, not a denial.
3. Rule evaluation against the grant store and hierarchy.

The engine is stateless. Every call re-reads role, permission and grant
membership from the loaded user; nothing is cached between calls.
"""

from typing import Any, Iterable

import structlog

from changetracker.core.exceptions import UnknownPermissionError
from changetracker.core.permissions import PermissionName
from changetracker.models.user import User

from .grants import GrantStore
from .registry import PermissionRegistry

logger = structlog.get_logger()


class AuthorizationEngine:
    """
    Decides whether a user may exercise a permission.

    Configuration:
        admin_role: Role name that bypasses all checks (default: "admin")
    """

    def __init__(
        self,
        registry: PermissionRegistry,
        store: GrantStore | None = None,
        admin_role: str = "admin",
    ):
        self.registry = registry
        self.store = store or GrantStore()
        self.admin_role = admin_role

    def is_admin(self, user: User) -> bool:
        return self.store.has_role(user, self.admin_role)

    def authorize(
        self,
        user: User,
        permission: "str | PermissionName",
        resource: Any | None = None,
    ) -> bool:
        """
        Check one permission, optionally against a resource.

        Raises:
            UnknownPermissionError: If no rule is registered for the name
            IntegrityViolationError: If a location is missing its parent
        """
        if self.is_admin(user):
            return True

        try:
            rule = self.registry.get(permission)
        except UnknownPermissionError:
            logger.error(
                "authorization.unknown_permission",
                permission=str(getattr(permission, "value", permission)),
                user_id=str(user.id),
            )
            raise

        allowed = rule.evaluate(user, resource)
        if not allowed:
            logger.debug(
                "authorization.denied",
                permission=rule.permission.value,
                user_id=str(user.id),
                resource=repr(resource) if resource is not None else None,
            )
        return allowed

    def authorize_all(
        self,
        user: User,
        permissions: Iterable["str | PermissionName"],
        resource: Any | None = None,
    ) -> bool:
        """True if every permission is granted (AND)."""
        return all(self.authorize(user, perm, resource) for perm in permissions)

    def authorize_any(
        self,
        user: User,
        permissions: Iterable["str | PermissionName"],
        resource: Any | None = None,
    ) -> bool:
        """True if at least one permission is granted (OR)."""
        return any(self.authorize(user, perm, resource) for perm in permissions)

    def effective_permissions(self, user: User) -> set[str]:
        """Permission names the user can use as a feature gate."""
        if self.is_admin(user):
            return set(self.registry.names())
        return {
            name for name in self.registry.names()
            if self.store.has_permission(user, name)
        }
