"""
Authorization service - per-request facade over the engine.

Usage:
    # In route handlers:
    async def handler(auth: Authorize):
        auth.require("edit_records", record)
        visible = auth.filter_authorized("view_records", records)
"""

from typing import Any, Sequence
from fastapi import HTTPException, status

from changetracker.core.permissions import PermissionName
from changetracker.models.user import User

from .engine import AuthorizationEngine


class AuthorizationService:
    """
    Binds the engine to the acting user.

    Usage:
        auth = AuthorizationService(actor=current_user, engine=engine)
        if auth.can("manage_lga_records", lga):
            ...
    """

    def __init__(self, actor: User, engine: AuthorizationEngine):
        self.actor = actor
        self.engine = engine

    def can(
        self,
        permission: "str | PermissionName",
        resource: Any | None = None,
    ) -> bool:
        """
        Check if the actor holds a permission (returns bool, no exception).

        Unknown permission names still raise UnknownPermissionError.
        """
        return self.engine.authorize(self.actor, permission, resource)

    def require(
        self,
        permission: "str | PermissionName",
        resource: Any | None = None,
    ) -> None:
        """
        Require a permission or raise HTTPException(403).

        The response body never says which check failed.
        """
        if not self.can(permission, resource):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied",
            )

    def filter_authorized(
        self,
        permission: "str | PermissionName",
        resources: Sequence[Any],
    ) -> list[Any]:
        """Keep only the resources the actor may use the permission on."""
        return [
            resource for resource in resources
            if self.engine.authorize(self.actor, permission, resource)
        ]

    @property
    def is_admin(self) -> bool:
        return self.engine.is_admin(self.actor)

    def get_permissions(self) -> set[str]:
        """Permission names usable by the actor as feature gates."""
        return self.engine.effective_permissions(self.actor)
