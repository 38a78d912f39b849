"""
Identity & grant store.

Answers membership questions about an already-loaded user:

- has_role: does the user hold a role with this exact name?
- has_permission: does any of the user's roles carry this permission?
- has_direct_grant: is this location in the user's State/LGA/Ward grants?

All checks are synchronous reads over relationships that load_user()
fetches eagerly, so repeated checks within one request never touch the
database.
"""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from changetracker.core.exceptions import UnknownUserError
from changetracker.core.permissions import LocationKind, PermissionName
from changetracker.models.user import User

logger = structlog.get_logger()


# Grant collection on User for each location level
GRANT_ATTRIBUTES: dict[LocationKind, str] = {
    LocationKind.STATE: "state_grants",
    LocationKind.LGA: "lga_grants",
    LocationKind.WARD: "ward_grants",
}


def _permission_value(permission: "str | PermissionName") -> str:
    if isinstance(permission, PermissionName):
        return permission.value
    return permission


class GrantStore:
    """Read-only role, permission and location-grant lookups."""

    async def load_user(self, db: AsyncSession, user_id: UUID) -> User:
        """
        Load a user with roles, role permissions and grants.

        Raises:
            UnknownUserError: If no user has this id
        """
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise UnknownUserError(user_id)
        return user

    def _require(self, user: Any) -> User:
        if user is None:
            raise UnknownUserError(None)
        return user

    def has_role(self, user: User, role_name: str) -> bool:
        """True iff any of the user's roles has exactly this name."""
        user = self._require(user)
        return any(role.name == role_name for role in user.roles)

    def has_permission(self, user: User, permission: "str | PermissionName") -> bool:
        """True iff any of the user's roles holds the named permission."""
        user = self._require(user)
        name = _permission_value(permission)
        return any(
            perm.name == name
            for role in user.roles
            for perm in role.permissions
        )

    def permission_names(self, user: User) -> set[str]:
        """All permission names the user holds through roles."""
        user = self._require(user)
        return {perm.name for role in user.roles for perm in role.permissions}

    def role_names(self, user: User) -> set[str]:
        user = self._require(user)
        return {role.name for role in user.roles}

    def grants(self, user: User, kind: LocationKind) -> list[Any]:
        """Locations directly granted to the user at one level."""
        user = self._require(user)
        return list(getattr(user, GRANT_ATTRIBUTES[kind]))

    def grant_ids(self, user: User, kind: LocationKind) -> set[int]:
        return {location.id for location in self.grants(user, kind)}

    def has_direct_grant(self, user: User, kind: LocationKind, location_id: Any) -> bool:
        """True iff the location id is in the user's grant set for that level."""
        if location_id is None:
            return False
        return any(location.id == location_id for location in self.grants(user, kind))

    def has_state_or_lga_grant(
        self,
        user: User,
        state_id: Any,
        lga_id: Any,
    ) -> bool:
        """
        Location access for state_id/lga_id-bearing rows (records, outlooks).

        A State grant on the row's state covers every LGA in it, so checking
        state_id against State grants and lga_id against LGA grants is the
        full inherited check.
        """
        return (
            self.has_direct_grant(user, LocationKind.STATE, state_id)
            or self.has_direct_grant(user, LocationKind.LGA, lga_id)
        )
