"""
RBAC Service - Manage roles, permissions, assignments and location grants.

Usage:
    service = RBACService(db)

    # Create a role with permissions
    role = await service.create_role(
        name="lga_editor",
        permissions=["view_records", "edit_records", "manage_lga_records"],
    )

    # Assign role and grant an LGA
    await service.assign_role(user, role)
    await service.grant_location(user, LocationKind.LGA, 9)
"""

from typing import Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from changetracker.core.auth.grants import GRANT_ATTRIBUTES
from changetracker.core.exceptions import (
    DuplicateRoleError,
    UnknownLocationError,
    UnknownRoleError,
)
from changetracker.core.permissions import (
    LocationKind,
    PermissionName,
    PERMISSION_DESCRIPTIONS,
)
from changetracker.models.location import LOCATION_MODELS
from changetracker.models.role import Role, Permission
from changetracker.models.user import User

logger = structlog.get_logger()


class RBACService:
    """
    Service for managing roles, permissions and per-user grants.

    Changes are flushed, not committed; the request session commits.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============================================================
    # ROLE MANAGEMENT
    # ============================================================

    async def create_role(
        self,
        name: str,
        permissions: Iterable["str | PermissionName"] | None = None,
        description: str | None = None,
    ) -> Role:
        """
        Create a new role with optional permissions.

        Raises:
            DuplicateRoleError: If a role with this name exists
            UnknownPermissionError: If a permission name is not in the vocabulary
        """
        if await self.get_role_by_name(name) is not None:
            raise DuplicateRoleError(name)

        role = Role(name=name, description=description)
        for permission in permissions or ():
            role.permissions.append(await self.get_or_create_permission(permission))

        self.db.add(role)
        await self.db.flush()

        logger.info("rbac.role_created", role=name, permissions=sorted(role.permission_names))
        return role

    async def get_role_by_name(self, name: str) -> Role | None:
        """Get role by name."""
        result = await self.db.execute(select(Role).where(Role.name == name))
        return result.scalar_one_or_none()

    async def list_roles(self) -> list[Role]:
        result = await self.db.execute(select(Role).order_by(Role.name))
        return list(result.scalars().all())

    async def add_permission_to_role(
        self,
        role: Role,
        permission: "str | PermissionName",
    ) -> Role:
        """Add a permission to a role (no-op if already present)."""
        perm = await self.get_or_create_permission(permission)
        if perm not in role.permissions:
            role.permissions.append(perm)
            await self.db.flush()
        return role

    async def remove_permission_from_role(
        self,
        role: Role,
        permission: "str | PermissionName",
    ) -> Role:
        """Remove a permission from a role."""
        name = PermissionName.parse(permission).value
        for perm in list(role.permissions):
            if perm.name == name:
                role.permissions.remove(perm)
        await self.db.flush()
        return role

    # ============================================================
    # PERMISSION MANAGEMENT
    # ============================================================

    async def get_or_create_permission(
        self,
        permission: "str | PermissionName",
    ) -> Permission:
        """
        Get or create the Permission row for a vocabulary name.

        Raises:
            UnknownPermissionError: If the name is not in the vocabulary
        """
        name = PermissionName.parse(permission)

        result = await self.db.execute(select(Permission).where(Permission.name == name.value))
        perm = result.scalar_one_or_none()

        if perm is None:
            perm = Permission(name=name.value, description=PERMISSION_DESCRIPTIONS.get(name))
            self.db.add(perm)
            await self.db.flush()

        return perm

    # ============================================================
    # USER ROLE ASSIGNMENT
    # ============================================================

    async def assign_role(self, user: User, role: Role) -> User:
        """Assign a role to a user (no-op if already assigned)."""
        if role not in user.roles:
            user.roles.append(role)
            await self.db.flush()
            logger.info("rbac.role_assigned", user_id=str(user.id), role=role.name)
        return user

    async def revoke_role(self, user: User, role: Role) -> bool:
        """Revoke a role from a user. Returns False if it was not assigned."""
        if role not in user.roles:
            return False
        user.roles.remove(role)
        await self.db.flush()
        logger.info("rbac.role_revoked", user_id=str(user.id), role=role.name)
        return True

    async def set_roles(self, user: User, role_names: Iterable[str]) -> User:
        """
        Make the user's roles exactly the named ones.

        Raises:
            UnknownRoleError: If a role name does not exist (nothing changes)
        """
        wanted: list[Role] = []
        for name in dict.fromkeys(role_names):
            role = await self.get_role_by_name(name)
            if role is None:
                raise UnknownRoleError(name)
            wanted.append(role)

        for role in list(user.roles):
            if role not in wanted:
                await self.revoke_role(user, role)
        for role in wanted:
            await self.assign_role(user, role)
        return user

    # ============================================================
    # LOCATION GRANTS
    # ============================================================

    async def grant_location(
        self,
        user: User,
        kind: LocationKind,
        location_id: int,
    ) -> User:
        """
        Grant the user direct access to a State, LGA or Ward.

        Raises:
            UnknownLocationError: If the location does not exist
        """
        location = await self.db.get(LOCATION_MODELS[kind], location_id)
        if location is None:
            raise UnknownLocationError(kind.value, location_id)

        grants = getattr(user, GRANT_ATTRIBUTES[kind])
        if location not in grants:
            grants.append(location)
            await self.db.flush()
            logger.info(
                "rbac.location_granted",
                user_id=str(user.id),
                kind=kind.value,
                location_id=location_id,
            )
        return user

    async def revoke_location(
        self,
        user: User,
        kind: LocationKind,
        location_id: int,
    ) -> bool:
        """Remove a direct grant. Returns False if the user did not hold it."""
        grants = getattr(user, GRANT_ATTRIBUTES[kind])
        for location in list(grants):
            if location.id == location_id:
                grants.remove(location)
                await self.db.flush()
                logger.info(
                    "rbac.location_revoked",
                    user_id=str(user.id),
                    kind=kind.value,
                    location_id=location_id,
                )
                return True
        return False

    async def set_locations(
        self,
        user: User,
        kind: LocationKind,
        location_ids: Iterable[int],
    ) -> User:
        """
        Make the user's grants at one level exactly the given ids.

        Raises:
            UnknownLocationError: If an id does not exist
        """
        wanted = set(location_ids)
        for location_id in sorted(wanted):
            await self.grant_location(user, kind, location_id)

        current = {location.id for location in getattr(user, GRANT_ATTRIBUTES[kind])}
        for location_id in sorted(current - wanted):
            await self.revoke_location(user, kind, location_id)
        return user
