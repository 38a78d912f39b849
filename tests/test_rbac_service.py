"""
Tests for role, permission and grant management.
"""

import pytest

from changetracker.core.auth import GrantStore
from changetracker.core.exceptions import (
    DuplicateRoleError,
    UnknownLocationError,
    UnknownPermissionError,
    UnknownRoleError,
)
from changetracker.core.permissions import LocationKind
from changetracker.services.rbac import RBACService


@pytest.mark.asyncio
async def test_create_role_with_permissions(db):
    service = RBACService(db)

    role = await service.create_role(
        "lga_editor",
        permissions=["view_records", "edit_records"],
        description="LGA-Level Editor",
    )

    assert role.permission_names == {"view_records", "edit_records"}
    assert await service.get_role_by_name("lga_editor") is role


@pytest.mark.asyncio
async def test_create_duplicate_role_fails(db):
    service = RBACService(db)
    await service.create_role("viewer", permissions=["view_records"])

    with pytest.raises(DuplicateRoleError):
        await service.create_role("viewer")


@pytest.mark.asyncio
async def test_unknown_permission_is_rejected(db):
    service = RBACService(db)

    with pytest.raises(UnknownPermissionError):
        await service.create_role("broken", permissions=["not_a_real_permission"])


@pytest.mark.asyncio
async def test_permission_rows_are_shared(db):
    service = RBACService(db)
    viewer = await service.create_role("viewer", permissions=["view_records"])
    editor = await service.create_role("editor", permissions=["view_records", "edit_records"])

    shared = [perm for perm in editor.permissions if perm.name == "view_records"]
    assert shared == viewer.permissions


@pytest.mark.asyncio
async def test_add_and_remove_role_permission(db):
    service = RBACService(db)
    role = await service.create_role("editor", permissions=["view_records"])

    await service.add_permission_to_role(role, "edit_records")
    await service.add_permission_to_role(role, "edit_records")
    assert role.permission_names == {"view_records", "edit_records"}

    await service.remove_permission_from_role(role, "view_records")
    assert role.permission_names == {"edit_records"}


@pytest.mark.asyncio
async def test_assign_and_revoke_role(db, user_factory):
    service = RBACService(db)
    store = GrantStore()
    role = await service.create_role("viewer", permissions=["view_records"])
    user = await user_factory.create()

    await service.assign_role(user, role)
    assert store.has_permission(user, "view_records")

    assert await service.revoke_role(user, role)
    assert not store.has_permission(user, "view_records")
    assert not await service.revoke_role(user, role)


@pytest.mark.asyncio
async def test_grant_and_revoke_location(db, db_geo, user_factory):
    service = RBACService(db)
    store = GrantStore()
    user = await user_factory.create()

    await service.grant_location(user, LocationKind.LGA, 9)
    await service.grant_location(user, LocationKind.LGA, 9)
    assert store.grant_ids(user, LocationKind.LGA) == {9}

    assert await service.revoke_location(user, LocationKind.LGA, 9)
    assert not store.has_direct_grant(user, LocationKind.LGA, 9)
    assert not await service.revoke_location(user, LocationKind.LGA, 9)


@pytest.mark.asyncio
async def test_grant_unknown_location_fails(db, db_geo, user_factory):
    service = RBACService(db)
    user = await user_factory.create()

    with pytest.raises(UnknownLocationError) as exc_info:
        await service.grant_location(user, LocationKind.WARD, 999)

    assert exc_info.value.kind == "ward"


@pytest.mark.asyncio
async def test_set_roles_replaces_assignments(db, user_factory):
    service = RBACService(db)
    viewer = await service.create_role("viewer", permissions=["view_records"])
    editor = await service.create_role("editor", permissions=["edit_records"])
    user = await user_factory.create()
    await service.assign_role(user, viewer)

    await service.set_roles(user, ["editor", "editor"])

    assert user.roles == [editor]


@pytest.mark.asyncio
async def test_set_roles_unknown_name_changes_nothing(db, user_factory):
    service = RBACService(db)
    viewer = await service.create_role("viewer", permissions=["view_records"])
    user = await user_factory.create()
    await service.assign_role(user, viewer)

    with pytest.raises(UnknownRoleError) as exc_info:
        await service.set_roles(user, ["editor"])

    assert exc_info.value.name == "editor"
    assert user.roles == [viewer]


@pytest.mark.asyncio
async def test_set_locations_replaces_one_level(db, db_geo, user_factory):
    service = RBACService(db)
    store = GrantStore()
    user = await user_factory.create(lgas=[db_geo.ikeja], states=[db_geo.lagos])

    await service.set_locations(user, LocationKind.LGA, [10, 30])

    assert store.grant_ids(user, LocationKind.LGA) == {10, 30}
    assert store.grant_ids(user, LocationKind.STATE) == {5}

    await service.set_locations(user, LocationKind.LGA, [])
    assert store.grant_ids(user, LocationKind.LGA) == set()


@pytest.mark.asyncio
async def test_set_locations_unknown_id_fails(db, db_geo, user_factory):
    service = RBACService(db)
    user = await user_factory.create()

    with pytest.raises(UnknownLocationError):
        await service.set_locations(user, LocationKind.STATE, [5, 999])
