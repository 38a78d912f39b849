"""
Tests for access, record and user endpoints.
"""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from structlog.testing import capture_logs

from changetracker.models.location import Ward
from changetracker.models.record import Record


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_access_log_line(client: AsyncClient):
    with capture_logs() as logs:
        await client.get("/health", headers={"X-Request-ID": "log-1"})

    entry = next(log for log in logs if log["event"] == "http.request")
    assert entry["method"] == "GET"
    assert entry["path"] == "/health"
    assert entry["status_code"] == 200


@pytest.mark.asyncio
async def test_requires_authentication(client: AsyncClient):
    response = await client.get("/api/access/me")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_token(client: AsyncClient):
    response = await client.get(
        "/api/access/me",
        headers={"Authorization": "Bearer not-a-token"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_rejected(client, user_factory, auth_headers_for):
    user = await user_factory.create(is_active=False)

    response = await client.get("/api/access/me", headers=auth_headers_for(user))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_my_access(client, db_geo, make_role, user_factory, auth_headers_for):
    user = await user_factory.create(
        roles=[make_role("lga_editor", "view_records", "edit_records")],
        lgas=[db_geo.ikeja],
        wards=[db_geo.ward_42],
    )

    response = await client.get("/api/access/me", headers=auth_headers_for(user))

    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == str(user.id)
    assert data["is_admin"] is False
    assert data["roles"] == ["lga_editor"]
    assert data["permissions"] == ["edit_records", "view_records"]
    assert data["state_ids"] == []
    assert data["lga_ids"] == [9]
    assert data["ward_ids"] == [42]


@pytest.mark.asyncio
async def test_check_against_location(client, db_geo, make_role, user_factory, auth_headers_for):
    user = await user_factory.create(
        roles=[make_role("state_editor", "manage_lga_records")],
        states=[db_geo.lagos],
    )
    headers = auth_headers_for(user)

    allowed = await client.post(
        "/api/access/check",
        headers=headers,
        json={"permission": "manage_lga_records", "resource_type": "lga", "resource_id": 9},
    )
    denied = await client.post(
        "/api/access/check",
        headers=headers,
        json={"permission": "manage_lga_records", "resource_type": "lga", "resource_id": 30},
    )

    assert allowed.status_code == 200
    assert allowed.json() == {"permission": "manage_lga_records", "allowed": True}
    assert denied.json()["allowed"] is False


@pytest.mark.asyncio
async def test_check_missing_resource(client, db_geo, make_role, user_factory, auth_headers_for):
    user = await user_factory.create(roles=[make_role("viewer", "view_records")])

    response = await client.post(
        "/api/access/check",
        headers=auth_headers_for(user),
        json={"permission": "view_records", "resource_type": "record", "resource_id": 404},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_check_unknown_permission_is_plain_403(client, make_role, user_factory, auth_headers_for):
    user = await user_factory.create(roles=[make_role("viewer", "view_records")])

    response = await client.post(
        "/api/access/check",
        headers=auth_headers_for(user),
        json={"permission": "not_a_real_permission"},
    )

    assert response.status_code == 403
    assert response.json() == {"detail": "Permission denied"}


@pytest.mark.asyncio
async def test_check_half_resource_is_invalid(client, make_role, user_factory, auth_headers_for):
    user = await user_factory.create(roles=[make_role("viewer", "view_records")])

    response = await client.post(
        "/api/access/check",
        headers=auth_headers_for(user),
        json={"permission": "view_records", "resource_type": "lga"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_accessible_states(client, db_geo, make_role, user_factory, auth_headers_for):
    user = await user_factory.create(
        roles=[make_role("lga_editor", "view_records")],
        lgas=[db_geo.kano_municipal],
    )

    response = await client.get("/api/access/states", headers=auth_headers_for(user))

    assert response.status_code == 200
    data = response.json()
    assert [state["id"] for state in data] == [20]
    assert [lga["id"] for lga in data[0]["lgas"]] == [30]


@pytest.mark.asyncio
async def test_accessible_states_requires_view_records(client, db_geo, user_factory, auth_headers_for):
    user = await user_factory.create(states=[db_geo.lagos])

    response = await client.get("/api/access/states", headers=auth_headers_for(user))

    assert response.status_code == 403


# ============ Records ============


@pytest.mark.asyncio
async def test_list_records_is_scoped(client, db, db_geo, make_role, user_factory, auth_headers_for):
    db.add_all([
        Record(state_id=5, lga_id=9, ward_id=42, year=2024, data={}),
        Record(state_id=20, lga_id=30, ward_id=None, year=2024, data={}),
    ])
    await db.flush()
    user = await user_factory.create(
        roles=[make_role("lga_editor", "view_records")],
        lgas=[db_geo.ikeja],
    )

    response = await client.get("/api/records", headers=auth_headers_for(user))

    assert response.status_code == 200
    assert [record["lga_id"] for record in response.json()] == [9]


@pytest.mark.asyncio
async def test_get_record_outside_grants(client, db, db_geo, make_role, user_factory, auth_headers_for):
    record = Record(state_id=20, lga_id=30, ward_id=None, year=2024, data={})
    db.add(record)
    await db.flush()
    user = await user_factory.create(
        roles=[make_role("lga_editor", "view_records")],
        lgas=[db_geo.ikeja],
    )

    response = await client.get(f"/api/records/{record.id}", headers=auth_headers_for(user))

    assert response.status_code == 403
    assert response.json() == {"detail": "Permission denied"}


@pytest.mark.asyncio
async def test_create_record(client, db_geo, make_role, user_factory, auth_headers_for):
    user = await user_factory.create(
        roles=[make_role("ward_editor", "create_records")],
        states=[db_geo.lagos],
        lgas=[db_geo.ikeja],
        wards=[db_geo.ward_42],
    )

    response = await client.post(
        "/api/records",
        headers=auth_headers_for(user),
        json={"state_id": 5, "lga_id": 9, "ward_id": 42, "data": {"households": 120}},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["ward_id"] == 42
    assert data["year"] == datetime.now(timezone.utc).year
    assert data["data"] == {"households": 120}


@pytest.mark.asyncio
async def test_create_record_needs_ward_grant(client, db_geo, make_role, user_factory, auth_headers_for):
    user = await user_factory.create(
        roles=[make_role("lga_editor", "create_records")],
        states=[db_geo.lagos],
        lgas=[db_geo.ikeja],
        wards=[db_geo.ward_42],
    )

    response = await client.post(
        "/api/records",
        headers=auth_headers_for(user),
        json={"state_id": 5, "lga_id": 9, "ward_id": 43},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_record_needs_location_access(client, db_geo, make_role, user_factory, auth_headers_for):
    user = await user_factory.create(
        roles=[make_role("ward_editor", "create_records")],
        wards=[db_geo.ward_50],
    )

    response = await client.post(
        "/api/records",
        headers=auth_headers_for(user),
        json={"state_id": 5, "lga_id": 10, "ward_id": 50},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_record_ward_outside_lga(client, db_geo, make_role, user_factory, auth_headers_for):
    admin = await user_factory.create(roles=[make_role("admin")])

    response = await client.post(
        "/api/records",
        headers=auth_headers_for(admin),
        json={"state_id": 5, "lga_id": 9, "ward_id": 50},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_record(client, db, db_geo, make_role, user_factory, auth_headers_for):
    record = Record(state_id=5, lga_id=10, ward_id=50, year=2024, data={})
    db.add(record)
    await db.flush()
    viewer = await user_factory.create(
        roles=[make_role("viewer", "view_records")],
        states=[db_geo.lagos],
    )
    admin = await user_factory.create(roles=[make_role("admin")])

    denied = await client.delete(f"/api/records/{record.id}", headers=auth_headers_for(viewer))
    deleted = await client.delete(f"/api/records/{record.id}", headers=auth_headers_for(admin))

    assert denied.status_code == 403
    assert deleted.status_code == 204


@pytest.mark.asyncio
async def test_create_record_lga_outside_state(client, db_geo, make_role, user_factory, auth_headers_for):
    user = await user_factory.create(
        roles=[make_role("editor", "create_records")],
        states=[db_geo.kano],
        lgas=[db_geo.ikeja],
        wards=[db_geo.ward_42],
    )

    response = await client.post(
        "/api/records",
        headers=auth_headers_for(user),
        json={"state_id": 20, "lga_id": 9, "ward_id": 42},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_record_state_grant_alone_is_not_enough(
    client, db_geo, make_role, user_factory, auth_headers_for
):
    user = await user_factory.create(
        roles=[make_role("state_editor", "create_records")],
        states=[db_geo.lagos],
        wards=[db_geo.ward_42],
    )

    response = await client.post(
        "/api/records",
        headers=auth_headers_for(user),
        json={"state_id": 5, "lga_id": 9, "ward_id": 42},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_record_lga_grant_alone_is_not_enough(
    client, db_geo, make_role, user_factory, auth_headers_for
):
    user = await user_factory.create(
        roles=[make_role("lga_editor", "create_records")],
        lgas=[db_geo.ikeja],
        wards=[db_geo.ward_42],
    )

    response = await client.post(
        "/api/records",
        headers=auth_headers_for(user),
        json={"state_id": 5, "lga_id": 9, "ward_id": 42},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_record_replaces_this_years_record(
    client, db_geo, make_role, user_factory, auth_headers_for
):
    user = await user_factory.create(
        roles=[make_role("ward_editor", "create_records")],
        states=[db_geo.lagos],
        lgas=[db_geo.ikeja],
        wards=[db_geo.ward_42],
    )
    headers = auth_headers_for(user)
    payload = {"state_id": 5, "lga_id": 9, "ward_id": 42}

    first = await client.post("/api/records", headers=headers, json={**payload, "data": {"households": 1}})
    second = await client.post("/api/records", headers=headers, json={**payload, "data": {"households": 2}})

    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["data"] == {"households": 2}


@pytest.mark.asyncio
async def test_update_record(client, db, db_geo, make_role, user_factory, auth_headers_for):
    record = Record(state_id=5, lga_id=9, ward_id=42, year=2024, data={})
    db.add(record)
    await db.flush()
    editor = await user_factory.create(
        roles=[make_role("state_editor", "edit_records")],
        states=[db_geo.lagos],
    )

    response = await client.put(
        f"/api/records/{record.id}",
        headers=auth_headers_for(editor),
        json={"state_id": 5, "lga_id": 10, "ward_id": 50, "data": {"households": 80}},
    )

    assert response.status_code == 200
    data = response.json()
    assert (data["lga_id"], data["ward_id"]) == (10, 50)
    assert data["data"] == {"households": 80}
    assert data["year"] == 2024


@pytest.mark.asyncio
async def test_update_record_cannot_move_outside_grants(
    client, db, db_geo, make_role, user_factory, auth_headers_for
):
    record = Record(state_id=5, lga_id=9, ward_id=42, year=2024, data={})
    db.add(record)
    await db.flush()
    editor = await user_factory.create(
        roles=[make_role("lga_editor", "view_records", "edit_records")],
        lgas=[db_geo.ikeja],
    )
    viewer = await user_factory.create(
        roles=[make_role("viewer", "view_records")],
        lgas=[db_geo.ikeja],
    )
    body = {"state_id": 5, "lga_id": 10, "ward_id": 50, "data": {}}

    moved = await client.put(f"/api/records/{record.id}", headers=auth_headers_for(editor), json=body)
    no_edit = await client.put(
        f"/api/records/{record.id}",
        headers=auth_headers_for(viewer),
        json={**body, "lga_id": 9, "ward_id": 42},
    )

    assert moved.status_code == 403
    assert no_edit.status_code == 403


@pytest.mark.asyncio
async def test_update_record_invalid_location(client, db, db_geo, make_role, user_factory, auth_headers_for):
    record = Record(state_id=5, lga_id=9, ward_id=42, year=2024, data={})
    db.add(record)
    await db.flush()
    admin = await user_factory.create(roles=[make_role("admin")])

    response = await client.put(
        f"/api/records/{record.id}",
        headers=auth_headers_for(admin),
        json={"state_id": 5, "lga_id": 30, "data": {}},
    )
    missing = await client.put(
        "/api/records/404",
        headers=auth_headers_for(admin),
        json={"state_id": 5, "lga_id": 9, "data": {}},
    )

    assert response.status_code == 422
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_broken_location_tree_is_plain_403(client, db, db_geo, make_role, user_factory, auth_headers_for):
    # Ward whose LGA does not exist; SQLite does not enforce the foreign key
    orphan = Ward(id=77, name="Orphan", lga_id=999)
    db.add(orphan)
    await db.flush()
    db.expunge(orphan)
    user = await user_factory.create(
        roles=[make_role("state_editor", "manage_ward_records")],
        states=[db_geo.lagos],
    )

    response = await client.post(
        "/api/access/check",
        headers=auth_headers_for(user),
        json={"permission": "manage_ward_records", "resource_type": "ward", "resource_id": 77},
    )

    assert response.status_code == 403
    assert response.json() == {"detail": "Permission denied"}


# ============ Users ============


@pytest.mark.asyncio
async def test_list_users_requires_manage_users(client, make_role, user_factory, auth_headers_for):
    viewer = await user_factory.create(roles=[make_role("viewer", "view_records")])
    manager = await user_factory.create(roles=[make_role("user_manager", "manage_users")])

    denied = await client.get("/api/users", headers=auth_headers_for(viewer))
    allowed = await client.get("/api/users", headers=auth_headers_for(manager))

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert len(allowed.json()) == 2
