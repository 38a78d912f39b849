"""
Record routes.

Every handler runs its policy check before touching data. Creation runs
three checks in order: the create_records gate with access to both the
target State and LGA, the location tree check (422 when the ids do not
form one path), then the ward-level check for the target ward.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from changetracker.core.auth import (
    CurrentUser,
    LocationScopeProvider,
    RecordPolicy,
    get_record_policy,
    get_scope_provider,
)
from changetracker.models.database import get_db
from changetracker.models.record import Record
from changetracker.schemas.records import RecordCreate, RecordResponse, RecordUpdate
from changetracker.services.locations import LocationService

router = APIRouter()


def _forbidden() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Permission denied",
    )


async def _get_record(db: AsyncSession, record_id: int) -> Record:
    record = await db.get(Record, record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return record


@router.get("", response_model=list[RecordResponse])
async def list_records(
    current_user: CurrentUser,
    policy: RecordPolicy = Depends(get_record_policy),
    scope: LocationScopeProvider = Depends(get_scope_provider),
    db: AsyncSession = Depends(get_db),
):
    """Records inside the user's State and LGA grants, newest first."""
    if not policy.can_view_any(current_user):
        raise _forbidden()

    query = scope.scoped(current_user, select(Record).order_by(Record.id.desc()), Record)
    result = await db.execute(query)
    return [RecordResponse.model_validate(record) for record in result.scalars().all()]


@router.get("/{record_id}", response_model=RecordResponse)
async def get_record(
    record_id: int,
    current_user: CurrentUser,
    policy: RecordPolicy = Depends(get_record_policy),
    db: AsyncSession = Depends(get_db),
):
    record = await _get_record(db, record_id)
    if not policy.can_view(current_user, record):
        raise _forbidden()
    return RecordResponse.model_validate(record)


@router.post("", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
async def create_record(
    payload: RecordCreate,
    current_user: CurrentUser,
    policy: RecordPolicy = Depends(get_record_policy),
    db: AsyncSession = Depends(get_db),
):
    """Create (or replace) this year's record for a ward."""
    if not policy.can_create_at(current_user, payload.state_id, payload.lga_id):
        raise _forbidden()

    # UnknownLocationError / LocationMismatchError become 422
    _, ward = await LocationService(db).resolve(
        payload.state_id, payload.lga_id, payload.ward_id
    )

    if not policy.can_create_in_ward(current_user, ward.id):
        raise _forbidden()

    year = datetime.now(timezone.utc).year
    result = await db.execute(
        select(Record).where(
            Record.state_id == payload.state_id,
            Record.lga_id == payload.lga_id,
            Record.ward_id == payload.ward_id,
            Record.year == year,
        )
    )
    record = result.scalar_one_or_none()
    if record is None:
        record = Record(
            state_id=payload.state_id,
            lga_id=payload.lga_id,
            ward_id=payload.ward_id,
            year=year,
            data=payload.data,
        )
        db.add(record)
    else:
        record.data = payload.data

    await db.flush()
    return RecordResponse.model_validate(record)


@router.put("/{record_id}", response_model=RecordResponse)
async def update_record(
    record_id: int,
    payload: RecordUpdate,
    current_user: CurrentUser,
    policy: RecordPolicy = Depends(get_record_policy),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace a record's data and location.

    The user must be able to edit the record where it is now and reach
    the location it is moved to.
    """
    record = await _get_record(db, record_id)
    if not policy.can_update(current_user, record):
        raise _forbidden()

    await LocationService(db).resolve(payload.state_id, payload.lga_id, payload.ward_id)

    if not policy.locations.can_access_located(current_user, payload):
        raise _forbidden()

    record.state_id = payload.state_id
    record.lga_id = payload.lga_id
    record.ward_id = payload.ward_id
    record.data = payload.data

    await db.flush()
    return RecordResponse.model_validate(record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    record_id: int,
    current_user: CurrentUser,
    policy: RecordPolicy = Depends(get_record_policy),
    db: AsyncSession = Depends(get_db),
):
    record = await _get_record(db, record_id)
    if not policy.can_delete(current_user, record):
        raise _forbidden()

    await db.delete(record)
    await db.flush()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
