"""
Location lookup routes for pickers.

Any signed-in user may read the tree; what they may do in it is decided
by the record and outlook routes.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from changetracker.core.auth import CurrentUser
from changetracker.core.exceptions import UnknownLocationError
from changetracker.models.database import get_db
from changetracker.schemas.locations import LgaResponse, WardResponse
from changetracker.services.locations import LocationService

router = APIRouter()


@router.get("/lgas", response_model=list[LgaResponse])
async def list_lgas(
    current_user: CurrentUser,
    state_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """LGAs of one State, by name."""
    try:
        lgas = await LocationService(db).lgas_in_state(state_id)
    except UnknownLocationError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return [LgaResponse.model_validate(lga) for lga in lgas]


@router.get("/lgas/{lga_id}/wards", response_model=list[WardResponse])
async def list_lga_wards(
    lga_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    wards = await LocationService(db).search_wards(lga_ids=[lga_id])
    return [WardResponse.model_validate(ward) for ward in wards]


@router.get("/wards", response_model=list[WardResponse])
async def search_wards(
    current_user: CurrentUser,
    lga_ids: str | None = Query(None, description="Comma-separated LGA ids"),
    search: str | None = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """Wards by LGA and name fragment, at most 200."""
    try:
        ids = [int(part) for part in lga_ids.split(",") if part.strip()] if lga_ids else None
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="lga_ids must be comma-separated integers",
        )
    wards = await LocationService(db).search_wards(lga_ids=ids, search=search)
    return [WardResponse.model_validate(ward) for ward in wards]
