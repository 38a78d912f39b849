"""
Project outlook routes.

Outlooks are readable by anyone holding view_project_outlooks. Creating
one needs access to both its State and LGA; editing and deleting are
scoped to the outlook's own State or LGA.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from changetracker.core.auth import (
    CurrentUser,
    ProjectOutlookPolicy,
    get_project_outlook_policy,
)
from changetracker.models.database import get_db
from changetracker.models.record import ProjectOutlook
from changetracker.schemas.outlooks import (
    ProjectOutlookCreate,
    ProjectOutlookResponse,
    ProjectOutlookUpdate,
)
from changetracker.services.locations import LocationService

router = APIRouter()


def _forbidden() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Permission denied",
    )


async def _get_outlook(db: AsyncSession, outlook_id: int) -> ProjectOutlook:
    outlook = await db.get(ProjectOutlook, outlook_id)
    if outlook is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return outlook


@router.get("", response_model=list[ProjectOutlookResponse])
async def list_outlooks(
    current_user: CurrentUser,
    policy: ProjectOutlookPolicy = Depends(get_project_outlook_policy),
    db: AsyncSession = Depends(get_db),
):
    """All outlooks, latest year first."""
    if not policy.can_view_any(current_user):
        raise _forbidden()

    result = await db.execute(
        select(ProjectOutlook).order_by(
            ProjectOutlook.project_year.desc(), ProjectOutlook.id
        )
    )
    return [ProjectOutlookResponse.model_validate(o) for o in result.scalars().all()]


@router.get("/{outlook_id}", response_model=ProjectOutlookResponse)
async def get_outlook(
    outlook_id: int,
    current_user: CurrentUser,
    policy: ProjectOutlookPolicy = Depends(get_project_outlook_policy),
    db: AsyncSession = Depends(get_db),
):
    outlook = await _get_outlook(db, outlook_id)
    if not policy.can_view(current_user, outlook):
        raise _forbidden()
    return ProjectOutlookResponse.model_validate(outlook)


@router.post("", response_model=ProjectOutlookResponse, status_code=status.HTTP_201_CREATED)
async def create_outlook(
    payload: ProjectOutlookCreate,
    current_user: CurrentUser,
    policy: ProjectOutlookPolicy = Depends(get_project_outlook_policy),
    db: AsyncSession = Depends(get_db),
):
    if not policy.can_create_at(current_user, payload.state_id, payload.lga_id):
        raise _forbidden()

    await LocationService(db).resolve(payload.state_id, payload.lga_id)

    outlook = ProjectOutlook(**payload.model_dump())
    db.add(outlook)
    await db.flush()
    return ProjectOutlookResponse.model_validate(outlook)


@router.put("/{outlook_id}", response_model=ProjectOutlookResponse)
async def update_outlook(
    outlook_id: int,
    payload: ProjectOutlookUpdate,
    current_user: CurrentUser,
    policy: ProjectOutlookPolicy = Depends(get_project_outlook_policy),
    db: AsyncSession = Depends(get_db),
):
    outlook = await _get_outlook(db, outlook_id)
    if not policy.can_update(current_user, outlook):
        raise _forbidden()

    outlook.outlook = payload.outlook
    outlook.project_year = payload.project_year
    await db.flush()
    return ProjectOutlookResponse.model_validate(outlook)


@router.delete("/{outlook_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_outlook(
    outlook_id: int,
    current_user: CurrentUser,
    policy: ProjectOutlookPolicy = Depends(get_project_outlook_policy),
    db: AsyncSession = Depends(get_db),
):
    outlook = await _get_outlook(db, outlook_id)
    if not policy.can_delete(current_user, outlook):
        raise _forbidden()

    await db.delete(outlook)
    await db.flush()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
