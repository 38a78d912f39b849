"""
User administration routes.

Every action needs manage_users. Roles and location grants are written
through RBACService so unknown role names and location ids are rejected
with 422 before anything is committed.
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from changetracker.core.auth import CurrentUser, UserPolicy, get_user_policy
from changetracker.core.permissions import LocationKind
from changetracker.models.database import get_db
from changetracker.models.user import User
from changetracker.schemas.users import UserCreate, UserResponse, UserUpdate
from changetracker.services.rbac import RBACService

logger = structlog.get_logger()

router = APIRouter()


def _forbidden() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")


async def _get_user(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def _apply_grants(
    service: RBACService,
    user: User,
    payload: UserCreate | UserUpdate,
) -> None:
    """Replace roles and each grant level the payload carries."""
    if payload.roles is not None:
        await service.set_roles(user, payload.roles)

    levels = (
        (LocationKind.STATE, payload.state_ids),
        (LocationKind.LGA, payload.lga_ids),
        (LocationKind.WARD, payload.ward_ids),
    )
    for kind, location_ids in levels:
        if location_ids is not None:
            await service.set_locations(user, kind, location_ids)


@router.get("", response_model=list[UserResponse])
async def list_users(
    current_user: CurrentUser,
    policy: UserPolicy = Depends(get_user_policy),
    db: AsyncSession = Depends(get_db),
):
    if not policy.can_view_any(current_user):
        raise _forbidden()

    result = await db.execute(select(User).order_by(User.email))
    return [UserResponse.from_user(user) for user in result.scalars().all()]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    current_user: CurrentUser,
    policy: UserPolicy = Depends(get_user_policy),
    db: AsyncSession = Depends(get_db),
):
    user = await _get_user(db, user_id)
    if not policy.can_view(current_user, user):
        raise _forbidden()
    return UserResponse.from_user(user)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    current_user: CurrentUser,
    policy: UserPolicy = Depends(get_user_policy),
    db: AsyncSession = Depends(get_db),
):
    """Create a user with roles and direct location grants."""
    if not policy.can_create(current_user):
        raise _forbidden()

    existing = await db.execute(select(User).where(User.email == payload.email))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this email already exists",
        )

    user = User(
        email=payload.email,
        name=payload.name,
        is_active=True,
        roles=[],
        state_grants=[],
        lga_grants=[],
        ward_grants=[],
    )
    db.add(user)
    await db.flush()

    await _apply_grants(RBACService(db), user, payload)

    logger.info("user.created", user_id=str(user.id), by=str(current_user.id))
    return UserResponse.from_user(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    current_user: CurrentUser,
    policy: UserPolicy = Depends(get_user_policy),
    db: AsyncSession = Depends(get_db),
):
    user = await _get_user(db, user_id)
    if not policy.can_update(current_user, user):
        raise _forbidden()

    if payload.name is not None:
        user.name = payload.name
    if payload.is_active is not None:
        user.is_active = payload.is_active

    await _apply_grants(RBACService(db), user, payload)
    await db.flush()

    logger.info("user.updated", user_id=str(user.id), by=str(current_user.id))
    return UserResponse.from_user(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    current_user: CurrentUser,
    policy: UserPolicy = Depends(get_user_policy),
    db: AsyncSession = Depends(get_db),
):
    user = await _get_user(db, user_id)
    if not policy.can_delete(current_user, user):
        raise _forbidden()

    await db.delete(user)
    await db.flush()

    logger.info("user.deleted", user_id=str(user_id), by=str(current_user.id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
