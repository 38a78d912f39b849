"""
Access routes - what the current user may do, and where.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from changetracker.core.auth import (
    AuthorizationEngine,
    Authorize,
    CurrentUser,
    LocationScopeProvider,
    get_engine,
    get_scope_provider,
    require_permission,
)
from changetracker.core.permissions import LocationKind, PermissionName
from changetracker.models.database import get_db
from changetracker.models.location import State, Lga, Ward
from changetracker.models.record import Record, ProjectOutlook
from changetracker.models.user import User
from changetracker.schemas.access import (
    AccessCheckRequest,
    AccessCheckResponse,
    AccessSummary,
)
from changetracker.schemas.locations import StateResponse

router = APIRouter()

RESOURCE_MODELS: dict[str, type] = {
    "state": State,
    "lga": Lga,
    "ward": Ward,
    "record": Record,
    "project_outlook": ProjectOutlook,
}


@router.get("/me", response_model=AccessSummary)
async def get_my_access(
    current_user: CurrentUser,
    engine: AuthorizationEngine = Depends(get_engine),
):
    """Roles, usable permissions and direct grants of the current user."""
    store = engine.store
    return AccessSummary(
        user_id=current_user.id,
        email=current_user.email,
        is_admin=engine.is_admin(current_user),
        roles=sorted(store.role_names(current_user)),
        permissions=sorted(engine.effective_permissions(current_user)),
        state_ids=sorted(store.grant_ids(current_user, LocationKind.STATE)),
        lga_ids=sorted(store.grant_ids(current_user, LocationKind.LGA)),
        ward_ids=sorted(store.grant_ids(current_user, LocationKind.WARD)),
    )


@router.post("/check", response_model=AccessCheckResponse)
async def check_access(
    payload: AccessCheckRequest,
    auth: Authorize,
    db: AsyncSession = Depends(get_db),
):
    """
    Check one permission, optionally against a location or record.

    Used by the UI to show or hide actions. Unknown permission names are
    answered with 403 like any other failed check.
    """
    resource = None
    if payload.resource_type is not None:
        model = RESOURCE_MODELS[payload.resource_type]
        resource = await db.get(model, payload.resource_id)
        if resource is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Resource not found",
            )

    return AccessCheckResponse(
        permission=payload.permission,
        allowed=auth.can(payload.permission, resource),
    )


@router.get("/states", response_model=list[StateResponse])
async def list_accessible_states(
    current_user: User = Depends(require_permission(PermissionName.VIEW_RECORDS)),
    scope: LocationScopeProvider = Depends(get_scope_provider),
    db: AsyncSession = Depends(get_db),
):
    """States (with their LGAs) the user can enter records for."""
    result = await db.execute(scope.accessible_states_query(current_user))
    return [StateResponse.model_validate(state) for state in result.scalars().all()]
