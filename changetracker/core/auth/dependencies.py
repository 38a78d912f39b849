"""
FastAPI dependencies for authorization.

Usage:
    from changetracker.core.auth import CurrentUser, Authorize, require_permission

    @router.get("/me")
    async def handler(user: CurrentUser):
        ...

    @router.post("/lgas/{lga_id}/records")
    async def handler(lga_id: int, auth: Authorize):
        auth.require("manage_lga_records", lga)

    @router.get("/users", dependencies=[Depends(require_permission("manage_users"))])
    async def handler():
        ...
"""

from functools import lru_cache
from typing import Annotated, Callable

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from changetracker.core.config import settings
from changetracker.core.exceptions import UnknownUserError
from changetracker.core.permissions import PermissionName
from changetracker.models.database import get_db
from changetracker.models.user import User
from changetracker.services.token import InvalidTokenError, TokenService

from .engine import AuthorizationEngine
from .grants import GrantStore
from .policies import RecordPolicy, ProjectOutlookPolicy, UserPolicy
from .registry import PermissionRegistry, build_default_registry
from .scope import LocationScopeProvider
from .service import AuthorizationService

logger = structlog.get_logger()

bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# COMPONENT FACTORIES (built once per process)
# ============================================================

@lru_cache
def get_permission_registry() -> PermissionRegistry:
    """The process-wide permission registry."""
    return build_default_registry()


@lru_cache
def get_engine() -> AuthorizationEngine:
    """
    Get the authorization engine.

    Reads the admin role name from AUTH_ADMIN_ROLE (default: "admin").
    """
    return AuthorizationEngine(
        registry=get_permission_registry(),
        store=GrantStore(),
        admin_role=settings.auth.admin_role,
    )


def get_scope_provider() -> LocationScopeProvider:
    return LocationScopeProvider(get_engine())


def get_record_policy() -> RecordPolicy:
    return RecordPolicy(get_engine())


def get_project_outlook_policy() -> ProjectOutlookPolicy:
    return ProjectOutlookPolicy(get_engine())


def get_user_policy() -> UserPolicy:
    return UserPolicy(get_engine())


# ============================================================
# USER DEPENDENCIES
# ============================================================

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user, with roles and grants loaded.

    Raises:
        HTTPException 401: If not authenticated
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = TokenService().decode_access_token(credentials.credentials)
        user = await GrantStore().load_user(db, user_id)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except UnknownUserError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User is inactive",
        )

    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return user


def require_permission(
    *permissions: "str | PermissionName",
    any_of: list["str | PermissionName"] | None = None,
) -> Callable:
    """
    Dependency factory requiring permissions.

    Args:
        *permissions: Permissions that are ALL required (AND logic)
        any_of: Permissions where ANY is sufficient (OR logic)

    Usage:
        @router.get("/states")
        async def states(user: User = Depends(require_permission("view_records"))):
            ...
    """
    async def dependency(
        current_user: User = Depends(get_current_user),
        engine: AuthorizationEngine = Depends(get_engine),
    ) -> User:
        if permissions and not engine.authorize_all(current_user, permissions):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied",
            )

        if any_of and not engine.authorize_any(current_user, any_of):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied",
            )

        return current_user

    return dependency


# ============================================================
# AUTHORIZATION SERVICE DEPENDENCY
# ============================================================

async def get_authorization_service(
    current_user: User = Depends(get_current_user),
    engine: AuthorizationEngine = Depends(get_engine),
) -> AuthorizationService:
    """Get authorization service for current user."""
    return AuthorizationService(actor=current_user, engine=engine)


# ============================================================
# TYPE ALIASES FOR CLEAN SIGNATURES
# ============================================================

# Authenticated user (required)
CurrentUser = Annotated[User, Depends(get_current_user)]

# Authorization service
Authorize = Annotated[AuthorizationService, Depends(get_authorization_service)]
