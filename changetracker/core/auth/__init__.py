"""
Authorization module - hierarchical, location-scoped RBAC.

Users hold roles; roles carry permissions; users also hold direct grants
on States, LGAs and Wards. A grant on a State covers every LGA and Ward
inside it.

Usage:
=====

Feature gates (no resource):
    @router.get("/users")
    async def handler(user: User = Depends(require_permission("manage_users"))):
        ...

Resource checks:
    @router.post("/wards/{ward_id}/records")
    async def handler(ward_id: int, auth: Authorize):
        ward = await db.get(Ward, ward_id)
        auth.require("manage_ward_records", ward)

Entity policies:
    policy = RecordPolicy(engine)
    if policy.can_update(user, record):
        ...

List scoping:
    query = LocationScopeProvider(engine).scoped(user, select(Record), Record)

Decision order:
===============
1. Admin role -> allow (configurable: AUTH_ADMIN_ROLE)
2. Unknown permission -> UnknownPermissionError
3. Registered rule decides (simple, hierarchical, or located resource)
"""

# Building blocks
from .grants import GrantStore
from .hierarchy import HierarchyResolver
from .rules import (
    PermissionRule,
    SimpleRule,
    HierarchicalRule,
    LocatedResourceRule,
    has_scoped_access,
)
from .registry import PermissionRegistry, build_default_registry

# Engine and policies
from .engine import AuthorizationEngine
from .policies import LocationAccess, RecordPolicy, ProjectOutlookPolicy, UserPolicy
from .scope import DataScope, LocationScopeProvider

# Service (per-request facade)
from .service import AuthorizationService

# Dependencies (what you'll use in routes)
from .dependencies import (
    CurrentUser,
    Authorize,
    get_current_user,
    get_authorization_service,
    get_engine,
    get_permission_registry,
    get_scope_provider,
    get_record_policy,
    get_project_outlook_policy,
    get_user_policy,
    require_permission,
)

__all__ = [
    # Building blocks
    "GrantStore",
    "HierarchyResolver",
    "PermissionRule",
    "SimpleRule",
    "HierarchicalRule",
    "LocatedResourceRule",
    "has_scoped_access",
    "PermissionRegistry",
    "build_default_registry",
    # Engine and policies
    "AuthorizationEngine",
    "LocationAccess",
    "RecordPolicy",
    "ProjectOutlookPolicy",
    "UserPolicy",
    "DataScope",
    "LocationScopeProvider",
    # Service
    "AuthorizationService",
    # Dependencies
    "CurrentUser",
    "Authorize",
    "get_current_user",
    "get_authorization_service",
    "get_engine",
    "get_permission_registry",
    "get_scope_provider",
    "get_record_policy",
    "get_project_outlook_policy",
    "get_user_policy",
    "require_permission",
]
