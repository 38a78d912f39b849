"""
Entity policies.

Policies turn CRUD intents into engine checks plus location access:

    policy = RecordPolicy(engine)
    if not policy.can_update(user, record):
        raise HTTPException(status_code=403)

Records and project outlooks are located by state_id/lga_id: changing one
needs the matching permission AND access to the row's State or LGA.
Creating one needs access to both the target State and LGA. Outlooks are
readable with view_project_outlooks alone.

User administration is a flat manage_users gate with no scoping.
"""

from typing import Any

from changetracker.core.permissions import LocationKind, PermissionName
from changetracker.models.record import Record, ProjectOutlook
from changetracker.models.user import User

from .engine import AuthorizationEngine


class LocationAccess:
    """Direct location access checks with admin bypass."""

    def __init__(self, engine: AuthorizationEngine):
        self.engine = engine
        self.store = engine.store

    def can_access_state(self, user: User, state_id: Any) -> bool:
        if self.engine.is_admin(user):
            return True
        return self.store.has_direct_grant(user, LocationKind.STATE, state_id)

    def can_access_lga(self, user: User, lga_id: Any) -> bool:
        if self.engine.is_admin(user):
            return True
        return self.store.has_direct_grant(user, LocationKind.LGA, lga_id)

    def can_access_ward(self, user: User, ward_id: Any) -> bool:
        if self.engine.is_admin(user):
            return True
        return self.store.has_direct_grant(user, LocationKind.WARD, ward_id)

    def can_access_located(self, user: User, row: Any) -> bool:
        """State access on row.state_id or LGA access on row.lga_id."""
        return (
            self.can_access_state(user, row.state_id)
            or self.can_access_lga(user, row.lga_id)
        )


class _LocatedPolicy:
    """Shared shape of the Record and ProjectOutlook policies."""

    view_permission: PermissionName
    create_permission: PermissionName
    update_permission: PermissionName
    delete_permission: PermissionName

    def __init__(self, engine: AuthorizationEngine):
        self.engine = engine
        self.locations = LocationAccess(engine)

    def _scoped(self, user: User, permission: PermissionName, row: Any) -> bool:
        return (
            self.engine.authorize(user, permission)
            and self.locations.can_access_located(user, row)
        )

    def can_view_any(self, user: User) -> bool:
        return self.engine.authorize(user, self.view_permission)

    def can_create(self, user: User) -> bool:
        return self.engine.authorize(user, self.create_permission)

    def can_create_at(self, user: User, state_id: Any, lga_id: Any) -> bool:
        """
        Create gate plus access to BOTH the target State and LGA.

        Callers must separately make sure the LGA lies in the State.
        """
        return (
            self.can_create(user)
            and self.locations.can_access_state(user, state_id)
            and self.locations.can_access_lga(user, lga_id)
        )


class RecordPolicy(_LocatedPolicy):
    """Authorization for change records."""

    view_permission = PermissionName.VIEW_RECORDS
    create_permission = PermissionName.CREATE_RECORDS
    update_permission = PermissionName.EDIT_RECORDS
    delete_permission = PermissionName.DELETE_RECORDS

    def can_view(self, user: User, record: Record) -> bool:
        return self._scoped(user, self.view_permission, record)

    def can_update(self, user: User, record: Record) -> bool:
        return self._scoped(user, self.update_permission, record)

    def can_delete(self, user: User, record: Record) -> bool:
        return self._scoped(user, self.delete_permission, record)

    def can_create_in_ward(self, user: User, ward_id: Any) -> bool:
        """
        Ward-level check run by callers before persisting a new record.

        The ward is not part of the create_records gate, so a failure here
        is answered by the caller with its own 403.
        """
        return self.locations.can_access_ward(user, ward_id)


class ProjectOutlookPolicy(_LocatedPolicy):
    """Authorization for yearly project outlooks."""

    view_permission = PermissionName.VIEW_PROJECT_OUTLOOKS
    create_permission = PermissionName.CREATE_PROJECT_OUTLOOKS
    update_permission = PermissionName.EDIT_PROJECT_OUTLOOKS
    delete_permission = PermissionName.DELETE_PROJECT_OUTLOOKS

    def can_view(self, user: User, outlook: ProjectOutlook) -> bool:
        # Outlooks are readable everywhere; only changes are scoped
        return self.engine.authorize(user, self.view_permission)

    def can_update(self, user: User, outlook: ProjectOutlook) -> bool:
        return self._scoped(user, self.update_permission, outlook)

    def can_delete(self, user: User, outlook: ProjectOutlook) -> bool:
        return self._scoped(user, self.delete_permission, outlook)


class UserPolicy:
    """Account management: every action needs manage_users."""

    def __init__(self, engine: AuthorizationEngine):
        self.engine = engine

    def _manage(self, user: User) -> bool:
        return self.engine.authorize(user, PermissionName.MANAGE_USERS)

    def can_view_any(self, user: User) -> bool:
        return self._manage(user)

    def can_view(self, user: User, model: User) -> bool:
        return self._manage(user)

    def can_create(self, user: User) -> bool:
        return self._manage(user)

    def can_update(self, user: User, model: User) -> bool:
        return self._manage(user)

    def can_delete(self, user: User, model: User) -> bool:
        return self._manage(user)
