"""
Permission vocabulary and location levels.

Every permission the application checks is a member of PermissionName.
Roles are assigned these names (stored as Permission rows), and the
permission registry maps each name to the rule that evaluates it.

Location levels form a strict three-level tree:

    State -> LGA -> Ward

A grant at a higher level covers every location beneath it.
"""

from enum import Enum

from .exceptions import UnknownPermissionError


class LocationKind(str, Enum):
    """Level of a location in the State -> LGA -> Ward tree."""

    STATE = "state"
    LGA = "lga"
    WARD = "ward"

    @property
    def parent(self) -> "LocationKind | None":
        """The level directly above this one (None for STATE)."""
        return _PARENT_KIND[self]


_PARENT_KIND: dict[LocationKind, LocationKind | None] = {
    LocationKind.STATE: None,
    LocationKind.LGA: LocationKind.STATE,
    LocationKind.WARD: LocationKind.LGA,
}


class PermissionName(str, Enum):
    """Closed set of permission names."""

    # User administration
    MANAGE_USERS = "manage_users"
    MANAGE_ROLES = "manage_roles"

    # Records
    VIEW_RECORDS = "view_records"
    CREATE_RECORDS = "create_records"
    EDIT_RECORDS = "edit_records"
    DELETE_RECORDS = "delete_records"

    # Location-scoped record management
    MANAGE_STATE_RECORDS = "manage_state_records"
    MANAGE_LGA_RECORDS = "manage_lga_records"
    MANAGE_WARD_RECORDS = "manage_ward_records"

    # Project outlooks (yearly targets)
    VIEW_PROJECT_OUTLOOKS = "view_project_outlooks"
    CREATE_PROJECT_OUTLOOKS = "create_project_outlooks"
    EDIT_PROJECT_OUTLOOKS = "edit_project_outlooks"
    DELETE_PROJECT_OUTLOOKS = "delete_project_outlooks"

    IS_ADMIN = "is_admin"

    @classmethod
    def parse(cls, value: "str | PermissionName") -> "PermissionName":
        """
        Resolve a permission name.

        Raises:
            UnknownPermissionError: If the name is not in the vocabulary
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownPermissionError(str(value)) from None


PERMISSION_DESCRIPTIONS: dict[PermissionName, str] = {
    PermissionName.MANAGE_USERS: "Manage Users",
    PermissionName.MANAGE_ROLES: "Manage Roles",
    PermissionName.VIEW_RECORDS: "View Records",
    PermissionName.CREATE_RECORDS: "Create Records",
    PermissionName.EDIT_RECORDS: "Edit Records",
    PermissionName.DELETE_RECORDS: "Delete Records",
    PermissionName.MANAGE_STATE_RECORDS: "Manage State Records",
    PermissionName.MANAGE_LGA_RECORDS: "Manage LGA Records",
    PermissionName.MANAGE_WARD_RECORDS: "Manage Ward Records",
    PermissionName.VIEW_PROJECT_OUTLOOKS: "View Project Outlooks",
    PermissionName.CREATE_PROJECT_OUTLOOKS: "Create Project Outlooks",
    PermissionName.EDIT_PROJECT_OUTLOOKS: "Edit Project Outlooks",
    PermissionName.DELETE_PROJECT_OUTLOOKS: "Delete Project Outlooks",
    PermissionName.IS_ADMIN: "Administrator",
}
