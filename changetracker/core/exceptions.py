"""
Application exceptions.

AuthorizationError subclasses signal configuration or data-integrity
defects found while making an authorization decision. They are NOT
denials: a denial is a plain False. At the HTTP boundary every
AuthorizationError is answered with a generic 403 and the details go to
the operator log only.
"""

from typing import Any


class ChangeTrackerError(Exception):
    """Base class for application errors."""


class AuthorizationError(ChangeTrackerError):
    """An authorization check could not be completed."""


class UnknownPermissionError(AuthorizationError):
    """Permission name has no registered rule."""

    def __init__(self, permission: str):
        self.permission = permission
        super().__init__(f"Unknown permission: '{permission}'")


class DuplicatePermissionError(AuthorizationError):
    """A rule was registered twice for the same permission."""

    def __init__(self, permission: str):
        self.permission = permission
        super().__init__(f"Permission '{permission}' is already registered")


class IntegrityViolationError(AuthorizationError):
    """A location is missing its parent in the State -> LGA -> Ward tree."""

    def __init__(self, kind: str, location_id: Any, parent_kind: str):
        self.kind = kind
        self.location_id = location_id
        self.parent_kind = parent_kind
        super().__init__(
            f"{kind} {location_id!r} has no {parent_kind}; location hierarchy is corrupt"
        )


class UnknownUserError(ChangeTrackerError):
    """User reference does not resolve to a user."""

    def __init__(self, user_id: Any = None):
        self.user_id = user_id
        super().__init__(f"Unknown user: {user_id!r}")


class UnknownLocationError(ChangeTrackerError):
    """Location id does not exist."""

    def __init__(self, kind: str, location_id: Any):
        self.kind = kind
        self.location_id = location_id
        super().__init__(f"Unknown {kind}: {location_id!r}")


class DuplicateRoleError(ChangeTrackerError):
    """Role name is already taken."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Role '{name}' already exists")


class UnknownRoleError(ChangeTrackerError):
    """Role name does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown role: '{name}'")


class LocationMismatchError(ChangeTrackerError):
    """A child location does not lie inside the given parent."""

    def __init__(self, kind: str, location_id: Any, parent_kind: str, parent_id: Any):
        self.kind = kind
        self.location_id = location_id
        self.parent_kind = parent_kind
        self.parent_id = parent_id
        super().__init__(f"{kind} {location_id!r} is not in {parent_kind} {parent_id!r}")
