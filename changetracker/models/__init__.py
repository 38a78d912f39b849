"""
Database models.
"""

from .base import Base, TimestampMixin
from .location import State, Lga, Ward, LOCATION_MODELS
from .role import Role, Permission, role_permissions
from .user import User, user_roles, user_state_grants, user_lga_grants, user_ward_grants
from .record import Record, ProjectOutlook

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Locations
    "State",
    "Lga",
    "Ward",
    "LOCATION_MODELS",
    # RBAC
    "Role",
    "Permission",
    "role_permissions",
    # Users
    "User",
    "user_roles",
    "user_state_grants",
    "user_lga_grants",
    "user_ward_grants",
    # Data
    "Record",
    "ProjectOutlook",
]
