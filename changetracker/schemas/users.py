"""
User schemas.
"""

from uuid import UUID
from pydantic import BaseModel, EmailStr, Field

from changetracker.models.user import User


class UserResponse(BaseModel):
    """User with role names and direct location grants."""

    id: UUID
    email: str
    name: str
    is_active: bool
    roles: list[str] = []
    state_ids: list[int] = []
    lga_ids: list[int] = []
    ward_ids: list[int] = []

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            is_active=user.is_active,
            roles=sorted(role.name for role in user.roles),
            state_ids=sorted(state.id for state in user.state_grants),
            lga_ids=sorted(lga.id for lga in user.lga_grants),
            ward_ids=sorted(ward.id for ward in user.ward_grants),
        )


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    roles: list[str] = Field(default_factory=list)
    state_ids: list[int] = Field(default_factory=list)
    lga_ids: list[int] = Field(default_factory=list)
    ward_ids: list[int] = Field(default_factory=list)


class UserUpdate(BaseModel):
    """Fields left as None are not changed. A list replaces the current set."""
    name: str | None = Field(None, min_length=1, max_length=255)
    is_active: bool | None = None
    roles: list[str] | None = None
    state_ids: list[int] | None = None
    lga_ids: list[int] | None = None
    ward_ids: list[int] | None = None
