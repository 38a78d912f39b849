"""
Access schemas.
"""

from typing import Literal
from uuid import UUID
from pydantic import BaseModel, Field, model_validator


ResourceType = Literal["state", "lga", "ward", "record", "project_outlook"]


class AccessSummary(BaseModel):
    """What the current user can do and where."""

    user_id: UUID
    email: str
    is_admin: bool
    roles: list[str]
    permissions: list[str]
    state_ids: list[int]
    lga_ids: list[int]
    ward_ids: list[int]


class AccessCheckRequest(BaseModel):
    """
    Ask whether the current user holds a permission.

    resource_type and resource_id go together; omit both for a plain
    feature gate check.
    """

    permission: str = Field(..., min_length=1, max_length=100)
    resource_type: ResourceType | None = None
    resource_id: int | None = None

    @model_validator(mode="after")
    def check_resource_pair(self) -> "AccessCheckRequest":
        if (self.resource_type is None) != (self.resource_id is None):
            raise ValueError("resource_type and resource_id must be given together")
        return self


class AccessCheckResponse(BaseModel):
    permission: str
    allowed: bool
