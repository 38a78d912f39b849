"""
Project outlook schemas.
"""

from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _not_in_past(year: int) -> int:
    if year < datetime.now(timezone.utc).year:
        raise ValueError("project_year must not be in the past")
    return year


class ProjectOutlookCreate(BaseModel):
    state_id: int
    lga_id: int
    outlook: float = Field(..., ge=1)
    project_year: int

    @field_validator("project_year")
    @classmethod
    def check_project_year(cls, value: int) -> int:
        return _not_in_past(value)


class ProjectOutlookUpdate(BaseModel):
    """Only the target and year can change; the location is fixed."""
    outlook: float = Field(..., ge=0)
    project_year: int

    @field_validator("project_year")
    @classmethod
    def check_project_year(cls, value: int) -> int:
        return _not_in_past(value)


class ProjectOutlookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    state_id: int
    lga_id: int
    outlook: float
    project_year: int
