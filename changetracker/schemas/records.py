"""
Record schemas.
"""

from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class RecordCreate(BaseModel):
    """New (or replacement) record for this year and ward."""
    state_id: int
    lga_id: int
    ward_id: int
    data: dict[str, Any] = Field(default_factory=dict)


class RecordUpdate(BaseModel):
    """Full replacement of a record's location and data."""
    state_id: int
    lga_id: int
    ward_id: int | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class RecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    state_id: int
    lga_id: int
    ward_id: int | None
    year: int
    data: dict[str, Any]
