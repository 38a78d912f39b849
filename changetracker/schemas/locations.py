"""
Location schemas.
"""

from pydantic import BaseModel, ConfigDict


class LgaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    state_id: int


class StateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    lgas: list[LgaResponse] = []


class WardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    lga_id: int
