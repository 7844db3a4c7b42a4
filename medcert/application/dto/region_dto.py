from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CreateRegionRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    brigade_count: int = Field(..., gt=0)


class ResizeRegionRequest(BaseModel):
    region_id: int
    brigade_count: int = Field(..., gt=0)


class BrigadeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    region_id: int


class RegionResponse(BaseModel):
    id: int
    name: str
    version: int
    brigade_count: int
    slot_count: int
    brigades: list[BrigadeResponse] = Field(default_factory=list)
    created_at: datetime | None = None
