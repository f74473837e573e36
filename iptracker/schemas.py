from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class HitRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    key: str = Field(min_length=1, max_length=256)


class HitResponse(BaseModel):
    key: str
    count: int
    ranked: bool


class TopEntry(BaseModel):
    key: str
    count: int


class TopResponse(BaseModel):
    limit: int
    size: int
    entries: list[TopEntry]


class ResetResponse(BaseModel):
    status: str = "reset"
    cleared_keys: int
