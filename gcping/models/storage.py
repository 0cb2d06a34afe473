from __future__ import annotations

from pydantic import BaseModel, Field


class Bucket(BaseModel):
    id: str
    location: str = ""


class BucketList(BaseModel):
    items: list[Bucket] = Field(default_factory=list)
