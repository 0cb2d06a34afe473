from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Address(BaseModel):
    """One discovered ping deployment: a region label and its base URL."""

    model_config = ConfigDict(frozen=True)

    region: str = Field(..., description="Region label, e.g. us-east1 or eu-storage")
    url: str = Field(..., description="Base URL; the rendered config appends /ping")
