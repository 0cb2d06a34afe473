from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _ComputeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Region(_ComputeModel):
    name: str


class RegionList(_ComputeModel):
    items: list[Region] = Field(default_factory=list)


class Subnetwork(_ComputeModel):
    name: str
    network: str
    ip_cidr_range: str = Field(..., alias="ipCidrRange")

    def to_request(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class OperationErrorItem(_ComputeModel):
    code: Optional[str] = None
    message: Optional[str] = None


class OperationError(_ComputeModel):
    errors: list[OperationErrorItem] = Field(default_factory=list)


class Operation(_ComputeModel):
    """Subset of a compute `Operation` resource needed to wait on it."""

    name: str
    status: str = "PENDING"
    error: Optional[OperationError] = None

    @property
    def is_done(self) -> bool:
        return self.status.upper() == "DONE"

    def error_message(self) -> Optional[str]:
        if self.error is None or not self.error.errors:
            return None
        return "; ".join(
            f"{item.code or 'UNKNOWN'}: {item.message or ''}".strip() for item in self.error.errors
        )


class ReservedAddress(_ComputeModel):
    address: str


class AddressesScopedList(_ComputeModel):
    addresses: list[ReservedAddress] = Field(default_factory=list)


class AddressAggregatedList(_ComputeModel):
    # Keys look like "regions/us-east1" (or "global").
    items: dict[str, AddressesScopedList] = Field(default_factory=dict)
