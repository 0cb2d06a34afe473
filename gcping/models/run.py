from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

LOCATION_LABEL = "cloud.googleapis.com/location"


class _RunModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ServiceMetadata(_RunModel):
    name: str = ""
    labels: dict[str, str] = Field(default_factory=dict)

    @property
    def location(self) -> str:
        return self.labels.get(LOCATION_LABEL, "")


class ServiceAddress(_RunModel):
    url: str = ""


class ServiceStatus(_RunModel):
    address: ServiceAddress = Field(default_factory=ServiceAddress)


class Service(_RunModel):
    metadata: ServiceMetadata = Field(default_factory=ServiceMetadata)
    status: ServiceStatus = Field(default_factory=ServiceStatus)


class ServiceList(_RunModel):
    """Knative-style `ListServicesResponse` from the Cloud Run v1 API."""

    items: list[Service] = Field(default_factory=list)
