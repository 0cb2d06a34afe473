"""Endpoint discovery across Compute Engine, Cloud Run and Cloud Storage."""

from gcping.services.discovery.endpoint_discovery_service import EndpointDiscoveryService, merge_addresses
from gcping.services.discovery.sources import (
    DEFAULT_SOURCES,
    DiscoveryError,
    compute_addresses,
    run_addresses,
    storage_addresses,
)

__all__ = [
    "DEFAULT_SOURCES",
    "DiscoveryError",
    "EndpointDiscoveryService",
    "compute_addresses",
    "merge_addresses",
    "run_addresses",
    "storage_addresses",
]
