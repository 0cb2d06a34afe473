from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from gcping.models.address import Address
from gcping.models.compute import AddressAggregatedList
from gcping.models.run import ServiceList
from gcping.models.storage import BucketList
from gcping.services.compute_service import COMPUTE_API
from gcping.services.gcp_client import GcpApiError, GcpClient


logger = logging.getLogger(__name__)

RUN_API = "https://run.googleapis.com/v1"
STORAGE_API = "https://storage.googleapis.com/storage/v1"
STORAGE_PUBLIC_URL = "https://storage.googleapis.com"

PING_SERVICE_NAME = "ping"
BUCKET_PREFIX = "gcping-"

_ModelT = TypeVar("_ModelT", bound=BaseModel)

AddressSource = Callable[[GcpClient, str], Awaitable[list[Address]]]


class DiscoveryError(RuntimeError):
    pass


def _run_continue_token(payload: dict[str, Any]) -> Optional[str]:
    metadata = payload.get("metadata")
    if isinstance(metadata, dict):
        return metadata.get("continue") or None
    return None


async def _fetch_pages(
    client: GcpClient,
    model: type[_ModelT],
    *,
    source: str,
    url: str,
    params: Optional[dict[str, str]] = None,
    **page_kwargs: Any,
) -> list[_ModelT]:
    pages: list[_ModelT] = []
    try:
        async for payload in client.iter_pages(url, params=params, **page_kwargs):
            pages.append(model.model_validate(payload))
    except GcpApiError as exc:
        raise DiscoveryError(f"{source}: {exc}") from exc
    except ValidationError as exc:
        raise DiscoveryError(f"{source}: malformed response from {url}: {exc}") from exc
    return pages


async def compute_addresses(client: GcpClient, project: str) -> list[Address]:
    """Reserved regional addresses of the ping VMs, one per region."""

    url = f"{COMPUTE_API}/projects/{project}/aggregated/addresses"
    addresses: list[Address] = []
    seen: set[str] = set()
    for page in await _fetch_pages(client, AddressAggregatedList, source="compute", url=url):
        for scope, scoped in page.items.items():
            if not scoped.addresses:
                # Regions with nothing reserved only carry a warning block.
                logger.debug("compute: no addresses in %s", scope)
                continue
            # A scope can continue onto the next page; only its first address counts.
            if scope in seen:
                continue
            seen.add(scope)
            region = scope.removeprefix("regions/")
            addresses.append(Address(region=region, url=f"http://{scoped.addresses[0].address}"))
    return addresses


async def run_addresses(client: GcpClient, project: str) -> list[Address]:
    """Cloud Run services named `ping`, in every location."""

    url = f"{RUN_API}/projects/{project}/locations/-/services"
    addresses: list[Address] = []
    for page in await _fetch_pages(
        client,
        ServiceList,
        source="run",
        url=url,
        page_token=_run_continue_token,
        page_param="continue",
    ):
        for service in page.items:
            if service.metadata.name != PING_SERVICE_NAME:
                continue
            addresses.append(
                Address(region=f"{service.metadata.location}-cloudrun", url=service.status.address.url)
            )
    return addresses


async def storage_addresses(client: GcpClient, project: str) -> list[Address]:
    """Storage buckets following the `gcping-` naming convention."""

    url = f"{STORAGE_API}/b"
    addresses: list[Address] = []
    for page in await _fetch_pages(client, BucketList, source="storage", url=url, params={"project": project}):
        for bucket in page.items:
            if not bucket.id.startswith(BUCKET_PREFIX):
                continue
            addresses.append(
                Address(region=f"{bucket.location.lower()}-storage", url=f"{STORAGE_PUBLIC_URL}/{bucket.id}")
            )
    return addresses


DEFAULT_SOURCES: tuple[tuple[str, AddressSource], ...] = (
    ("compute", compute_addresses),
    ("run", run_addresses),
    ("storage", storage_addresses),
)
