from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Iterable, Sequence

from gcping.models.address import Address
from gcping.services.discovery.sources import DEFAULT_SOURCES, AddressSource
from gcping.services.gcp_client import GcpClient


logger = logging.getLogger(__name__)


def merge_addresses(groups: Iterable[Sequence[Address]]) -> list[Address]:
    """Concatenate per-source results and stable-sort them by region.

    Duplicate region labels are kept; both entries end up in the config.
    """

    merged = [address for group in groups for address in group]
    merged.sort(key=lambda address: address.region)

    duplicates = sorted(region for region, count in Counter(a.region for a in merged).items() if count > 1)
    if duplicates:
        logger.warning("Duplicate region labels across sources (kept as-is): %s", ", ".join(duplicates))
    return merged


class EndpointDiscoveryService:
    """Fan out to every address source and merge the results.

    All-or-nothing: if any source fails the others are cancelled and the error
    propagates, so no partial list is ever returned.
    """

    def __init__(
        self,
        *,
        client: GcpClient,
        project: str,
        sources: Sequence[tuple[str, AddressSource]] = DEFAULT_SOURCES,
    ) -> None:
        if not project or not project.strip():
            raise ValueError("project must be provided")
        self._client = client
        self._project = project
        self._sources = tuple(sources)

    async def discover_addresses(self) -> list[Address]:
        tasks = [
            asyncio.create_task(fetch(self._client, self._project), name=f"discover-{name}")
            for name, fetch in self._sources
        ]
        try:
            groups = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        for (name, _), group in zip(self._sources, groups):
            logger.info("Discovery: %s returned %d address(es)", name, len(group))

        addresses = merge_addresses(groups)
        logger.info("Discovery complete: project=%s addresses=%d", self._project, len(addresses))
        return addresses
