from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Sequence

from tqdm import tqdm

from gcping.models.compute import Subnetwork
from gcping.services.compute_service import ComputeService, SubnetworkAlreadyExistsError
from gcping.services.config import SubnetSetupConfig
from gcping.services.gcp_client import GcpApiError
from gcping.services.setup.cidr_allocator import CidrAllocator

logger = logging.getLogger(__name__)


class ProvisioningOutcome(str, Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    # Every attempt failed without a conflict; the region has no subnet.
    ABANDONED = "abandoned"
    # The create succeeded but waiting on its operation raised.
    FAILED = "failed"


class SubnetSetupService:
    """Ensure one subnet exists in the shared network in each region.

    Nothing is known up front about which regions already have the subnet, so
    every region gets an insert: a 409 Conflict means it is already there. Any
    other insert error is treated as a possible CIDR clash and the next `/20`
    block is tried. Errors are not classified further, so permission or quota
    errors also burn through all attempts before the region is abandoned.
    """

    def __init__(self, *, compute: ComputeService, config: SubnetSetupConfig) -> None:
        self._compute = compute
        self._config = config

    def _subnetwork(self, cidr: str) -> Subnetwork:
        return Subnetwork(
            name=self._config.subnet_name,
            network=self._compute.network_url(self._config.network_name),
            ip_cidr_range=cidr,
        )

    async def create_subnet(self, region: str) -> ProvisioningOutcome:
        """Provision the subnet in a single region.

        Returns ALREADY_EXISTS or CREATED on success, ABANDONED once
        `max_attempts` inserts have failed. Operation wait failures
        (`OperationFailedError`, `OperationTimeoutError`) propagate.
        """

        if not region:
            raise ValueError("region must be provided")

        allocator = CidrAllocator(next_octet=self._config.first_octet, step=self._config.octet_step)
        for attempt in range(self._config.max_attempts):
            cidr = allocator.next()
            try:
                operation = await self._compute.insert_subnetwork(region=region, subnetwork=self._subnetwork(cidr))
            except SubnetworkAlreadyExistsError:
                logger.info("subnet.create (%s): already exists", region)
                return ProvisioningOutcome.ALREADY_EXISTS
            except GcpApiError as exc:
                logger.warning("subnet.insert (%s) attempt=%d cidr=%s: %s", region, attempt + 1, cidr, exc)
                continue

            await self._compute.wait_for_region_operation(
                region=region,
                operation=operation,
                timeout_seconds=self._config.operation_timeout_seconds,
            )
            logger.info("subnet.create (%s): ok (cidr=%s)", region, cidr)
            return ProvisioningOutcome.CREATED

        logger.warning(
            "subnet.create (%s): abandoned after %d attempts",
            region,
            self._config.max_attempts,
        )
        return ProvisioningOutcome.ABANDONED

    async def setup_all_regions(self, regions: Sequence[str]) -> dict[str, ProvisioningOutcome]:
        """Provision every region concurrently; one region failing does not stop the rest.

        Returns outcomes keyed by region, in the order the regions were given.
        """

        if not regions:
            logger.info("Subnet setup: no regions to provision")
            return {}

        semaphore = asyncio.Semaphore(max(1, self._config.concurrency))

        async def _setup_one(region: str) -> tuple[str, ProvisioningOutcome]:
            async with semaphore:
                try:
                    return (region, await self.create_subnet(region))
                except Exception as exc:
                    logger.error("subnet.create (%s): %s", region, exc)
                    return (region, ProvisioningOutcome.FAILED)

        logger.info(
            "Subnet setup: project=%s network=%s regions=%d",
            self._compute.project,
            self._config.network_name,
            len(regions),
        )
        tasks = [asyncio.create_task(_setup_one(region)) for region in regions]

        results: dict[str, ProvisioningOutcome] = {}
        for fut in tqdm(
            asyncio.as_completed(tasks),
            total=len(tasks),
            desc="Provisioning subnets",
            unit="region",
        ):
            region, outcome = await fut
            results[region] = outcome

        ordered = {region: results[region] for region in regions}
        counts = {outcome: 0 for outcome in ProvisioningOutcome}
        for outcome in ordered.values():
            counts[outcome] += 1
        logger.info(
            "Subnet setup complete: created=%d, already_exists=%d, abandoned=%d, failed=%d",
            counts[ProvisioningOutcome.CREATED],
            counts[ProvisioningOutcome.ALREADY_EXISTS],
            counts[ProvisioningOutcome.ABANDONED],
            counts[ProvisioningOutcome.FAILED],
        )
        return ordered
