from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from pydantic import ValidationError

from gcping.models.compute import Operation, RegionList, Subnetwork
from gcping.services.gcp_client import GcpApiError, GcpClient


logger = logging.getLogger(__name__)

COMPUTE_API = "https://compute.googleapis.com/compute/v1"


class ComputeServiceError(RuntimeError):
    pass


class SubnetworkAlreadyExistsError(ComputeServiceError):
    pass


class OperationFailedError(ComputeServiceError):
    pass


class OperationTimeoutError(ComputeServiceError):
    pass


class ComputeService:
    """Compute Engine control-plane calls used by subnet provisioning.

    Only the handful of endpoints the provisioner needs: list regions, insert a
    subnetwork, and block on the regional operation the insert returns.
    """

    # The operations.wait endpoint returns after at most ~2 minutes even if the
    # operation is still running.
    _WAIT_REQUEST_TIMEOUT_SECONDS: float = 150.0
    _OPERATION_POLL_INTERVAL_SECONDS: float = 2.0

    def __init__(self, *, client: GcpClient, project: str) -> None:
        if not project or not project.strip():
            raise ValueError("project must be provided")
        self._client = client
        self._project = project

    @property
    def project(self) -> str:
        return self._project

    def _project_url(self) -> str:
        return f"{COMPUTE_API}/projects/{self._project}"

    def network_url(self, network_name: str) -> str:
        return f"projects/{self._project}/global/networks/{network_name}"

    async def list_regions(self) -> list[str]:
        regions: list[str] = []
        try:
            async for page in self._client.iter_pages(f"{self._project_url()}/regions"):
                regions.extend(region.name for region in RegionList.model_validate(page).items)
        except (GcpApiError, ValidationError) as exc:
            raise ComputeServiceError(f"regions.list ({self._project}) failed: {exc}") from exc
        return regions

    async def insert_subnetwork(self, *, region: str, subnetwork: Subnetwork) -> Operation:
        """Start creating a subnetwork; returns the pending regional operation.

        Raises:
            SubnetworkAlreadyExistsError: the API answered 409 Conflict.
            GcpApiError: any other API failure.
        """

        url = f"{self._project_url()}/regions/{region}/subnetworks"
        try:
            payload = await self._client.post_json(url, body=subnetwork.to_request())
        except GcpApiError as exc:
            if exc.is_conflict:
                raise SubnetworkAlreadyExistsError(
                    f"Subnetwork already exists: {subnetwork.name} ({region})"
                ) from exc
            raise

        try:
            return Operation.model_validate(payload)
        except ValidationError as exc:
            raise GcpApiError(f"POST {url}: unexpected operation payload") from exc

    async def wait_for_region_operation(
        self,
        *,
        region: str,
        operation: Operation,
        timeout_seconds: float,
    ) -> Operation:
        """Block until a regional operation is DONE; raise if it failed or timed out."""

        deadline = time.monotonic() + timeout_seconds
        url = f"{self._project_url()}/regions/{region}/operations/{operation.name}/wait"

        current = operation
        while not current.is_done:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise OperationTimeoutError(
                    f"Timed out after {timeout_seconds:g}s waiting for operation {operation.name} ({region})"
                )

            try:
                payload = await asyncio.wait_for(
                    self._client.post_json(url, timeout_seconds=self._WAIT_REQUEST_TIMEOUT_SECONDS),
                    timeout=remaining,
                )
            except asyncio.TimeoutError as exc:
                raise OperationTimeoutError(
                    f"Timed out after {timeout_seconds:g}s waiting for operation {operation.name} ({region})"
                ) from exc
            except GcpApiError as exc:
                raise OperationFailedError(f"operation.wait ({region}) {operation.name}: {exc}") from exc

            try:
                current = Operation.model_validate(payload)
            except ValidationError as exc:
                raise OperationFailedError(f"operation.wait ({region}): unexpected payload") from exc

            if not current.is_done:
                logger.debug("operation %s (%s): %s", current.name, region, current.status)
                await asyncio.sleep(min(self._OPERATION_POLL_INTERVAL_SECONDS, max(deadline - time.monotonic(), 0)))

        message = current.error_message()
        if message:
            raise OperationFailedError(f"operation {current.name} ({region}) failed: {message}")
        return current

    async def regions_or(self, regions: Optional[list[str]]) -> list[str]:
        """Use explicitly requested regions, otherwise enumerate the project's regions."""

        if regions:
            return list(regions)
        return await self.list_regions()
