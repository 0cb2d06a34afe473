from __future__ import annotations

import aiohttp

from gcping.services.compute_service import ComputeService
from gcping.services.config import GcpingConfig, SubnetSetupConfig
from gcping.services.config_renderer import ConfigRenderer
from gcping.services.discovery import EndpointDiscoveryService
from gcping.services.gcp_client import GcpClient
from gcping.services.setup.subnet_setup_service import SubnetSetupService


def get_http_session(config: GcpingConfig) -> aiohttp.ClientSession:
    """New aiohttp session for one run; the caller closes it."""

    return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=config.http_timeout_seconds))


def get_gcp_client(*, session: aiohttp.ClientSession, token: str) -> GcpClient:
    return GcpClient(session=session, token=token)


def get_compute_service(*, client: GcpClient, config: GcpingConfig) -> ComputeService:
    return ComputeService(client=client, project=config.project)


def get_subnet_setup_service(*, compute: ComputeService, subnet_config: SubnetSetupConfig) -> SubnetSetupService:
    return SubnetSetupService(compute=compute, config=subnet_config)


def get_endpoint_discovery_service(*, client: GcpClient, config: GcpingConfig) -> EndpointDiscoveryService:
    return EndpointDiscoveryService(client=client, project=config.project)


def get_config_renderer() -> ConfigRenderer:
    return ConfigRenderer()
