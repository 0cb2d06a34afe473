from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from google.auth.exceptions import GoogleAuthError

from gcping.models.address import Address
from gcping.services.compute_service import ComputeServiceError
from gcping.services.config import GcpingConfig, SubnetSetupConfig
from gcping.services.config_renderer import ConfigWriteError
from gcping.services.dependencies import (
    get_compute_service,
    get_config_renderer,
    get_endpoint_discovery_service,
    get_gcp_client,
    get_http_session,
    get_subnet_setup_service,
)
from gcping.services.discovery import DiscoveryError
from gcping.services.gcp_client import GcpApiError, default_access_token
from gcping.services.setup.subnet_setup_service import ProvisioningOutcome


logger = logging.getLogger(__name__)


def _ensure_logging(*, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    formatter = logging.Formatter("%(levelname)s: %(message)s")
    root = logging.getLogger()
    if not root.handlers:
        # Logs go to stderr so stdout carries only the rendered config.
        logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)
    else:
        root.setLevel(level)
        for handler in root.handlers:
            handler.setFormatter(formatter)


async def provision_subnets(
    config: GcpingConfig,
    subnet_config: SubnetSetupConfig,
    *,
    regions: Optional[Sequence[str]] = None,
) -> dict[str, ProvisioningOutcome]:
    """Create the ping subnet in every region (or only `regions`)."""

    token = config.token or await asyncio.to_thread(default_access_token)
    async with get_http_session(config) as session:
        client = get_gcp_client(session=session, token=token)
        compute = get_compute_service(client=client, config=config)
        targets = await compute.regions_or(list(regions) if regions else None)
        service = get_subnet_setup_service(compute=compute, subnet_config=subnet_config)
        return await service.setup_all_regions(targets)


async def discover_endpoints(config: GcpingConfig) -> list[Address]:
    token = config.require_token()
    async with get_http_session(config) as session:
        client = get_gcp_client(session=session, token=token)
        return await get_endpoint_discovery_service(client=client, config=config).discover_addresses()


async def regenerate_config(config: GcpingConfig) -> str:
    """Discover every endpoint, then render and write the config.

    Nothing is written unless discovery succeeds for all sources.
    """

    renderer = get_config_renderer()
    renderer.check_destination(config.out_path)
    addresses = await discover_endpoints(config)
    text = renderer.render(addresses)
    renderer.write(text, out_path=config.out_path)
    return text


def _run_networks(config: GcpingConfig, args: argparse.Namespace) -> int:
    try:
        subnet_config = SubnetSetupConfig.from_env()
    except ValueError as exc:
        logger.error("%s", exc)
        return 1
    if args.concurrency is not None:
        if args.concurrency <= 0:
            logger.error("--concurrency must be positive")
            return 1
        subnet_config = replace(subnet_config, concurrency=args.concurrency)

    try:
        outcomes = asyncio.run(provision_subnets(config, subnet_config, regions=args.region))
    except (ComputeServiceError, GcpApiError, GoogleAuthError) as exc:
        logger.error("%s", exc)
        return 1

    failed = sorted(region for region, outcome in outcomes.items() if outcome is ProvisioningOutcome.FAILED)
    if failed:
        logger.error("Subnet setup failed in: %s", ", ".join(failed))
        return 1
    return 0


def _run_regen(config: GcpingConfig, args: argparse.Namespace) -> int:
    try:
        config.require_token()
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    try:
        asyncio.run(regenerate_config(config))
    except DiscoveryError as exc:
        logger.error("Discovery failed: %s", exc)
        return 1
    except ConfigWriteError as exc:
        logger.error("%s", exc)
        return 1
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gcping",
        description="Provision gcping subnets and regenerate the region -> ping URL config.",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    common.add_argument(
        "--project",
        default=None,
        help="Project to use (default: $GCPING_PROJECT or gcping-1369)",
    )
    common.add_argument(
        "--tok",
        "--token",
        dest="tok",
        default=None,
        help="OAuth2 bearer token (default: $GCPING_TOKEN)",
    )

    subparsers = parser.add_subparsers(dest="command")

    networks = subparsers.add_parser("networks", parents=[common], help="Create the ping subnet in each region")
    networks.add_argument(
        "--region",
        action="append",
        default=None,
        help="Only provision this region (repeatable; default: every region in the project)",
    )
    networks.add_argument("--concurrency", type=int, default=None, help="Regions provisioned in parallel")
    networks.set_defaults(handler=_run_networks)

    regen = subparsers.add_parser("regen", parents=[common], help="Regenerate config.js from live endpoints")
    regen.add_argument("--out", type=Path, default=None, help="Output file (default: $GCPING_OUT or config.js)")
    regen.set_defaults(handler=_run_regen)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    _ensure_logging(verbose=args.verbose)

    try:
        config = GcpingConfig.from_env().with_overrides(
            project=args.project,
            token=args.tok,
            out_path=getattr(args, "out", None),
        )
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    return args.handler(config, args)


def networks_main() -> int:
    return main(["networks", *sys.argv[1:]])


def regen_main() -> int:
    return main(["regen", *sys.argv[1:]])


if __name__ == "__main__":
    sys.exit(main())
