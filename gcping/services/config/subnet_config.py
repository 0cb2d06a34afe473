from __future__ import annotations

import os
from dataclasses import dataclass
from typing import ClassVar

from gcping.services.config.gcping_config import _float_from_env


@dataclass(frozen=True)
class SubnetSetupConfig:
    """Wiring for the per-region subnet provisioning loop.

    The CIDR scan walks `10.<octet>.0.0/20` blocks starting at `first_octet`,
    stepping `octet_step` after each failed insert, for at most `max_attempts`.
    """

    subnet_name: str = "subnet"
    network_name: str = "network"
    max_attempts: int = 40
    first_octet: int = 22
    octet_step: int = 2
    concurrency: int = 10
    _DEFAULT_OPERATION_TIMEOUT_SECONDS: ClassVar[float] = 300.0
    operation_timeout_seconds: float = _DEFAULT_OPERATION_TIMEOUT_SECONDS

    @staticmethod
    def from_env() -> "SubnetSetupConfig":
        return SubnetSetupConfig(
            subnet_name=(os.getenv("GCPING_SUBNET") or "").strip() or "subnet",
            network_name=(os.getenv("GCPING_NETWORK") or "").strip() or "network",
            operation_timeout_seconds=_float_from_env(
                "GCPING_OPERATION_TIMEOUT_SECONDS",
                SubnetSetupConfig._DEFAULT_OPERATION_TIMEOUT_SECONDS,
            ),
        )
