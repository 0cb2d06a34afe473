from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import ClassVar, Optional


def _float_from_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid {name}; must be a number") from exc
    if value <= 0:
        raise ValueError(f"Invalid {name}; must be positive")
    return value


@dataclass(frozen=True)
class GcpingConfig:
    """Runtime configuration shared by the provisioning and discovery runs.

    `token` is an OAuth2 bearer token. Discovery requires it; provisioning falls
    back to Application Default Credentials when it is missing.
    """

    project: str
    out_path: Path
    token: Optional[str] = None
    _DEFAULT_PROJECT: ClassVar[str] = "gcping-1369"
    _DEFAULT_OUT: ClassVar[str] = "config.js"
    _DEFAULT_HTTP_TIMEOUT_SECONDS: ClassVar[float] = 60.0
    http_timeout_seconds: float = _DEFAULT_HTTP_TIMEOUT_SECONDS

    @staticmethod
    def from_env() -> "GcpingConfig":
        project = (os.getenv("GCPING_PROJECT") or "").strip() or GcpingConfig._DEFAULT_PROJECT
        out_path = Path(os.getenv("GCPING_OUT") or GcpingConfig._DEFAULT_OUT)
        token = (os.getenv("GCPING_TOKEN") or "").strip() or None

        return GcpingConfig(
            project=project,
            out_path=out_path,
            token=token,
            http_timeout_seconds=_float_from_env(
                "GCPING_HTTP_TIMEOUT_SECONDS", GcpingConfig._DEFAULT_HTTP_TIMEOUT_SECONDS
            ),
        )

    def with_overrides(
        self,
        *,
        project: Optional[str] = None,
        out_path: Optional[Path] = None,
        token: Optional[str] = None,
    ) -> "GcpingConfig":
        """Return a copy with command-line values layered over the env values."""

        changes: dict[str, object] = {}
        if project:
            changes["project"] = project
        if out_path is not None:
            changes["out_path"] = out_path
        if token:
            changes["token"] = token
        config = replace(self, **changes) if changes else self
        if not config.project.strip():
            raise ValueError("project must be provided")
        return config

    def require_token(self) -> str:
        if not self.token:
            raise ValueError("Must provide -tok (or set GCPING_TOKEN)")
        return self.token
