from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

from jinja2 import Environment

from gcping.models.address import Address


logger = logging.getLogger(__name__)

# Values are plain json.dumps strings, so `&` and `<` are written as-is.
_URLS_TEMPLATE = """
var _URLS = {
{% for address in addresses %}  {{ address.region | js_string }}: {{ (address.url ~ "/ping") | js_string }},
{% endfor %}};
"""


class ConfigWriteError(RuntimeError):
    pass


class ConfigRenderer:
    """Render discovered addresses into the `config.js` fragment the frontend loads."""

    def __init__(self) -> None:
        env = Environment(keep_trailing_newline=True)
        env.filters["js_string"] = json.dumps
        self._template = env.from_string(_URLS_TEMPLATE)

    def render(self, addresses: Sequence[Address]) -> str:
        return self._template.render(addresses=addresses)

    def write(self, text: str, *, out_path: Path, stdout: Optional[TextIO] = None) -> None:
        """Write the rendered text to stdout and to `out_path`.

        Both sinks are always attempted; if either fails, ConfigWriteError is
        raised after the other one has been written.
        """

        stream = stdout if stdout is not None else sys.stdout
        failures: list[str] = []

        try:
            stream.write(text)
            stream.flush()
        except (OSError, ValueError) as exc:
            logger.error("Writing config to stdout failed: %s", exc)
            failures.append(f"stdout: {exc}")

        try:
            out_path.write_text(text, encoding="utf-8")
        except OSError as exc:
            logger.error("Writing config to %s failed: %s", out_path, exc)
            failures.append(f"{out_path}: {exc}")
        else:
            logger.info("Wrote %s (%d bytes)", out_path, len(text.encode("utf-8")))

        if failures:
            raise ConfigWriteError("Failed to write config: " + "; ".join(failures))

    @staticmethod
    def check_destination(out_path: Path) -> None:
        """Fail fast, before any API calls, if the output file can never be written."""

        parent = out_path.parent if str(out_path.parent) else Path(".")
        if not parent.is_dir():
            raise ConfigWriteError(f"Output directory does not exist: {parent}")
        if out_path.exists() and out_path.is_dir():
            raise ConfigWriteError(f"Output path is a directory: {out_path}")
