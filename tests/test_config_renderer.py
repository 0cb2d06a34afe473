"""
Unit tests for config.js rendering and the stdout + file sinks.
"""
from __future__ import annotations

import io

import pytest

from gcping.models.address import Address
from gcping.services.config_renderer import ConfigRenderer, ConfigWriteError

ADDRESSES = [
    Address(region="eu-storage", url="https://storage.googleapis.com/gcping-eu"),
    Address(region="us-central1-cloudrun", url="https://svc.example"),
    Address(region="us-east1", url="http://1.2.3.4"),
]

EXPECTED = (
    "\n"
    "var _URLS = {\n"
    '  "eu-storage": "https://storage.googleapis.com/gcping-eu/ping",\n'
    '  "us-central1-cloudrun": "https://svc.example/ping",\n'
    '  "us-east1": "http://1.2.3.4/ping",\n'
    "};\n"
)


class BrokenStream(io.StringIO):
    def write(self, s):
        raise OSError("stdout closed")


class TestRender:

    def test_exact_shape(self):
        assert ConfigRenderer().render(ADDRESSES) == EXPECTED

    def test_rendering_is_deterministic(self):
        renderer = ConfigRenderer()

        assert renderer.render(ADDRESSES) == renderer.render(list(ADDRESSES))
        assert ConfigRenderer().render(ADDRESSES) == renderer.render(ADDRESSES)

    def test_empty(self):
        assert ConfigRenderer().render([]) == "\nvar _URLS = {\n};\n"

    def test_duplicate_regions_both_rendered(self):
        text = ConfigRenderer().render(
            [Address(region="us-east1", url="http://a"), Address(region="us-east1", url="http://b")]
        )

        assert '  "us-east1": "http://a/ping",\n  "us-east1": "http://b/ping",\n' in text

    def test_quotes_are_escaped(self):
        text = ConfigRenderer().render([Address(region='we"ird', url="http://x")])

        assert '"we\\"ird"' in text

    def test_query_strings_are_not_html_escaped(self):
        text = ConfigRenderer().render([Address(region="us-east1", url="http://1.2.3.4/?a=1&b=<2>")])

        assert '  "us-east1": "http://1.2.3.4/?a=1&b=<2>/ping",\n' in text


class TestWrite:

    def test_writes_both_sinks(self, tmp_path):
        out = tmp_path / "config.js"
        stdout = io.StringIO()

        ConfigRenderer().write(EXPECTED, out_path=out, stdout=stdout)

        assert stdout.getvalue() == EXPECTED
        assert out.read_text(encoding="utf-8") == EXPECTED

    def test_file_failure_still_writes_stdout(self, tmp_path):
        out = tmp_path / "missing-dir" / "config.js"
        stdout = io.StringIO()

        with pytest.raises(ConfigWriteError):
            ConfigRenderer().write(EXPECTED, out_path=out, stdout=stdout)
        assert stdout.getvalue() == EXPECTED

    def test_stdout_failure_still_writes_file(self, tmp_path):
        out = tmp_path / "config.js"

        with pytest.raises(ConfigWriteError, match="stdout"):
            ConfigRenderer().write(EXPECTED, out_path=out, stdout=BrokenStream())
        assert out.read_text(encoding="utf-8") == EXPECTED


class TestCheckDestination:

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ConfigWriteError):
            ConfigRenderer.check_destination(tmp_path / "nope" / "config.js")

    def test_directory_as_output(self, tmp_path):
        with pytest.raises(ConfigWriteError):
            ConfigRenderer.check_destination(tmp_path)

    def test_ok(self, tmp_path):
        ConfigRenderer.check_destination(tmp_path / "config.js")
