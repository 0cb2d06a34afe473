"""
Unit tests for the discovery fan-out and merge step.
"""
from __future__ import annotations

import asyncio

import pytest

from gcping.models.address import Address
from gcping.services.discovery import DiscoveryError, EndpointDiscoveryService, merge_addresses
from gcping.services.discovery.sources import COMPUTE_API, RUN_API, STORAGE_API

from conftest import FakeGcpClient


def _fixture_client() -> FakeGcpClient:
    return FakeGcpClient(
        {
            f"{COMPUTE_API}/projects/p/aggregated/addresses": [
                {"items": {"regions/us-east1": {"addresses": [{"address": "1.2.3.4"}]}}}
            ],
            f"{RUN_API}/projects/p/locations/-/services": [
                {
                    "items": [
                        {
                            "metadata": {"name": "ping", "labels": {"cloud.googleapis.com/location": "us-central1"}},
                            "status": {"address": {"url": "https://svc.example"}},
                        }
                    ]
                }
            ],
            f"{STORAGE_API}/b": [{"items": [{"id": "gcping-eu", "location": "EU"}]}],
        }
    )


class TestMergeAddresses:

    def test_sorted_by_region(self):
        merged = merge_addresses(
            [
                [Address(region="us-east1", url="http://1.2.3.4")],
                [Address(region="asia-east1", url="http://5.6.7.8")],
            ]
        )

        assert [a.region for a in merged] == ["asia-east1", "us-east1"]

    def test_duplicate_regions_are_kept_in_source_order(self):
        merged = merge_addresses(
            [
                [Address(region="us-east1", url="http://first")],
                [Address(region="us-east1", url="http://second")],
            ]
        )

        assert [a.url for a in merged] == ["http://first", "http://second"]


class TestEndpointDiscoveryService:

    @pytest.mark.asyncio
    async def test_three_sources_merged_and_sorted(self):
        service = EndpointDiscoveryService(client=_fixture_client(), project="p")

        addresses = await service.discover_addresses()

        assert addresses == [
            Address(region="eu-storage", url="https://storage.googleapis.com/gcping-eu"),
            Address(region="us-central1-cloudrun", url="https://svc.example"),
            Address(region="us-east1", url="http://1.2.3.4"),
        ]

    @pytest.mark.asyncio
    async def test_one_failing_source_cancels_the_rest(self):
        cancelled = asyncio.Event()

        async def slow(client, project):
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return []

        async def broken(client, project):
            raise DiscoveryError("run: invalid JSON response")

        service = EndpointDiscoveryService(
            client=FakeGcpClient(),
            project="p",
            sources=[("slow", slow), ("broken", broken)],
        )

        with pytest.raises(DiscoveryError):
            await service.discover_addresses()
        assert cancelled.is_set()

    def test_project_required(self):
        with pytest.raises(ValueError):
            EndpointDiscoveryService(client=FakeGcpClient(), project="")
