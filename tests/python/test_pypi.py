"""Tests for the PyPI JSON API client."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from license_auditor.models.package import ParsedRequirement
from license_auditor.python.pypi import (
    enrich_with_pypi,
    fetch_pypi_metadata,
    map_with_concurrency,
    parse_pypi_payload,
)

REQUESTS_PAYLOAD = {
    "info": {
        "name": "requests",
        "version": "2.31.0",
        "license": "Apache 2.0",
        "license_expression": None,
        "classifiers": [
            "License :: OSI Approved :: Apache Software License",
            "Programming Language :: Python :: 3",
        ],
    }
}


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestParsePypiPayload:
    """Tests for parse_pypi_payload."""

    def test_valid_payload(self) -> None:
        """Test that license fields are extracted."""
        metadata = parse_pypi_payload(REQUESTS_PAYLOAD)
        assert metadata is not None
        assert metadata.name == "requests"
        assert metadata.license == "Apache 2.0"
        assert metadata.license_expression is None
        assert len(metadata.classifiers) == 2

    @pytest.mark.parametrize(
        "payload",
        [None, [], {}, {"info": None}, {"info": {"name": "x"}}, {"info": {"version": "1"}}],
    )
    def test_incomplete_payload(self, payload) -> None:
        """Test that payloads without name or version are rejected."""
        assert parse_pypi_payload(payload) is None


class TestFetchPypiMetadata:
    """Tests for fetch_pypi_metadata."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        """Test a 200 response against the release URL."""
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json=REQUESTS_PAYLOAD)

        async with _client(handler) as client:
            metadata = await fetch_pypi_metadata("requests", "2.31.0", client=client)

        assert metadata is not None
        assert metadata.version == "2.31.0"
        assert seen == ["https://pypi.org/pypi/requests/2.31.0/json"]

    @pytest.mark.asyncio
    async def test_creates_client_when_none_given(self) -> None:
        """Test that a temporary client is used without a shared one."""
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = REQUESTS_PAYLOAD

        with patch("license_auditor.python.pypi.httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                return_value=mock_response
            )

            metadata = await fetch_pypi_metadata("requests", "2.31.0")

        assert metadata is not None
        assert metadata.name == "requests"

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        """Test that a 404 yields None."""
        async with _client(lambda request: httpx.Response(404)) as client:
            assert await fetch_pypi_metadata("nope", "1.0", client=client) is None

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        """Test that a connection failure yields None."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        async with _client(handler) as client:
            assert await fetch_pypi_metadata("requests", "2.31.0", client=client) is None

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        """Test that a non-JSON body yields None."""
        async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
            assert await fetch_pypi_metadata("requests", "2.31.0", client=client) is None


class TestMapWithConcurrency:
    """Tests for map_with_concurrency."""

    @pytest.mark.asyncio
    async def test_bounded_and_ordered(self) -> None:
        """Test that every item is mapped once, in order, within the limit."""
        in_flight = 0
        peak = 0
        calls: list[int] = []

        async def mapper(item: int) -> int:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            calls.append(item)
            await asyncio.sleep(0.001 * (item % 3))
            in_flight -= 1
            return item * 10

        items = list(range(20))
        results = await map_with_concurrency(items, 3, mapper)

        assert results == [i * 10 for i in items]
        assert sorted(calls) == items
        assert peak <= 3

    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        """Test that no items means no work."""

        async def mapper(item: int) -> int:
            raise AssertionError("should not be called")

        assert await map_with_concurrency([], 4, mapper) == []


class TestEnrichWithPypi:
    """Tests for enrich_with_pypi."""

    @pytest.mark.asyncio
    async def test_enriches_by_normalized_name(self) -> None:
        """Test hits and misses keep the input order."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/pypi/requests/2.31.0/json":
                return httpx.Response(200, content=json.dumps(REQUESTS_PAYLOAD).encode())
            return httpx.Response(404)

        dependencies = [
            ParsedRequirement(
                raw_name="Requests",
                normalized_name="requests",
                version="2.31.0",
                source_file="requirements.txt",
            ),
            ParsedRequirement(
                raw_name="private_pkg",
                normalized_name="private-pkg",
                version="0.1",
                source_file="requirements.txt",
            ),
        ]

        async with _client(handler) as client:
            enriched = await enrich_with_pypi(dependencies, concurrency=2, client=client)

        assert [e.requirement.raw_name for e in enriched] == ["Requests", "private_pkg"]
        assert enriched[0].metadata is not None
        assert enriched[0].metadata.name == "requests"
        assert enriched[1].metadata is None
