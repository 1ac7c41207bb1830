"""PyPI JSON API client used to enrich pinned Python dependencies."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, NamedTuple, Optional, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, Field

from license_auditor.constants import (
    PYPI_BASE_URL,
    PYPI_MAX_CONCURRENT_REQUESTS,
    PYPI_REQUEST_TIMEOUT,
)
from license_auditor.models.package import ParsedRequirement

log = structlog.get_logger("license_auditor.python")

T = TypeVar("T")
R = TypeVar("R")


class PypiProjectMetadata(BaseModel):
    """License-relevant subset of a release's ``info`` object."""

    model_config = {"extra": "forbid"}

    name: str
    version: str
    license: Optional[str] = None
    license_expression: Optional[str] = None
    classifiers: list[str] = Field(default_factory=list)


class EnrichedDependency(NamedTuple):
    """A pinned dependency and its registry metadata, if it could be fetched."""

    requirement: ParsedRequirement
    metadata: Optional[PypiProjectMetadata]


def parse_pypi_payload(payload: Any) -> Optional[PypiProjectMetadata]:
    """Extract metadata from a PyPI JSON response body.

    Returns:
        PypiProjectMetadata, or None if ``info.name`` or ``info.version``
        is missing.
    """
    if not isinstance(payload, dict):
        return None
    info = payload.get("info")
    if not isinstance(info, dict):
        return None

    name = info.get("name")
    version = info.get("version")
    if not isinstance(name, str) or not name or not isinstance(version, str) or not version:
        return None

    classifiers = info.get("classifiers")
    license_value = info.get("license")
    expression = info.get("license_expression")
    return PypiProjectMetadata(
        name=name,
        version=version,
        license=license_value if isinstance(license_value, str) else None,
        license_expression=expression if isinstance(expression, str) else None,
        classifiers=[c for c in classifiers if isinstance(c, str)]
        if isinstance(classifiers, list)
        else [],
    )


async def fetch_pypi_metadata(
    name: str,
    version: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = PYPI_REQUEST_TIMEOUT,
) -> Optional[PypiProjectMetadata]:
    """Fetch the metadata of one release from the PyPI JSON API.

    Args:
        name: Normalized package name.
        version: Exact version.
        client: Optional httpx.AsyncClient to use. If not provided,
            a new client will be created.
        timeout: Request timeout in seconds.

    Returns:
        PypiProjectMetadata, or None on a non-200 response, a transport
        error, a timeout or an unusable payload.
    """
    url = f"{PYPI_BASE_URL}/{quote(name, safe='')}/{quote(version, safe='')}/json"

    async def do_fetch(c: httpx.AsyncClient) -> Optional[PypiProjectMetadata]:
        try:
            response = await c.get(url, timeout=httpx.Timeout(timeout))
        except httpx.HTTPError as e:
            log.debug("pypi.request_failed", url=url, error=str(e))
            return None

        if response.status_code != 200:
            log.debug("pypi.unexpected_status", url=url, status=response.status_code)
            return None

        try:
            payload = response.json()
        except ValueError:
            log.debug("pypi.invalid_payload", url=url)
            return None

        return parse_pypi_payload(payload)

    if client:
        return await do_fetch(client)

    async with httpx.AsyncClient() as new_client:
        return await do_fetch(new_client)


async def map_with_concurrency(
    items: list[T],
    limit: int,
    mapper: Callable[[T], Awaitable[R]],
) -> list[R]:
    """Apply an async mapper with at most ``limit`` calls in flight.

    A fixed pool of workers claims indices from a shared cursor, so every
    item is mapped exactly once and results keep the input order.

    Args:
        items: Items to map.
        limit: Maximum number of concurrent workers.
        mapper: Coroutine function applied to each item.

    Returns:
        Mapped results, one per item.
    """
    results: list[Optional[R]] = [None] * len(items)
    cursor = 0

    async def worker() -> None:
        nonlocal cursor
        while cursor < len(items):
            index = cursor
            cursor += 1
            results[index] = await mapper(items[index])

    worker_count = min(max(limit, 1), len(items))
    await asyncio.gather(*(worker() for _ in range(worker_count)))
    return results  # type: ignore[return-value]


async def enrich_with_pypi(
    dependencies: list[ParsedRequirement],
    concurrency: int = PYPI_MAX_CONCURRENT_REQUESTS,
    client: Optional[httpx.AsyncClient] = None,
) -> list[EnrichedDependency]:
    """Fetch PyPI metadata for every pinned dependency.

    Args:
        dependencies: Pinned requirements.
        concurrency: Maximum number of requests in flight.
        client: Optional shared httpx.AsyncClient.

    Returns:
        One EnrichedDependency per input, in input order.
    """

    async def enrich(c: httpx.AsyncClient) -> list[EnrichedDependency]:
        async def fetch_one(requirement: ParsedRequirement) -> EnrichedDependency:
            metadata = await fetch_pypi_metadata(
                requirement.normalized_name, requirement.version, client=c
            )
            return EnrichedDependency(requirement=requirement, metadata=metadata)

        return await map_with_concurrency(dependencies, concurrency, fetch_one)

    if client:
        return await enrich(client)

    async with httpx.AsyncClient() as new_client:
        return await enrich(new_client)
