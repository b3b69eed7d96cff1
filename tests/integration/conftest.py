"""Integration test fixtures using Docker.

Starts a throwaway Redis container for the session. Tests are skipped when
Docker is not available.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Iterator
from urllib.parse import urlparse

import pytest
import pytest_asyncio

from relcache.cache.redis import RelevantCache

REDIS_IMAGE = "redis:7-alpine"


def _docker_host(client) -> str:
    """Resolve the host to connect to published container ports."""
    base_url = client.api.base_url
    if base_url.startswith(("unix://", "npipe://", "http+docker://")):
        return "localhost"
    return urlparse(base_url).hostname or "localhost"


def _published_port(container, container_port: int) -> int:
    container.reload()
    key = f"{container_port}/tcp"
    ports = container.attrs["NetworkSettings"]["Ports"].get(key)
    if not ports:
        raise RuntimeError(f"Port {key} not exposed on container {container.short_id}")
    return int(ports[0]["HostPort"])


@pytest.fixture(scope="session")
def docker_client():
    """Create a Docker client or skip if Docker is unavailable."""
    docker = pytest.importorskip("docker")
    try:
        client = docker.from_env()
        client.ping()
    except Exception as exc:
        pytest.skip(f"Docker not available: {exc}")
    yield client
    client.close()


@pytest.fixture(scope="session")
def redis_url(docker_client) -> Iterator[str]:
    """Start Redis for the test session and return its URL."""
    container = docker_client.containers.run(REDIS_IMAGE, detach=True, ports={"6379/tcp": None})
    try:
        host = _docker_host(docker_client)
        # The port mapping can lag behind container start
        deadline = time.monotonic() + 10
        while True:
            try:
                port = _published_port(container, 6379)
                break
            except RuntimeError:
                if time.monotonic() > deadline:
                    raise
                time.sleep(0.2)
        yield f"redis://{host}:{port}/0"
    finally:
        container.remove(force=True, v=True)


async def _wait_for_redis(url: str, timeout: float = 15.0) -> RelevantCache:
    deadline = time.monotonic() + timeout
    while True:
        try:
            return await RelevantCache.connect(url)
        except Exception:
            if time.monotonic() > deadline:
                raise
            await asyncio.sleep(0.2)


@pytest_asyncio.fixture
async def cache(redis_url: str) -> AsyncIterator[RelevantCache]:
    """Connected cache on an empty database."""
    cache = await _wait_for_redis(redis_url)
    await cache.client.flushdb()
    yield cache
    await cache.client.flushdb()  # Clean up after each test
    await cache.close()
