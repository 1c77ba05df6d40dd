"""Shared test fixtures for Packsmith."""

from __future__ import annotations

import hashlib
import os
import threading
import time
from collections import Counter
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from packsmith.config import BuildSettings
from packsmith.core.content_cache import ContentCache
from packsmith.core.dependency_resolver import DependencyResolver
from packsmith.core.filesystem import FilesystemLifecycleManager
from packsmith.core.link_publisher import LinkPublisher
from packsmith.models.context import BuildContext
from packsmith.models.manifest import ModpackManifest
from packsmith.stages.base import StageServices


def sha1_hex(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


# ---------------------------------------------------------------------------
# Fake artifact server
# ---------------------------------------------------------------------------


class ArtifactServer:
    """In-memory HTTP origin for ``httpx.MockTransport``.

    ``artifacts`` maps URL -> body. ``failures`` maps URL -> list of status
    codes (or exceptions) returned before the body is served.
    """

    def __init__(self) -> None:
        self.artifacts: dict[str, bytes] = {}
        self.failures: dict[str, list[int | Exception]] = {}
        self.delay_seconds = 0.0
        self.requests: Counter[str] = Counter()
        self._lock = threading.Lock()

    def add(self, url: str, body: bytes) -> str:
        """Serve *body* at *url*; returns its SHA-1."""
        self.artifacts[url] = body
        return sha1_hex(body)

    def fail(self, url: str, *outcomes: int | Exception) -> None:
        self.failures.setdefault(url, []).extend(outcomes)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        with self._lock:
            self.requests[url] += 1
            pending = self.failures.get(url)
            outcome = pending.pop(0) if pending else None
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None:
            return httpx.Response(outcome)
        if url not in self.artifacts:
            return httpx.Response(404)
        return httpx.Response(200, content=self.artifacts[url])

    @property
    def total_requests(self) -> int:
        return sum(self.requests.values())


@pytest.fixture
def artifact_server() -> ArtifactServer:
    return ArtifactServer()


@pytest.fixture
def http_client(artifact_server: ArtifactServer):
    """An ``httpx.Client`` answering from the fake artifact server."""
    client = httpx.Client(transport=httpx.MockTransport(artifact_server.handler))
    yield client
    client.close()


# ---------------------------------------------------------------------------
# Settings and components
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's environment and .env out of the tests."""
    monkeypatch.delenv("SKIP_CHANGELOG", raising=False)
    for name in list(os.environ):
        if name.startswith("PACKSMITH_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """The modpack source tree root."""
    root = tmp_path / "src"
    root.mkdir()
    return root


@pytest.fixture
def settings(tmp_path: Path, source_dir: Path) -> BuildSettings:
    """BuildSettings with every directory under tmp_path and no backoff."""
    return BuildSettings(
        root_directory=source_dir,
        shared_dest_directory=tmp_path / "out" / "shared",
        temp_directory=tmp_path / "out" / "temp",
        mod_dest_directory=tmp_path / "out" / "shared",
        cache_directory=tmp_path / "cache",
        download_backoff_seconds=0,
        max_concurrent_downloads=4,
    )


@pytest.fixture
def cache(tmp_path: Path, http_client: httpx.Client) -> ContentCache:
    """A fresh ContentCache backed by the fake artifact server."""
    return ContentCache(tmp_path / "cache", client=http_client, backoff_seconds=0)


@pytest.fixture
def services(cache: ContentCache) -> StageServices:
    return StageServices(
        filesystem=FilesystemLifecycleManager(),
        cache=cache,
        resolver=DependencyResolver(),
        publisher=LinkPublisher(),
        max_concurrent_downloads=4,
    )


@pytest.fixture
def make_context(settings: BuildSettings) -> Callable[..., BuildContext]:
    """Factory fixture: build a BuildContext from settings plus overrides."""

    def _factory(manifest: dict[str, Any] | None = None, **overrides: Any) -> BuildContext:
        defaults: dict[str, Any] = {
            "paths": settings.to_paths(),
            "build_config": settings.to_build_config(),
            "manifest": ModpackManifest.model_validate(
                manifest if manifest is not None else {"name": "Test Pack", "version": "1.0.0"}
            ),
        }
        defaults.update(overrides)
        return BuildContext(**defaults)

    return _factory
