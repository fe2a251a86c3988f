"""Shared test fixtures for opencivic.

Provides an isolated config environment, a scripted fake API served
through :class:`httpx.MockTransport`, and a factory for clients wired to
it.  These fixtures are discovered by pytest automatically.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from opencivic.client import OpenCivicClient
from opencivic.models import Settings
from opencivic.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager keeps references to sys.stdout/sys.stderr, which CliRunner
    swaps out during a test.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _reset_cli_logging() -> None:
    """Drop log handlers the CLI callback installed on the ``opencivic`` logger."""
    yield
    logger = logging.getLogger("opencivic")
    for handler in list(logger.handlers):
        if getattr(handler, "_opencivic_cli", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at subdirectories of tmp_path, clears all
    OPENCIVIC_* environment variables and changes the working directory
    to tmp_path (so no stray opencivicdata.properties is picked up).
    """
    monkeypatch.setattr("opencivic.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache-home"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["OPENCIVIC_API_KEY", "OPENCIVIC_CACHE_DIR", "OPENCIVIC_BASE_URL"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


class FakeAPI:
    """Request handler for :class:`httpx.MockTransport` with canned routes.

    Routes are keyed by URL path.  Unknown paths answer 404.  Every request
    is recorded in :attr:`requests`.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def add_json(self, path: str, data: Any, status_code: int = 200) -> None:
        body = json.dumps(data).encode("utf-8")
        self.add_bytes(path, body, "application/json; charset=utf-8", status_code)

    def add_bytes(
        self,
        path: str,
        content: bytes,
        content_type: Optional[str] = "application/json",
        status_code: int = 200,
    ) -> None:
        headers = {"content-type": content_type} if content_type else {}
        self._routes[path] = lambda request: httpx.Response(
            status_code, headers=headers, content=content
        )

    def add_handler(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self._routes[path] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self._routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404)
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def fake_api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "responses"


@pytest.fixture
def make_client(fake_api: FakeAPI, cache_dir: Path) -> Callable[..., OpenCivicClient]:
    """Factory for clients talking to :class:`FakeAPI`.

    ``make_client()`` caches into ``cache_dir``; ``make_client(cache=False)``
    runs without a cache directory.
    """

    def _make(cache: bool = True, api_key: Optional[str] = "test-key") -> OpenCivicClient:
        settings = Settings(
            api_key=api_key,
            cache_dir=str(cache_dir) if cache else None,
            base_url="http://api.example.test",
        )
        return OpenCivicClient(settings, transport=fake_api.transport)

    return _make
