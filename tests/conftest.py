"""
Root conftest.py for response analyzer tests.

This file contains shared fixtures and pytest configuration
that applies to all test modules.
"""

import sys
from pathlib import Path
from typing import Any, Callable, List
from unittest.mock import patch

import httpx
import pytest

# Ensure the project root is in the path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from api.shared.settings import get_settings


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "proxy: mark test as exercising the backend relay",
    )


def pytest_collection_modifyitems(config, items):
    """Mark route tests that go through the relay."""
    for item in items:
        if "proxy" in item.name.lower() or "relay" in str(item.fspath):
            item.add_marker(pytest.mark.proxy)


# ============================================================================
# Fake backend
# ============================================================================


class FakeBackend:
    """Records upstream requests and answers them with a configurable handler."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={"success": True})
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def reply(self, status_code: int = 200, **kwargs: Any) -> None:
        self.handler = lambda request: httpx.Response(status_code, **kwargs)

    def fail(self, exc: Exception) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc
        self.handler = handler

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Start every test from the default backend settings."""
    for name in (
        "BACKEND_URL",
        "BACKEND_TIMEOUT",
        "BACKEND_MAX_RETRIES",
        "BACKEND_RETRY_BACKOFF",
        "BACKEND_RETRY_MAX_DELAY",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def backend():
    """Route every relay call to an in-process FakeBackend."""
    fake = FakeBackend()

    def create_client(settings):
        return httpx.AsyncClient(
            base_url=settings.backend_url,
            timeout=settings.timeout,
            transport=httpx.MockTransport(fake),
        )

    with patch("api.shared.relay._create_client", create_client):
        yield fake
