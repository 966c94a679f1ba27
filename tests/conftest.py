from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

# Pytest only picks up fixtures from conftest.py files. The demo routes live in
# tests/routes.py and are registered as a plugin so their fixtures are visible.
pytest_plugins = ["tests.routes"]


class RecordingSink:
    """Error sink that keeps every call for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def error(self, message: str, payload: Any) -> None:
        self.calls.append((message, dict(payload)))


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_client() -> Callable[[FastAPI], AsyncClient]:
    """Factory for an HTTP client bound to an arbitrary app (no network)."""

    def build(app: FastAPI, *, raise_app_exceptions: bool = True) -> AsyncClient:
        return AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions),
            base_url="http://test",
        )

    return build


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """HTTP client for the demo app in tests/routes.py."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
