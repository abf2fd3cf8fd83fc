"""
Pytest configuration and shared fixtures.

Contains the fake clock, a fake collector/auth server and test settings.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from snaplink.config import CollectorSettings, Settings, StoreSettings
from snaplink.core.store import KeyStore


class FakeClock:
    """Settable clock returning timezone-aware UTC datetimes."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeCollector:
    """
    Auth endpoint and log collector in one aiohttp app.

    Responses are configurable per test; every request is recorded.
    """

    def __init__(self) -> None:
        self.auth_status = 200
        self.auth_body: Any = {"access_token": "test-token-abcdef123456", "expires_in": 3600}
        self.log_status = 202
        self.log_delay = 0.0
        self.auth_requests: List[Dict[str, Any]] = []
        self.log_requests: List[Dict[str, Any]] = []
        self.server: Optional[TestServer] = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/auth", self._auth)
        app.router.add_post("/logs", self._logs)
        return app

    async def _auth(self, request: web.Request) -> web.Response:
        self.auth_requests.append(await request.json())
        if isinstance(self.auth_body, str):
            return web.Response(status=self.auth_status, text=self.auth_body)
        return web.json_response(self.auth_body, status=self.auth_status)

    async def _logs(self, request: web.Request) -> web.Response:
        self.log_requests.append({
            "body": await request.json(),
            "authorization": request.headers.get("Authorization"),
        })
        if self.log_delay:
            await asyncio.sleep(self.log_delay)
        return web.json_response({"ok": True}, status=self.log_status)

    @property
    def auth_url(self) -> str:
        assert self.server is not None
        return str(self.server.make_url("/auth"))

    @property
    def log_url(self) -> str:
        assert self.server is not None
        return str(self.server.make_url("/logs"))

    def settings(self, **overrides: Any) -> CollectorSettings:
        """Collector settings pointing at this server."""
        values: Dict[str, Any] = {
            "log_url": self.log_url,
            "auth_url": self.auth_url,
            "timeout_seconds": 2.0,
            "email": "dev@example.com",
            "name": "Dev Example",
            "roll_no": "42",
            "access_code": "abc",
            "client_id": "client-1",
            "client_secret": "s3cret",
        }
        values.update(overrides)
        return CollectorSettings(**values)


@asynccontextmanager
async def running_collector() -> AsyncIterator[FakeCollector]:
    """Start a FakeCollector on a local port for the duration of the block."""
    collector = FakeCollector()
    async with TestServer(collector.build_app()) as server:
        collector.server = server
        yield collector


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store_settings() -> StoreSettings:
    return StoreSettings(default_validity_days=30, shortcode_length=6, collision_warning_threshold=5)


@pytest.fixture
def store(store_settings: StoreSettings, clock: FakeClock) -> KeyStore:
    """Key store on a fake clock with no log shipper."""
    return KeyStore(store_settings, clock=clock)


@pytest.fixture
def app_settings() -> Settings:
    """App settings with shipping disabled so tests never leave the process."""
    return Settings(
        public_base_url="http://sho.rt",
        log_level="DEBUG",
        store=StoreSettings(default_validity_days=30),
        collector=CollectorSettings(enabled=False),
    )


@pytest.fixture
def collector_server() -> Any:
    """Factory for a running FakeCollector: ``async with collector_server() as c``."""
    return running_collector
