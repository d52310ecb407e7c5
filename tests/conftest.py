"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as AiohttpTestServer

from log_portal.config import runtime
from log_portal.range_fetcher import RangeFetcher
from log_portal.rotation_manager import RotationManager
from log_portal.session import Session, open_live_file

LOG_URL = "http://logs.example.com/app/access.log"
LOG_PATH = "/logs/access.log"


@pytest.fixture(autouse=True)
def isolate_dotenv(monkeypatch):
    """Keep developer .env files out of configuration lookups."""
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", {})
    yield


class FrozenClock:
    """Callable clock returning a settable aware datetime."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def frozen_clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc))


@pytest.fixture
def file_session(tmp_path) -> Session:
    """Initialized session with only the file sink enabled."""
    session = Session(url=LOG_URL, interval=1, console_enabled=False, file_enabled=True, dir=str(tmp_path))
    session.initialize()
    session.file = open_live_file(session.live_path)
    session.rebuild_writer()
    yield session
    if session.file is not None and not session.file.closed:
        session.file.close()


@pytest.fixture
def fake_fetcher() -> MagicMock:
    fetcher = MagicMock(spec=RangeFetcher)
    fetcher.probe_size = AsyncMock()
    fetcher.fetch_range = AsyncMock()
    fetcher.close = AsyncMock()
    return fetcher


@pytest.fixture
def fake_rotation() -> MagicMock:
    return MagicMock(spec=RotationManager)


@pytest.fixture
def make_session() -> Callable[..., Session]:
    def _make(**overrides) -> Session:
        params = {"url": LOG_URL, "interval": 1, "console_enabled": False}
        params.update(overrides)
        session = Session(**params)
        session.initialize()
        return session

    return _make


class FakeLogServer:
    """In-process HTTP server serving a mutable byte string with Range support."""

    def __init__(self) -> None:
        self.body = b""
        self.head_status = 200
        self.get_status = None
        self.omit_length = False
        self.range_headers: list[str] = []
        self.server: AiohttpTestServer | None = None

    async def head(self, request: web.Request) -> web.StreamResponse:
        if self.head_status != 200:
            return web.Response(status=self.head_status)
        if self.omit_length:
            response = web.StreamResponse(status=200)
            response.enable_chunked_encoding()
            await response.prepare(request)
            return response
        return web.Response(body=self.body, headers={"Content-Length": str(len(self.body))})

    async def get(self, request: web.Request) -> web.Response:
        header = request.headers.get("Range", "")
        self.range_headers.append(header)
        if self.get_status is not None:
            return web.Response(status=self.get_status, body=self.body)
        start, end = header[len("bytes=") :].split("-")
        return web.Response(status=206, body=self.body[int(start) : int(end) + 1])

    def url(self) -> str:
        assert self.server is not None
        return str(self.server.make_url(LOG_PATH))


@pytest.fixture
async def log_server():
    fake = FakeLogServer()
    app = web.Application()
    app.router.add_route("HEAD", LOG_PATH, fake.head)
    app.router.add_route("GET", LOG_PATH, fake.get)
    fake.server = AiohttpTestServer(app)
    await fake.server.start_server()
    yield fake
    await fake.server.close()
