import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
import socketio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from trofify.container import build_container, set_container
from trofify.infra import postgres
from trofify.main import app
from trofify.realtime import emitter
from trofify.realtime.namespace import RealtimeNamespace
from trofify.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from trofify.infra.redis import redis_client, set_redis_client
	original = redis_client._client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings(monkeypatch):
	"""Run every test against the in-memory backends with default limits."""
	monkeypatch.setattr(settings, "environment", "dev")
	monkeypatch.setattr(settings, "storage_backend", "memory")
	monkeypatch.setattr(settings, "presence_backend", "memory")
	monkeypatch.setattr(settings, "socket_rate_limit_enabled", True)
	monkeypatch.setattr(settings, "socket_event_limit", 60)
	monkeypatch.setattr(settings, "debug_endpoints_enabled", True)


@pytest.fixture(autouse=True)
def container():
	services = build_container(storage_backend="memory", presence_backend="memory")
	set_container(services)
	try:
		yield services
	finally:
		set_container(None)


@pytest.fixture
def namespace():
	server = socketio.AsyncServer(async_mode="asgi")
	ns = RealtimeNamespace()
	server.register_namespace(ns)
	ns.emit = AsyncMock()
	ns.enter_room = AsyncMock()
	ns.leave_room = AsyncMock()
	emitter.set_namespace(ns)
	try:
		yield ns
	finally:
		emitter.set_namespace(None)


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
