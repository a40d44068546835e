import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

from watchparty.infra import postgres
from watchparty.infra.documents import reset_memory_state
from watchparty.main import app
from watchparty.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from watchparty.infra.redis import redis_client, set_redis_client
	original = redis_client.client
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
	postgres.set_pool(None)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""API tests authenticate via X-User-Id headers, which are only accepted in dev mode."""
	original_env = settings.environment
	original_merge = settings.playback_merge_fields
	settings.environment = "dev"
	settings.playback_merge_fields = False
	try:
		yield
	finally:
		settings.environment = original_env
		settings.playback_merge_fields = original_merge


@pytest.fixture(autouse=True)
def memory_store():
	reset_memory_state()
	yield
	reset_memory_state()


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
