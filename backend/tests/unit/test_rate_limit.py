import pytest

from trofify.infra.rate_limit import allow


@pytest.mark.asyncio
async def test_allows_up_to_limit_within_window():
	results = [await allow("socket_events", "sid-1", limit=3, window_seconds=10, now=1000.0) for _ in range(4)]

	assert results == [True, True, True, False]


@pytest.mark.asyncio
async def test_next_window_resets_budget():
	for _ in range(2):
		await allow("socket_events", "sid-1", limit=2, window_seconds=10, now=1000.0)

	assert not await allow("socket_events", "sid-1", limit=2, window_seconds=10, now=1005.0)
	assert await allow("socket_events", "sid-1", limit=2, window_seconds=10, now=1010.0)


@pytest.mark.asyncio
async def test_keys_expire_with_window(fake_redis):
	await allow("socket_events", "sid-1", limit=5, window_seconds=10, now=1000.0)

	ttl = await fake_redis.ttl("rl:socket_events:sid-1:100:10")
	assert 0 < ttl <= 10


@pytest.mark.asyncio
async def test_zero_limit_blocks():
	assert not await allow("socket_events", "sid-1", limit=0)
