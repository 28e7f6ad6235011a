"""Fixed-window counters in Redis, used to budget inbound socket events."""

from __future__ import annotations

import time
from typing import Optional

from trofify.infra.redis import redis_client


def window_key(kind: str, actor_id: str, window_seconds: int, now: float) -> str:
	return f"rl:{kind}:{actor_id}:{int(now // window_seconds)}:{window_seconds}"


async def allow(
	kind: str,
	actor_id: str,
	*,
	limit: int,
	window_seconds: int = 60,
	now: Optional[float] = None,
) -> bool:
	"""Count one hit for ``actor_id`` and report whether it is within ``limit``."""
	if limit <= 0:
		return False
	window = max(1, int(window_seconds))
	key = window_key(kind, actor_id, window, time.time() if now is None else now)
	async with redis_client.pipeline(transaction=True) as pipe:
		pipe.incr(key)
		pipe.expire(key, window)
		hits, _ = await pipe.execute()
	return int(hits) <= limit
