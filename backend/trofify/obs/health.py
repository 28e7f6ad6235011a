"""Liveness and readiness probes.

Readiness only probes the backends the current settings actually use, so a
memory-only deployment stays ready without Redis or Postgres.
"""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Awaitable, Callable, Dict, Tuple

from trofify.infra import postgres
from trofify.infra.redis import redis_client
from trofify.obs import metrics
from trofify.settings import settings

LOGGER = logging.getLogger(__name__)


async def _probe(
	name: str,
	check: Callable[[], Awaitable[Any]],
	mark: Callable[..., None],
	timeout: float,
) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(check(), timeout=timeout)
	except Exception as exc:  # pragma: no cover - depends on runtime
		mark(False)
		LOGGER.warning("%s readiness check failed", name, exc_info=True)
		return {"ok": False, "error": str(exc)}
	latency = perf_counter() - start
	mark(True, latency_seconds=latency)
	return {"ok": True, "latency_ms": round(latency * 1000, 2)}


async def _select_one() -> None:
	pool = await postgres.get_pool()
	async with pool.acquire() as conn:
		await conn.execute("SELECT 1")


async def _presence_summary() -> Dict[str, Any]:
	# imported lazily; the container pulls in every domain module
	from trofify.container import get_container

	try:
		online = len(await get_container().presence.snapshot())
	except Exception as exc:  # pragma: no cover - depends on runtime
		return {"ok": False, "backend": settings.presence_backend, "error": str(exc)}
	metrics.set_presence_online(online)
	return {"ok": True, "backend": settings.presence_backend, "online": online}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	checks: Dict[str, Dict[str, Any]] = {}
	if settings.uses_redis():
		checks["redis"] = await _probe("redis", redis_client.ping, metrics.mark_redis, 0.2)
	if settings.storage_backend == "postgres":
		checks["postgres"] = await _probe("postgres", _select_one, metrics.mark_postgres, 0.5)
	checks["presence"] = await _presence_summary()
	ok = all(check.get("ok") for check in checks.values())
	return (200 if ok else 503), {"status": "ok" if ok else "degraded", "checks": checks}
