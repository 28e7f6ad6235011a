"""Connection registry: which user is reachable on which Socket.IO connection.

Only one connection is tracked per user and the most recent registration wins.
A connection that has been superseded keeps nothing in the registry, so when it
disconnects the user stays online under the newer connection.
"""

from __future__ import annotations

import asyncio
from typing import Dict, NamedTuple, Optional, Protocol

from trofify.infra import redis_presence
from trofify.infra.redis import RedisProxy, redis_client


class Registration(NamedTuple):
	previous_sid: Optional[str] = None
	# user whose mapping pointed at this sid before it was claimed by another user
	displaced_user: Optional[str] = None


class PresenceStore(Protocol):
	async def register(self, user_id: str, sid: str) -> Registration:
		"""Map user to sid; report the user's former sid and any user the sid displaced."""
		...

	async def unregister(self, sid: str) -> Optional[str]:
		"""Drop the sid and return its user when the sid was still current."""
		...

	async def connection_for(self, user_id: str) -> Optional[str]:
		...

	async def snapshot(self) -> Dict[str, str]:
		...


async def is_online(store: PresenceStore, user_id: str) -> bool:
	return await store.connection_for(user_id) is not None


class InMemoryPresenceStore:
	"""Process-local registry for single-instance deployments."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._by_user: Dict[str, str] = {}
		self._by_sid: Dict[str, str] = {}

	async def register(self, user_id: str, sid: str) -> Registration:
		async with self._lock:
			displaced: Optional[str] = None
			holder = self._by_sid.get(sid)
			if holder is not None and holder != user_id and self._by_user.get(holder) == sid:
				del self._by_user[holder]
				displaced = holder
			previous_sid = self._by_user.get(user_id)
			if previous_sid is not None and previous_sid != sid:
				self._by_sid.pop(previous_sid, None)
			self._by_user[user_id] = sid
			self._by_sid[sid] = user_id
			return Registration(previous_sid, displaced)

	async def unregister(self, sid: str) -> Optional[str]:
		async with self._lock:
			user_id = self._by_sid.pop(sid, None)
			if user_id is None:
				return None
			if self._by_user.get(user_id) != sid:
				return None
			del self._by_user[user_id]
			return user_id

	async def connection_for(self, user_id: str) -> Optional[str]:
		async with self._lock:
			return self._by_user.get(user_id)

	async def snapshot(self) -> Dict[str, str]:
		async with self._lock:
			return dict(self._by_user)


class RedisPresenceStore:
	"""Registry shared by every instance through Redis.

	Layout: hash ``presence:online`` maps user -> sid, and ``presence:sid:<sid>``
	holds the user for reverse lookups on disconnect. Both mutations run as Lua
	scripts so a register and an unregister touching the same user never
	interleave.
	"""

	def __init__(self, client: RedisProxy | None = None) -> None:
		self._redis = client or redis_client
		self._register_lua = self._redis.register_script(redis_presence.REGISTER_LUA)
		self._unregister_lua = self._redis.register_script(redis_presence.UNREGISTER_LUA)

	async def register(self, user_id: str, sid: str) -> Registration:
		previous_sid, displaced = await self._register_lua(
			keys=[redis_presence.ONLINE_HASH],
			args=[user_id, sid, redis_presence.SID_PREFIX],
			client=self._redis,
		)
		return Registration(previous_sid or None, displaced or None)

	async def unregister(self, sid: str) -> Optional[str]:
		user_id = await self._unregister_lua(
			keys=[redis_presence.ONLINE_HASH, redis_presence.sid_key(sid)],
			args=[sid],
			client=self._redis,
		)
		return user_id or None

	async def connection_for(self, user_id: str) -> Optional[str]:
		return await self._redis.hget(redis_presence.ONLINE_HASH, user_id)

	async def snapshot(self) -> Dict[str, str]:
		return dict(await self._redis.hgetall(redis_presence.ONLINE_HASH))
