"""Read-only user listing for operational debugging."""

from __future__ import annotations

from typing import List, Protocol

from trofify.infra.postgres import get_pool


class UserDirectory(Protocol):
	async def list_users(self) -> List[dict]:
		...


class PostgresUserDirectory:
	async def list_users(self) -> List[dict]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch("SELECT id, email, user_type FROM users")
		return [
			{"id": str(row["id"]), "email": row["email"], "user_type": row["user_type"]}
			for row in rows
		]


class InMemoryUserDirectory:
	def __init__(self) -> None:
		self._users: List[dict] = []

	def add(self, user_id: str, email: str, user_type: str) -> None:
		self._users.append({"id": user_id, "email": email, "user_type": user_type})

	async def list_users(self) -> List[dict]:
		return [dict(user) for user in self._users]
