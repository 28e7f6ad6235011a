"""Persistence for notification read state."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Protocol

import asyncpg

from trofify.infra.postgres import get_pool

from .models import Notification


class NotificationRepository(Protocol):
    async def count_unread(self, user_id: str) -> int:
        ...

    async def mark_read(self, notification_id: int) -> Optional[str]:
        """Mark one notification read and return its owner, or None when it does not exist."""
        ...

    async def mark_all_read(self, user_id: str) -> int:
        ...

    async def list_for_user(self, user_id: str, *, limit: int = 30, offset: int = 0) -> List[Notification]:
        ...


class PostgresNotificationRepository:
    async def count_unread(self, user_id: str) -> int:
        pool = await get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT COUNT(*) AS count
                FROM notifications
                WHERE user_id = $1 AND is_read = FALSE
                """,
                user_id,
            )
            return int(row["count"]) if row else 0

    async def mark_read(self, notification_id: int) -> Optional[str]:
        pool = await get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                UPDATE notifications
                SET is_read = TRUE
                WHERE id = $1
                RETURNING user_id
                """,
                notification_id,
            )
            return str(row["user_id"]) if row else None

    async def mark_all_read(self, user_id: str) -> int:
        pool = await get_pool()
        async with pool.acquire() as conn:
            status = await conn.execute(
                """
                UPDATE notifications
                SET is_read = TRUE
                WHERE user_id = $1 AND is_read = FALSE
                """,
                user_id,
            )
        # asyncpg returns the command tag, e.g. "UPDATE 3"
        return int(status.split()[-1]) if status else 0

    async def list_for_user(self, user_id: str, *, limit: int = 30, offset: int = 0) -> List[Notification]:
        pool = await get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, user_id, actor_id, post_id, type, message, is_read, created_at
                FROM notifications
                WHERE user_id = $1
                ORDER BY created_at DESC
                LIMIT $2 OFFSET $3
                """,
                user_id,
                limit,
                offset,
            )
            return [self._map_row(row) for row in rows]

    def _map_row(self, row: asyncpg.Record) -> Notification:
        return Notification(
            id=int(row["id"]),
            user_id=str(row["user_id"]),
            actor_id=str(row["actor_id"]) if row["actor_id"] is not None else None,
            post_id=str(row["post_id"]) if row["post_id"] is not None else None,
            type=row["type"],
            message=row["message"],
            is_read=bool(row["is_read"]),
            created_at=row["created_at"],
        )


class InMemoryNotificationRepository:
    """Fallback store used for local runs and tests when Postgres is unavailable."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._items: Dict[int, Notification] = {}

    async def add(self, notification: Notification) -> None:
        async with self._lock:
            self._items[notification.id] = notification

    async def count_unread(self, user_id: str) -> int:
        async with self._lock:
            return sum(1 for n in self._items.values() if n.user_id == user_id and not n.is_read)

    async def mark_read(self, notification_id: int) -> Optional[str]:
        async with self._lock:
            notification = self._items.get(notification_id)
            if notification is None:
                return None
            notification.is_read = True
            return notification.user_id

    async def mark_all_read(self, user_id: str) -> int:
        async with self._lock:
            updated = 0
            for notification in self._items.values():
                if notification.user_id == user_id and not notification.is_read:
                    notification.is_read = True
                    updated += 1
            return updated

    async def list_for_user(self, user_id: str, *, limit: int = 30, offset: int = 0) -> List[Notification]:
        async with self._lock:
            items = [n for n in self._items.values() if n.user_id == user_id]
        items.sort(key=lambda n: (n.created_at is not None, n.created_at, n.id), reverse=True)
        return items[offset : offset + limit]
