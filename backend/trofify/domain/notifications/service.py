"""Unread notification counter.

Counts are always recomputed from the store after a write, including after
mark-all-read, so a notification created concurrently is never hidden by an
assumed zero.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from trofify.obs import metrics as obs_metrics
from trofify.realtime import emitter

from .models import Notification, UnreadCount
from .repo import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationCounter:
    def __init__(self, repository: NotificationRepository) -> None:
        self._repo = repository

    async def get_unread_count(self, user_id: str) -> int:
        return await self._repo.count_unread(user_id)

    async def mark_one_read(self, notification_id: int) -> Optional[UnreadCount]:
        owner = await self._repo.mark_read(notification_id)
        if owner is None:
            logger.debug("notification not found", extra={"notification_id": notification_id})
            return None
        obs_metrics.inc_notification_read("one")
        return await self._publish(owner)

    async def mark_all_read(self, user_id: str) -> UnreadCount:
        updated = await self._repo.mark_all_read(user_id)
        obs_metrics.inc_notification_read("all")
        logger.info("marked notifications read", extra={"target_user": user_id, "updated": updated})
        return await self._publish(user_id)

    async def list_for_user(self, user_id: str, *, limit: int = 30, offset: int = 0) -> List[Notification]:
        return await self._repo.list_for_user(user_id, limit=limit, offset=offset)

    async def _publish(self, user_id: str) -> UnreadCount:
        snapshot = UnreadCount(user_id=user_id, count=await self._repo.count_unread(user_id))
        await emitter.emit_unread_count(snapshot.user_id, snapshot.count)
        return snapshot
