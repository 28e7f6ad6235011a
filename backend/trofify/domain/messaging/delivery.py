"""Delivery state machine for direct messages: sent -> delivered -> read."""

from __future__ import annotations

import logging
from typing import List, Optional

from trofify.obs import metrics as obs_metrics
from trofify.realtime import emitter

from .models import DeliveryStatus, DeliveryUpdate
from .repo import MessageRepository

logger = logging.getLogger(__name__)


class DeliveryStateMachine:
	"""Applies delivery transitions and echoes each applied one to its conversation room.

	Storage errors propagate to the caller; nothing is broadcast for a transition
	that did not change a row.
	"""

	def __init__(self, repository: MessageRepository) -> None:
		self._repo = repository

	async def flush_pending(self, receiver_id: str) -> List[DeliveryUpdate]:
		"""Mark every message still waiting for ``receiver_id`` as delivered."""
		updates = await self._repo.deliver_pending(receiver_id)
		obs_metrics.inc_delivery_transition(DeliveryStatus.DELIVERED.value, len(updates))
		if updates:
			logger.info("flushed pending messages", extra={"receiver_id": receiver_id, "count": len(updates)})
		for update in updates:
			await emitter.emit_delivery_update(update)
		return updates

	async def mark_delivered(self, message_id: str, receiver_id: str) -> Optional[DeliveryUpdate]:
		return await self._advance(message_id, receiver_id, DeliveryStatus.DELIVERED)

	async def mark_read(self, message_id: str, receiver_id: str) -> Optional[DeliveryUpdate]:
		return await self._advance(message_id, receiver_id, DeliveryStatus.READ)

	async def mark_conversation_read(self, conversation_id: str, reader_id: str) -> List[DeliveryUpdate]:
		updates = await self._repo.read_conversation(conversation_id, reader_id)
		obs_metrics.inc_delivery_transition(DeliveryStatus.READ.value, len(updates))
		for update in updates:
			await emitter.emit_delivery_update(update)
		return updates

	async def unread_count(self, user_id: str) -> int:
		return await self._repo.count_unread(user_id)

	async def _advance(self, message_id: str, receiver_id: str, target: DeliveryStatus) -> Optional[DeliveryUpdate]:
		update = await self._repo.advance(message_id, receiver_id, target)
		if update is None:
			logger.debug(
				"delivery transition not applied",
				extra={"message_id": message_id, "receiver_id": receiver_id, "target": target.value},
			)
			return None
		obs_metrics.inc_delivery_transition(target.value)
		await emitter.emit_delivery_update(update)
		return update
