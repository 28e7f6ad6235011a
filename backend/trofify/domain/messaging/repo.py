"""Persistence for message delivery state.

Every transition is a conditional update: it only touches rows addressed to the
given receiver whose current status ranks below the target status, so a message
can never move backwards and replays change nothing.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional, Protocol

from trofify.infra.postgres import get_pool

from .models import Conversation, DeliveryStatus, DeliveryUpdate, Message


class MessageRepository(Protocol):
	async def advance(self, message_id: str, receiver_id: str, target: DeliveryStatus) -> Optional[DeliveryUpdate]:
		...

	async def deliver_pending(self, receiver_id: str) -> List[DeliveryUpdate]:
		...

	async def read_conversation(self, conversation_id: str, reader_id: str) -> List[DeliveryUpdate]:
		...

	async def count_unread(self, user_id: str) -> int:
		...


def _status_values(statuses: Iterable[DeliveryStatus]) -> list[str]:
	return [status.value for status in statuses]


class PostgresMessageRepository:
	"""Repository backed by the shared asyncpg pool."""

	async def advance(self, message_id: str, receiver_id: str, target: DeliveryStatus) -> Optional[DeliveryUpdate]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				"""
				UPDATE messages
				SET delivery_status = $3,
					is_read = is_read OR $4
				WHERE id = $1
					AND receiver_id = $2
					AND COALESCE(delivery_status::text, 'sent') = ANY($5::text[])
				RETURNING id, conversation_id
				""",
				message_id,
				receiver_id,
				target.value,
				target is DeliveryStatus.READ,
				_status_values(target.predecessors()),
			)
		if row is None:
			return None
		return DeliveryUpdate(str(row["id"]), str(row["conversation_id"]), target)

	async def deliver_pending(self, receiver_id: str) -> List[DeliveryUpdate]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				UPDATE messages AS m
				SET delivery_status = $2
				FROM conversations AS c
				WHERE m.conversation_id = c.id
					AND (c.participant_a_id = $1 OR c.participant_b_id = $1)
					AND m.receiver_id = $1
					AND COALESCE(m.delivery_status::text, 'sent') = $3
				RETURNING m.id, m.conversation_id
				""",
				receiver_id,
				DeliveryStatus.DELIVERED.value,
				DeliveryStatus.SENT.value,
			)
		return [
			DeliveryUpdate(str(row["id"]), str(row["conversation_id"]), DeliveryStatus.DELIVERED)
			for row in rows
		]

	async def read_conversation(self, conversation_id: str, reader_id: str) -> List[DeliveryUpdate]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				UPDATE messages
				SET delivery_status = $3,
					is_read = TRUE
				WHERE conversation_id = $1
					AND receiver_id = $2
					AND COALESCE(delivery_status::text, 'sent') = ANY($4::text[])
				RETURNING id, conversation_id
				""",
				conversation_id,
				reader_id,
				DeliveryStatus.READ.value,
				_status_values(DeliveryStatus.READ.predecessors()),
			)
		return [
			DeliveryUpdate(str(row["id"]), str(row["conversation_id"]), DeliveryStatus.READ)
			for row in rows
		]

	async def count_unread(self, user_id: str) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			count = await conn.fetchval(
				"SELECT COUNT(*) FROM messages WHERE receiver_id = $1 AND is_read = FALSE",
				user_id,
			)
		return int(count or 0)


class InMemoryMessageRepository:
	"""Fallback store used for local runs and tests when Postgres is unavailable."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._conversations: Dict[str, Conversation] = {}
		self._messages: Dict[str, Message] = {}

	async def add_conversation(self, conversation: Conversation) -> None:
		async with self._lock:
			self._conversations[conversation.id] = conversation

	async def add_message(self, message: Message) -> None:
		async with self._lock:
			self._messages[message.id] = message

	async def get_message(self, message_id: str) -> Optional[Message]:
		async with self._lock:
			return self._messages.get(message_id)

	async def advance(self, message_id: str, receiver_id: str, target: DeliveryStatus) -> Optional[DeliveryUpdate]:
		async with self._lock:
			message = self._messages.get(message_id)
			if message is None or message.receiver_id != receiver_id:
				return None
			if not message.delivery_status.can_advance_to(target):
				return None
			self._apply(message, target)
			return DeliveryUpdate(message.id, message.conversation_id, target)

	async def deliver_pending(self, receiver_id: str) -> List[DeliveryUpdate]:
		async with self._lock:
			updates: List[DeliveryUpdate] = []
			for message in self._messages.values():
				if message.receiver_id != receiver_id or message.delivery_status is not DeliveryStatus.SENT:
					continue
				conversation = self._conversations.get(message.conversation_id)
				if conversation is None or not conversation.has_participant(receiver_id):
					continue
				self._apply(message, DeliveryStatus.DELIVERED)
				updates.append(DeliveryUpdate(message.id, message.conversation_id, DeliveryStatus.DELIVERED))
			return updates

	async def read_conversation(self, conversation_id: str, reader_id: str) -> List[DeliveryUpdate]:
		async with self._lock:
			updates: List[DeliveryUpdate] = []
			for message in self._messages.values():
				if message.conversation_id != conversation_id or message.receiver_id != reader_id:
					continue
				if not message.delivery_status.can_advance_to(DeliveryStatus.READ):
					continue
				self._apply(message, DeliveryStatus.READ)
				updates.append(DeliveryUpdate(message.id, message.conversation_id, DeliveryStatus.READ))
			return updates

	async def count_unread(self, user_id: str) -> int:
		async with self._lock:
			return sum(1 for m in self._messages.values() if m.receiver_id == user_id and not m.is_read)

	@staticmethod
	def _apply(message: Message, target: DeliveryStatus) -> None:
		message.delivery_status = target
		if target is DeliveryStatus.READ:
			message.is_read = True
