"""Domain models for direct-message delivery tracking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class DeliveryStatus(str, Enum):
	SENT = "sent"
	DELIVERED = "delivered"
	READ = "read"

	@property
	def rank(self) -> int:
		return _RANKS[self]

	def predecessors(self) -> Tuple["DeliveryStatus", ...]:
		"""Statuses a message may be in for a transition to this one to apply."""
		return tuple(status for status in DeliveryStatus if status.rank < self.rank)

	def can_advance_to(self, target: "DeliveryStatus") -> bool:
		return target.rank > self.rank


_RANKS = {
	DeliveryStatus.SENT: 0,
	DeliveryStatus.DELIVERED: 1,
	DeliveryStatus.READ: 2,
}


@dataclass(slots=True)
class Conversation:
	id: str
	participant_a_id: str
	participant_b_id: str
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None
	last_message_at: Optional[datetime] = None

	def has_participant(self, user_id: str) -> bool:
		return user_id in (self.participant_a_id, self.participant_b_id)


@dataclass(slots=True)
class Message:
	id: str
	conversation_id: str
	sender_id: str
	receiver_id: str
	content: str
	delivery_status: DeliveryStatus = DeliveryStatus.SENT
	is_read: bool = False
	created_at: Optional[datetime] = None

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"conversation_id": self.conversation_id,
			"sender_id": self.sender_id,
			"receiver_id": self.receiver_id,
			"content": self.content,
			"delivery_status": self.delivery_status.value,
			"is_read": self.is_read,
			"created_at": self.created_at.isoformat() if self.created_at else None,
		}


@dataclass(slots=True, frozen=True)
class DeliveryUpdate:
	"""A transition that was applied to one message row."""

	message_id: str
	conversation_id: str
	status: DeliveryStatus

	def to_payload(self) -> dict:
		return {"message_id": self.message_id, "conversation_id": self.conversation_id}
