"""Messaging domain exports."""

from .delivery import DeliveryStateMachine
from .models import Conversation, DeliveryStatus, DeliveryUpdate, Message
from .repo import InMemoryMessageRepository, MessageRepository, PostgresMessageRepository

__all__ = [
	"Conversation",
	"DeliveryStateMachine",
	"DeliveryStatus",
	"DeliveryUpdate",
	"InMemoryMessageRepository",
	"Message",
	"MessageRepository",
	"PostgresMessageRepository",
]
