"""Lightweight service container shared by the socket namespace and REST routes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from trofify.domain.messaging import (
	DeliveryStateMachine,
	InMemoryMessageRepository,
	MessageRepository,
	PostgresMessageRepository,
)
from trofify.domain.notifications import (
	InMemoryNotificationRepository,
	NotificationCounter,
	NotificationRepository,
	PostgresNotificationRepository,
)
from trofify.domain.presence import InMemoryPresenceStore, PresenceStore, RedisPresenceStore
from trofify.domain.users import InMemoryUserDirectory, PostgresUserDirectory, UserDirectory
from trofify.settings import settings


@dataclass
class Container:
	presence: PresenceStore
	messages: MessageRepository
	notifications: NotificationRepository
	users: UserDirectory
	delivery: DeliveryStateMachine
	counter: NotificationCounter


def build_container(
	*,
	storage_backend: Optional[str] = None,
	presence_backend: Optional[str] = None,
) -> Container:
	storage = (storage_backend or settings.storage_backend).lower()
	presence_kind = (presence_backend or settings.presence_backend).lower()

	if storage == "postgres":
		messages: MessageRepository = PostgresMessageRepository()
		notifications: NotificationRepository = PostgresNotificationRepository()
		users: UserDirectory = PostgresUserDirectory()
	elif storage == "memory":
		messages = InMemoryMessageRepository()
		notifications = InMemoryNotificationRepository()
		users = InMemoryUserDirectory()
	else:
		raise ValueError(f"unknown storage backend: {storage}")

	if presence_kind == "redis":
		presence: PresenceStore = RedisPresenceStore()
	elif presence_kind == "memory":
		presence = InMemoryPresenceStore()
	else:
		raise ValueError(f"unknown presence backend: {presence_kind}")

	return Container(
		presence=presence,
		messages=messages,
		notifications=notifications,
		users=users,
		delivery=DeliveryStateMachine(messages),
		counter=NotificationCounter(notifications),
	)


_container: Optional[Container] = None


def get_container() -> Container:
	global _container
	if _container is None:
		_container = build_container()
	return _container


def set_container(container: Optional[Container]) -> None:
	global _container
	_container = container
