"""Outbound Socket.IO broadcasts shared by the dispatcher, services, and REST layer."""

from __future__ import annotations

from typing import Optional

import socketio

from trofify.domain.messaging.models import DeliveryStatus, DeliveryUpdate
from trofify.obs import metrics as obs_metrics

from .rooms import conversation_room, notifications_room

_namespace: Optional[socketio.AsyncNamespace] = None

_DELIVERY_EVENTS = {
	DeliveryStatus.DELIVERED: "message_delivered",
	DeliveryStatus.READ: "message_read",
}


def set_namespace(namespace: Optional[socketio.AsyncNamespace]) -> None:
	global _namespace
	_namespace = namespace


async def _emit(event: str, payload: dict, *, room: Optional[str] = None, skip_sid: Optional[str] = None) -> None:
	if _namespace is None:
		return
	obs_metrics.socket_event(_namespace.namespace, event)
	await _namespace.emit(event, payload, room=room, skip_sid=skip_sid)


async def emit_user_status(user_id: str, status: str, *, room: Optional[str] = None, skip_sid: Optional[str] = None) -> None:
	await _emit("user_status", {"userId": user_id, "status": status}, room=room, skip_sid=skip_sid)


async def emit_delivery_update(update: DeliveryUpdate) -> None:
	event = _DELIVERY_EVENTS.get(update.status)
	if event is None:
		return
	await _emit(event, update.to_payload(), room=conversation_room(update.conversation_id))


async def emit_typing_status(conversation_id: str, user_id: str, is_typing: bool, *, skip_sid: Optional[str] = None) -> None:
	await _emit(
		"typing_status",
		{"conversationId": conversation_id, "userId": user_id, "isTyping": is_typing},
		room=conversation_room(conversation_id),
		skip_sid=skip_sid,
	)


async def emit_unread_count(user_id: str, count: int, *, room: Optional[str] = None) -> None:
	await _emit(
		"unread_count_update",
		{"userId": user_id, "count": count},
		room=room or notifications_room(user_id),
	)

