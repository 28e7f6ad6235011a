"""Socket.IO namespace dispatching presence, delivery, and notification events.

Handlers never report failures back to the emitting client: malformed payloads
are dropped, storage errors are logged, and over-budget connections are ignored
until their window rolls over.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Optional, TypeVar

import socketio

from trofify.container import Container, get_container
from trofify.infra.rate_limit import allow as rate_allow
from trofify.obs import logging as obs_logging
from trofify.obs import metrics as obs_metrics
from trofify.settings import settings

from . import emitter
from .rooms import conversation_room, notifications_room

logger = logging.getLogger(__name__)

T = TypeVar("T")

ONLINE = "online"
OFFLINE = "offline"


def _field(data: Any, name: str) -> Optional[str]:
	if not isinstance(data, dict):
		return None
	value = data.get(name)
	if value is None or isinstance(value, bool):
		return None
	text = str(value).strip()
	return text or None


def _user_from_register(data: Any) -> Optional[str]:
	# register accepts either the bare id or {"userId": ...}
	if isinstance(data, (str, int)) and not isinstance(data, bool):
		text = str(data).strip()
		return text or None
	return _field(data, "userId")


def _notification_id(data: Any) -> Optional[int]:
	raw = _field(data, "notificationId")
	if raw is None:
		return None
	try:
		return int(raw)
	except ValueError:
		return None


class RealtimeNamespace(socketio.AsyncNamespace):
	"""Default namespace used by the web client for presence and read receipts."""

	def __init__(self, container: Optional[Container] = None, namespace: str = "/") -> None:
		super().__init__(namespace)
		self._container = container

	@property
	def services(self) -> Container:
		return self._container or get_container()

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		obs_metrics.socket_connected(self.namespace)
		logger.debug("socket connect sid=%s", sid)

	async def on_disconnect(self, sid: str, reason: Any = None) -> None:
		obs_metrics.socket_disconnected(self.namespace)
		user_id = await self._run(sid, "disconnect", self.services.presence.unregister(sid))
		if not user_id:
			return
		await self._refresh_online_gauge(sid)
		logger.info("user offline", extra={"target_user": user_id, "sid": sid})
		await emitter.emit_user_status(user_id, OFFLINE)

	async def on_register(self, sid: str, data: Any = None) -> None:
		if not await self._admit(sid, "register"):
			return
		user_id = _user_from_register(data)
		if user_id is None:
			self._drop("register")
			return
		await self._register(sid, user_id, announce_always=True)

	async def on_join_notifications(self, sid: str, data: Any = None) -> None:
		if not await self._admit(sid, "join_notifications"):
			return
		user_id = _field(data, "userId")
		if user_id is None:
			self._drop("join_notifications")
			return
		await self._enter(sid, notifications_room(user_id))

	async def on_join_conversation(self, sid: str, data: Any = None) -> None:
		if not await self._admit(sid, "join_conversation"):
			return
		conversation_id = _field(data, "conversationId")
		if conversation_id is None:
			self._drop("join_conversation")
			return
		await self._enter(sid, conversation_room(conversation_id))
		user_id = _field(data, "userId")
		if user_id is not None:
			await self._register(sid, user_id, announce_always=False)

	async def on_leave_conversation(self, sid: str, data: Any = None) -> None:
		if not await self._admit(sid, "leave_conversation"):
			return
		conversation_id = _field(data, "conversationId")
		if conversation_id is None:
			self._drop("leave_conversation")
			return
		await self._leave(sid, conversation_room(conversation_id))

	async def on_typing_status(self, sid: str, data: Any = None) -> None:
		if not await self._admit(sid, "typing_status"):
			return
		conversation_id = _field(data, "conversationId")
		user_id = _field(data, "userId")
		if conversation_id is None or user_id is None:
			self._drop("typing_status")
			return
		is_typing = data.get("isTyping")
		if not isinstance(is_typing, bool):
			self._drop("typing_status")
			return
		await emitter.emit_typing_status(conversation_id, user_id, is_typing, skip_sid=sid)

	async def on_message_delivered(self, sid: str, data: Any = None) -> None:
		if not await self._admit(sid, "message_delivered"):
			return
		message_id = _field(data, "messageId")
		receiver_id = _field(data, "receiverId")
		if message_id is None or receiver_id is None:
			self._drop("message_delivered")
			return
		await self._run(
			sid,
			"message_delivered",
			self.services.delivery.mark_delivered(message_id, receiver_id),
			message_id=message_id,
		)

	async def on_message_read(self, sid: str, data: Any = None) -> None:
		if not await self._admit(sid, "message_read"):
			return
		message_id = _field(data, "messageId")
		receiver_id = _field(data, "receiverId")
		if message_id is None or receiver_id is None:
			self._drop("message_read")
			return
		await self._run(
			sid,
			"message_read",
			self.services.delivery.mark_read(message_id, receiver_id),
			message_id=message_id,
		)

	async def on_get_user_status(self, sid: str, data: Any = None) -> None:
		if not await self._admit(sid, "get_user_status"):
			return
		user_id = _field(data, "userId")
		if user_id is None:
			self._drop("get_user_status")
			return
		with obs_logging.socket_context(sid, "get_user_status"):
			try:
				connection = await self.services.presence.connection_for(user_id)
			except Exception:
				# an unknown status is not reported as offline
				logger.exception("socket event failed", extra={"target_user": user_id})
				return
		status = ONLINE if connection else OFFLINE
		await emitter.emit_user_status(user_id, status, room=sid)

	async def on_get_unread_count(self, sid: str, data: Any = None) -> None:
		if not await self._admit(sid, "get_unread_count"):
			return
		user_id = _field(data, "userId")
		if user_id is None:
			self._drop("get_unread_count")
			return
		count = await self._run(sid, "get_unread_count", self.services.counter.get_unread_count(user_id))
		if count is None:
			return
		await emitter.emit_unread_count(user_id, count, room=sid)

	async def on_mark_notification_read(self, sid: str, data: Any = None) -> None:
		if not await self._admit(sid, "mark_notification_read"):
			return
		notification_id = _notification_id(data)
		if notification_id is None:
			self._drop("mark_notification_read")
			return
		await self._run(
			sid,
			"mark_notification_read",
			self.services.counter.mark_one_read(notification_id),
			notification_id=notification_id,
		)

	async def on_mark_all_notifications_read(self, sid: str, data: Any = None) -> None:
		if not await self._admit(sid, "mark_all_notifications_read"):
			return
		user_id = _field(data, "userId")
		if user_id is None:
			self._drop("mark_all_notifications_read")
			return
		await self._run(sid, "mark_all_notifications_read", self.services.counter.mark_all_read(user_id))

	async def _register(self, sid: str, user_id: str, *, announce_always: bool) -> None:
		services = self.services
		try:
			registration = await services.presence.register(user_id, sid)
		except Exception:
			logger.exception("presence register failed", extra={"target_user": user_id, "sid": sid})
			return
		await self._refresh_online_gauge(sid)
		if registration.displaced_user is not None:
			logger.info("user offline", extra={"target_user": registration.displaced_user, "sid": sid})
			await emitter.emit_user_status(registration.displaced_user, OFFLINE, skip_sid=sid)
		if announce_always or registration.previous_sid != sid:
			logger.info("user online", extra={"target_user": user_id, "sid": sid})
			await emitter.emit_user_status(user_id, ONLINE, skip_sid=sid)
		await self._run(sid, "flush_pending", services.delivery.flush_pending(user_id))

	async def _run(self, sid: str, event: str, action: Awaitable[T], **context: Any) -> Optional[T]:
		with obs_logging.socket_context(sid, event):
			try:
				return await action
			except Exception:
				logger.exception("socket event failed", extra=context)
				return None

	async def _admit(self, sid: str, event: str) -> bool:
		obs_metrics.socket_event(self.namespace, event)
		if not settings.socket_rate_limit_enabled:
			return True
		try:
			allowed = await rate_allow(
				"socket_events",
				sid,
				limit=settings.socket_event_limit,
				window_seconds=settings.socket_event_window_seconds,
			)
		except Exception:
			logger.warning("socket rate limiter unavailable", exc_info=True)
			return True
		if not allowed:
			obs_metrics.inc_rate_limited(event)
			logger.debug("socket event rate limited sid=%s event=%s", sid, event)
		return allowed

	def _drop(self, event: str) -> None:
		obs_metrics.socket_dropped(event, "invalid_payload")
		logger.debug("ignored malformed %s payload", event)

	async def _enter(self, sid: str, room: str) -> None:
		try:
			await self.enter_room(sid, room)
		except ValueError:
			logger.debug("room attach failed sid=%s room=%s", sid, room, exc_info=True)

	async def _leave(self, sid: str, room: str) -> None:
		try:
			await self.leave_room(sid, room)
		except ValueError:
			logger.debug("room detach failed sid=%s room=%s", sid, room, exc_info=True)

	async def _refresh_online_gauge(self, sid: str) -> None:
		snapshot = await self._run(sid, "presence_snapshot", self.services.presence.snapshot())
		if snapshot is not None:
			obs_metrics.set_presence_online(len(snapshot))
