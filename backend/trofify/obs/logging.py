"""Structured JSON logging shared by HTTP requests and socket handlers.

HTTP requests bind ``request_id``/``route``/``user_id``/``ip`` through the
middleware; socket handlers bind ``sid``/``socket_event``. Each Socket.IO
handler runs in its own task, so bound values never leak between events.
"""

from __future__ import annotations

import json
import logging
import random
from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from trofify.settings import settings

_LOGGER_NAME = "trofify"

# field name -> (context var, key written to the log line)
_CONTEXT: Dict[str, tuple[ContextVar[Optional[str]], str]] = {
	"request_id": (ContextVar("trofify_request_id", default=None), "request_id"),
	"route": (ContextVar("trofify_route", default=None), "route"),
	"user_id": (ContextVar("trofify_user_id", default=None), "user_id"),
	"client_ip": (ContextVar("trofify_client_ip", default=None), "ip"),
	"sid": (ContextVar("trofify_sid", default=None), "sid"),
	"socket_event": (ContextVar("trofify_socket_event", default=None), "socket_event"),
}

# message bodies and identity secrets never reach the log sink
_REDACT = ("token", "secret", "authorization", "password", "email", "content", "body")

_MAX_STRING = 256
_MAX_ITEMS = 10

_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def bind_context(**fields: Optional[str]) -> Dict[str, Token]:
	"""Bind the given context fields; ``None`` values are skipped."""
	tokens: Dict[str, Token] = {}
	for name, value in fields.items():
		if value is None:
			continue
		var, _ = _CONTEXT[name]
		tokens[name] = var.set(value)
	return tokens


def reset_context(tokens: Dict[str, Token]) -> None:
	for name, token in tokens.items():
		_CONTEXT[name][0].reset(token)


@contextmanager
def socket_context(sid: str, event: str) -> Iterator[None]:
	tokens = bind_context(sid=sid, socket_event=event)
	try:
		yield
	finally:
		reset_context(tokens)


def current_request_id() -> Optional[str]:
	return _CONTEXT["request_id"][0].get()


def _scrub(key: str, value: Any, depth: int = 0) -> Any:
	if any(word in key.lower() for word in _REDACT):
		return "[redacted]"
	if isinstance(value, str):
		return value if len(value) <= _MAX_STRING else value[:_MAX_STRING] + "…"
	if depth >= 3:
		return value
	if isinstance(value, dict):
		items = list(value.items())
		scrubbed = {str(k): _scrub(str(k), v, depth + 1) for k, v in items[:_MAX_ITEMS]}
		if len(items) > _MAX_ITEMS:
			scrubbed["…"] = f"+{len(items) - _MAX_ITEMS} keys"
		return scrubbed
	if isinstance(value, (list, tuple, set)):
		values = [_scrub(key, item, depth + 1) for item in list(value)[:_MAX_ITEMS]]
		if len(value) > _MAX_ITEMS:
			values.append("…")
		return values
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per record: base fields, bound context, then extras."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		for var, out_key in _CONTEXT.values():
			value = var.get()
			if value:
				payload[out_key] = value
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in record.__dict__.items():
			if key not in _RECORD_ATTRS:
				payload[key] = _scrub(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Sample info records at ``LOG_SAMPLING_RATE_INFO``; everything else passes."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = settings.obs_log_sampling_rate_info
		return rate >= 1.0 or random.random() < max(0.0, rate)


def configure_logging() -> logging.Logger:
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root = logging.getLogger()
	root.handlers = [handler]
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
