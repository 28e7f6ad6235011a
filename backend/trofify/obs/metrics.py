"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, Summary

REQUEST_COUNTER = Counter(
	"trofify_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"trofify_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"trofify_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"trofify_socketio_events_total",
	"Socket.IO events handled or emitted per namespace",
	["namespace", "event"],
)

SOCKET_DROPPED = Counter(
	"trofify_socket_dropped_total",
	"Inbound Socket.IO events ignored by the dispatcher",
	["event", "reason"],
)

RATE_LIMITED_EVENTS = Counter(
	"trofify_rate_limited_total",
	"Events dropped due to rate limiting",
	["kind"],
)

PRESENCE_ONLINE = Gauge(
	"trofify_presence_online_users",
	"Users currently registered in the connection registry",
)

DELIVERY_TRANSITIONS = Counter(
	"trofify_message_delivery_transitions_total",
	"Message delivery status transitions applied",
	["status"],
)

NOTIFICATION_READS = Counter(
	"trofify_notification_reads_total",
	"Notification mark-as-read operations",
	["scope"],
)

REDIS_UP = Gauge("trofify_redis_up", "Redis availability (1=up,0=down)")
REDIS_LATENCY = Summary("trofify_redis_latency_seconds", "Redis ping latency (seconds)")

POSTGRES_UP = Gauge("trofify_postgres_up", "Postgres availability (1=up,0=down)")
POSTGRES_LATENCY = Summary("trofify_postgres_latency_seconds", "Postgres ping latency (seconds)")


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def socket_dropped(event: str, reason: str) -> None:
	SOCKET_DROPPED.labels(event=event, reason=reason).inc()


def inc_rate_limited(kind: str) -> None:
	RATE_LIMITED_EVENTS.labels(kind=kind).inc()


def set_presence_online(count: int) -> None:
	PRESENCE_ONLINE.set(float(count))


def inc_delivery_transition(status: str, count: int = 1) -> None:
	if count > 0:
		DELIVERY_TRANSITIONS.labels(status=status).inc(count)


def inc_notification_read(scope: str) -> None:
	NOTIFICATION_READS.labels(scope=scope).inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		REDIS_LATENCY.observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		POSTGRES_LATENCY.observe(latency_seconds)
