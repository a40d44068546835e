"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"watchparty_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"watchparty_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"watchparty_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"watchparty_socketio_events_total",
	"Socket.IO events handled or emitted per namespace",
	["namespace", "event"],
)

ROOMS_CREATED = Counter(
	"watchparty_rooms_created_total",
	"Rooms created",
	["visibility"],
)

ROOMS_DELETED = Counter(
	"watchparty_rooms_deleted_total",
	"Rooms soft-deleted",
)

ROOMS_JOIN = Counter(
	"watchparty_rooms_join_total",
	"Participants admitted to rooms",
	["path"],
)

ROOMS_JOIN_REJECT = Counter(
	"watchparty_rooms_join_reject_total",
	"Room admissions refused",
	["reason"],
)

ROOMS_BANS = Counter(
	"watchparty_rooms_bans_total",
	"Ban list changes",
	["action"],
)

PLAYBACK_EVENTS = Counter(
	"watchparty_playback_events_total",
	"Classified playback events",
	["type"],
)

PLAYBACK_DRIFT = Histogram(
	"watchparty_playback_drift_seconds",
	"Absolute drift between reported and stored playback position",
	buckets=(2.0, 5.0, 10.0, 30.0, 60.0, 300.0, 1800.0),
)

WATCHLIST_ACTIONS = Counter(
	"watchparty_watchlist_actions_total",
	"Watchlist ledger mutations",
	["scope", "action"],
)

MESSAGES_SENT = Counter(
	"watchparty_room_messages_total",
	"Room chat messages persisted",
)

TRIVIA_CREATED = Counter(
	"watchparty_trivia_created_total",
	"Trivia questions created",
	["scope"],
)

TRIVIA_ANSWERS = Counter(
	"watchparty_trivia_answers_total",
	"Trivia answers by result",
	["result"],
)

REDIS_UP = Gauge("watchparty_redis_up", "Redis readiness (1 ok, 0 failing)")
POSTGRES_UP = Gauge("watchparty_postgres_up", "Postgres readiness (1 ok, 0 failing)")
DEPENDENCY_LATENCY = Histogram(
	"watchparty_dependency_ping_seconds",
	"Readiness ping latency per dependency",
	["dependency"],
	buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5),
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def inc_room_created(is_private: bool) -> None:
	ROOMS_CREATED.labels(visibility="private" if is_private else "public").inc()


def inc_room_deleted() -> None:
	ROOMS_DELETED.inc()


def inc_room_join(path: str) -> None:
	ROOMS_JOIN.labels(path=path).inc()


def inc_room_join_reject(reason: str) -> None:
	ROOMS_JOIN_REJECT.labels(reason=reason).inc()


def inc_room_ban(action: str) -> None:
	ROOMS_BANS.labels(action=action).inc()


def inc_playback_event(event_type: str) -> None:
	PLAYBACK_EVENTS.labels(type=event_type).inc()


def observe_drift(difference: float) -> None:
	PLAYBACK_DRIFT.observe(abs(difference))


def inc_watchlist(scope: str, action: str) -> None:
	WATCHLIST_ACTIONS.labels(scope=scope, action=action).inc()


def inc_message_sent() -> None:
	MESSAGES_SENT.inc()


def inc_trivia_created(scope: str) -> None:
	TRIVIA_CREATED.labels(scope=scope).inc()


def inc_trivia_answer(result: str) -> None:
	TRIVIA_ANSWERS.labels(result=result).inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="redis").observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="postgres").observe(latency_seconds)
