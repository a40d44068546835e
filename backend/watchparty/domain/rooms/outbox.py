"""Outbox helpers for room analytics events."""

from __future__ import annotations

from typing import Any, Mapping

from watchparty.infra.redis import redis_client

ROOM_EVENT_STREAM = "x:rooms.events"
PLAYBACK_EVENT_STREAM = "x:rooms.playback"
STREAM_MAXLEN = 10_000


def _fields(event: str, room_id: str, user_id: str | None, meta: Mapping[str, Any] | None) -> dict[str, Any]:
	fields: dict[str, Any] = {"event": event, "room_id": room_id}
	if user_id:
		fields["user_id"] = str(user_id)
	if meta:
		for key, value in meta.items():
			fields[f"meta_{key}"] = str(value)
	return fields


async def append_room_event(event: str, room_id: str, *, user_id: str | None = None, meta: Mapping[str, Any] | None = None) -> None:
	await redis_client.xadd(
		ROOM_EVENT_STREAM,
		_fields(event, room_id, user_id, meta),
		maxlen=STREAM_MAXLEN,
		approximate=True,
	)


async def append_playback_event(
	event_type: str,
	room_id: str,
	*,
	user_id: str,
	position: float,
	drift: float | None = None,
) -> None:
	meta: dict[str, Any] = {"position": position}
	if drift is not None:
		meta["drift"] = drift
	await redis_client.xadd(
		PLAYBACK_EVENT_STREAM,
		_fields(event_type, room_id, user_id, meta),
		maxlen=STREAM_MAXLEN,
		approximate=True,
	)
