"""Socket.IO namespace relaying room events between clients."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import socketio

from watchparty.domain.rooms.relay import RoomRelay
from watchparty.domain.rooms.repository import RoomRepository
from watchparty.infra.auth import AuthenticatedUser, resolve_token_or_dev
from watchparty.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)


def _header(scope: dict, name: str) -> Optional[str]:
	target = name.encode().lower()
	for key, value in scope.get("headers", []):
		if key.lower() == target:
			return value.decode()
	return None


def _room_id(payload: Any) -> Optional[str]:
	if isinstance(payload, str):
		return payload or None
	if isinstance(payload, dict):
		value = payload.get("roomId") or payload.get("room_id")
		return str(value) if value else None
	return None


class WatchPartyNamespace(socketio.AsyncNamespace):
	"""Clients join room channels and relay best-effort events to each other.

	Event names on the wire use dashes (``join-room``); handlers use underscores.
	"""

	def __init__(
		self,
		relay: RoomRelay,
		*,
		rooms: RoomRepository | None = None,
		namespace: str = "/",
	) -> None:
		super().__init__(namespace)
		self.relay = relay
		self._rooms = rooms or RoomRepository()
		self.users: Dict[str, AuthenticatedUser] = {}

	async def trigger_event(self, event: str, *args):
		return await super().trigger_event(event.replace("-", "_"), *args)

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		user = self._authorise(environ, auth)
		if user is None:
			raise ConnectionRefusedError("unauthorized")
		self.users[sid] = user
		obs_metrics.socket_connected(self.namespace)

	async def on_disconnect(self, sid: str, reason: Optional[str] = None) -> None:
		if self.users.pop(sid, None) is None:
			return
		obs_metrics.socket_disconnected(self.namespace)
		await self.relay.drop(sid)

	async def on_join_room(self, sid: str, payload: Any) -> None:
		user = self._session(sid)
		room_id = _room_id(payload)
		if not room_id:
			return
		room = await self._rooms.get(room_id)
		if room is None or not room.is_active or room.is_banned(user.id):
			await self.emit("room-error", {"roomId": room_id, "error": "forbidden"}, room=sid)
			return
		if room.is_private and not room.is_participant(user.id):
			await self.emit("room-error", {"roomId": room_id, "error": "forbidden"}, room=sid)
			return
		await self.relay.join_channel(sid, room_id, user_id=user.id)
		LOGGER.debug("socket_joined_room", extra={"room_id": room_id, "user_id": user.id})

	async def on_leave_room(self, sid: str, payload: Any) -> None:
		self._session(sid)
		room_id = _room_id(payload)
		if room_id:
			await self.relay.leave_channel(sid, room_id)

	async def on_poll_update(self, sid: str, payload: Any) -> None:
		room_id = await self._joined_room(sid, payload)
		if room_id:
			await self.relay.broadcast(room_id, "poll-update", payload.get("poll"))

	async def on_new_trivia(self, sid: str, payload: Any) -> None:
		room_id = await self._joined_room(sid, payload)
		if room_id:
			await self.relay.broadcast(room_id, "new-trivia", payload.get("trivia"))

	async def on_video_sync(self, sid: str, payload: Any) -> None:
		room_id = await self._joined_room(sid, payload)
		if room_id:
			await self.relay.broadcast(room_id, "video-sync", payload.get("videoState"), skip_sid=sid)

	async def on_user_synced(self, sid: str, payload: Any) -> None:
		room_id = await self._joined_room(sid, payload)
		if room_id:
			await self.relay.broadcast(
				room_id,
				"user-synced",
				{"userId": payload.get("userId"), "username": payload.get("username")},
				skip_sid=sid,
			)

	def _session(self, sid: str) -> AuthenticatedUser:
		user = self.users.get(sid)
		if user is None:
			raise ConnectionRefusedError("unauthenticated")
		return user

	async def _joined_room(self, sid: str, payload: Any) -> Optional[str]:
		"""Relay events are only accepted from connections inside the target room.

		The room is re-read on every event; banned senders are dropped from
		the channel.
		"""
		user = self._session(sid)
		if not isinstance(payload, dict):
			return None
		room_id = _room_id(payload)
		if not room_id or sid not in await self.relay.members(room_id):
			return None
		room = await self._rooms.get(room_id)
		if room is None or not room.is_active or room.is_banned(user.id):
			await self.relay.leave_channel(sid, room_id)
			return None
		return room_id

	def _authorise(self, environ: dict, auth: Optional[dict]) -> Optional[AuthenticatedUser]:
		scope = environ.get("asgi.scope", environ)
		auth_payload = auth or {}
		token = auth_payload.get("token")
		if not token:
			auth_header = _header(scope, "authorization")
			if auth_header and auth_header.lower().startswith("bearer "):
				token = auth_header.split(" ", 1)[1]
		dev_user = auth_payload.get("userId") or auth_payload.get("user_id")
		return resolve_token_or_dev(str(token) if token else None, str(dev_user) if dev_user else None)
