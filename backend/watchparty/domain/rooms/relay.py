"""Room-scoped fan-out over the Socket.IO server."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Set

import socketio

from watchparty.obs import metrics as obs_metrics


class RoomRelay:
	"""Registry of socket connections per room channel.

	The registry only tracks connections of this process; delivery itself goes
	through the Socket.IO server so a redis client manager can fan out across
	workers. Delivery is best effort and nothing is persisted.
	"""

	def __init__(self, server: socketio.AsyncServer, *, namespace: str = "/") -> None:
		self.server = server
		self.namespace = namespace
		self._lock = asyncio.Lock()
		self._channels: Dict[str, Set[str]] = {}
		self._owners: Dict[str, str] = {}

	@staticmethod
	def room_channel(room_id: str) -> str:
		return f"room:{room_id}"

	async def join_channel(self, sid: str, room_id: str, *, user_id: Optional[str] = None) -> None:
		async with self._lock:
			if user_id is not None:
				self._owners[sid] = user_id
			self._channels.setdefault(room_id, set()).add(sid)
		await self.server.enter_room(sid, self.room_channel(room_id), namespace=self.namespace)

	async def leave_channel(self, sid: str, room_id: str) -> None:
		async with self._lock:
			members = self._channels.get(room_id)
			if members is not None:
				members.discard(sid)
				if not members:
					del self._channels[room_id]
		await self.server.leave_room(sid, self.room_channel(room_id), namespace=self.namespace)

	async def drop(self, sid: str) -> List[str]:
		"""Forget a disconnected connection; returns the rooms it was in."""
		left: List[str] = []
		async with self._lock:
			self._owners.pop(sid, None)
			for room_id in list(self._channels):
				members = self._channels[room_id]
				if sid in members:
					members.discard(sid)
					left.append(room_id)
					if not members:
						del self._channels[room_id]
		return left

	async def evict(self, room_id: str, user_id: str) -> List[str]:
		"""Remove every local connection of ``user_id`` from a room channel."""
		async with self._lock:
			members = self._channels.get(room_id, set())
			evicted = [sid for sid in members if self._owners.get(sid) == user_id]
			for sid in evicted:
				members.discard(sid)
			if room_id in self._channels and not members:
				del self._channels[room_id]
		channel = self.room_channel(room_id)
		for sid in evicted:
			await self.server.leave_room(sid, channel, namespace=self.namespace)
			await self.server.emit(
				"room-error",
				{"roomId": room_id, "error": "banned"},
				to=sid,
				namespace=self.namespace,
			)
		return evicted

	async def members(self, room_id: str) -> Set[str]:
		async with self._lock:
			return set(self._channels.get(room_id, ()))

	async def rooms_of(self, sid: str) -> List[str]:
		async with self._lock:
			return [room_id for room_id, members in self._channels.items() if sid in members]

	async def broadcast(
		self,
		room_id: str,
		event: str,
		payload: Any,
		*,
		skip_sid: Optional[str] = None,
	) -> None:
		obs_metrics.socket_event(self.namespace, event)
		await self.server.emit(
			event,
			payload,
			room=self.room_channel(room_id),
			skip_sid=skip_sid,
			namespace=self.namespace,
		)


_relay: Optional[RoomRelay] = None


def set_relay(relay: Optional[RoomRelay]) -> None:
	global _relay
	_relay = relay


def get_relay() -> Optional[RoomRelay]:
	return _relay
