from unittest.mock import AsyncMock

import pytest
import socketio

from watchparty.domain.rooms.relay import RoomRelay


def _relay() -> RoomRelay:
	server = socketio.AsyncServer(async_mode="asgi")
	server.enter_room = AsyncMock()
	server.leave_room = AsyncMock()
	server.emit = AsyncMock()
	return RoomRelay(server)


@pytest.mark.asyncio
async def test_join_and_leave_track_channel_members():
	relay = _relay()
	await relay.join_channel("sid-1", "room-1")
	await relay.join_channel("sid-2", "room-1")
	assert await relay.members("room-1") == {"sid-1", "sid-2"}
	relay.server.enter_room.assert_awaited_with("sid-2", "room:room-1", namespace="/")

	await relay.leave_channel("sid-1", "room-1")
	assert await relay.members("room-1") == {"sid-2"}
	await relay.leave_channel("sid-2", "room-1")
	assert await relay.members("room-1") == set()


@pytest.mark.asyncio
async def test_drop_removes_connection_everywhere():
	relay = _relay()
	await relay.join_channel("sid-1", "room-1")
	await relay.join_channel("sid-1", "room-2")
	await relay.join_channel("sid-2", "room-2")

	left = await relay.drop("sid-1")

	assert sorted(left) == ["room-1", "room-2"]
	assert await relay.rooms_of("sid-1") == []
	assert await relay.members("room-2") == {"sid-2"}


@pytest.mark.asyncio
async def test_broadcast_targets_room_channel():
	relay = _relay()
	await relay.broadcast("room-1", "video-sync", {"currentTime": 3}, skip_sid="sid-1")
	relay.server.emit.assert_awaited_once_with(
		"video-sync",
		{"currentTime": 3},
		room="room:room-1",
		skip_sid="sid-1",
		namespace="/",
	)
