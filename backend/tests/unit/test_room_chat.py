import pytest

from watchparty.domain.errors import Forbidden
from watchparty.domain.rooms import models, schemas
from watchparty.domain.rooms.chat_service import RoomChatRepository, RoomChatService
from watchparty.domain.rooms.repository import RoomRepository
from watchparty.infra.auth import AuthenticatedUser

MEMBER = AuthenticatedUser(id="member")


async def _seed_room(*, allow_chat: bool = True) -> None:
	await RoomRepository().insert(
		models.Room(
			id="room-1",
			name="Movie night",
			creator="member",
			created_at="2024-01-01T00:00:00.000000+00:00",
			participants=["member"],
			settings=models.RoomSettings(allow_chat=allow_chat),
		)
	)


async def _seed_messages(count: int) -> None:
	repo = RoomChatRepository()
	for index in range(count):
		await repo.persist_message(
			models.RoomMessage(
				id=f"m{index}",
				room="room-1",
				user="member",
				content=f"message {index}",
				timestamp=f"2024-01-01T00:00:{index:02d}.000000+00:00",
			)
		)


@pytest.mark.asyncio
async def test_history_returns_newest_page_oldest_first():
	await _seed_room()
	await _seed_messages(5)
	page = await RoomChatService().history(MEMBER, "room-1", limit=3)
	assert [message.id for message in page] == ["m2", "m3", "m4"]


@pytest.mark.asyncio
async def test_history_cursor_by_timestamp_and_by_id():
	await _seed_room()
	await _seed_messages(5)
	service = RoomChatService()

	by_time = await service.history(MEMBER, "room-1", before="2024-01-01T00:00:03Z", limit=2)
	assert [message.id for message in by_time] == ["m1", "m2"]

	by_id = await service.history(MEMBER, "room-1", before="m2")
	assert [message.id for message in by_id] == ["m0", "m1"]

	unknown = await service.history(MEMBER, "room-1", before="nope")
	assert len(unknown) == 5


@pytest.mark.asyncio
async def test_send_message_hydrates_author():
	await _seed_room()
	message = await RoomChatService().send_message(MEMBER, "room-1", schemas.MessageCreateRequest(content="  hello  "))
	assert message.content == "hello"
	assert message.user.id == "member"


@pytest.mark.asyncio
async def test_chat_disabled_and_outsiders_rejected():
	await _seed_room(allow_chat=False)
	service = RoomChatService()
	with pytest.raises(Forbidden) as info:
		await service.send_message(MEMBER, "room-1", schemas.MessageCreateRequest(content="hi"))
	assert info.value.code == "chat_disabled"
	with pytest.raises(Forbidden):
		await service.history(AuthenticatedUser(id="outsider"), "room-1")
