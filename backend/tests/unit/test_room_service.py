import pytest

from watchparty.domain.errors import Forbidden
from watchparty.domain.rooms import models, schemas
from watchparty.domain.rooms.repository import RoomRepository
from watchparty.domain.rooms.service import RoomService
from watchparty.infra.auth import AuthenticatedUser

BANNED = AuthenticatedUser(id="user-2")


async def _seed_stale_room(**overrides) -> RoomRepository:
	repo = RoomRepository()
	values = dict(
		id="room-1",
		name="Movie night",
		creator="user-1",
		created_at="2024-01-01T00:00:00.000000+00:00",
		participants=["user-1", "user-2"],
		banned_users=["user-2"],
	)
	values.update(overrides)
	await repo.insert(models.Room(**values))
	return repo


@pytest.mark.asyncio
async def test_view_by_banned_user_still_persists_purge():
	repo = await _seed_stale_room()
	service = RoomService(repo)

	with pytest.raises(Forbidden):
		await service.get_room(BANNED, "room-1")

	stored = await repo.get("room-1")
	assert stored.participants == ["user-1"]


@pytest.mark.asyncio
async def test_join_by_banned_user_still_persists_purge():
	repo = await _seed_stale_room(is_private=True, invite_code="ABC123")
	service = RoomService(repo)

	with pytest.raises(Forbidden):
		await service.join(BANNED, schemas.JoinRequest(invite_code="ABC123"))

	stored = await repo.get("room-1")
	assert stored.participants == ["user-1"]
