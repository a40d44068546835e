import pytest

from watchparty.domain.errors import Forbidden, RateLimited, ValidationFailed
from watchparty.domain.rooms import models, policy


def _room(**overrides) -> models.Room:
	values = dict(
		id="room-1",
		name="Movie night",
		creator="owner",
		created_at="2024-01-01T00:00:00.000000+00:00",
		participants=["owner"],
	)
	values.update(overrides)
	return models.Room(**values)


def test_invite_code_shape():
	code = policy.generate_invite_code()
	assert len(code) == 6
	assert set(code) <= set(policy.INVITE_ALPHABET)


def test_admit_is_idempotent():
	room = _room()
	assert policy.admit(room, "guest") is True
	assert policy.admit(room, "guest") is False
	assert room.participants == ["owner", "guest"]


def test_admit_rejects_when_full():
	room = _room()
	room.settings.max_participants = 1
	with pytest.raises(Forbidden) as info:
		policy.admit(room, "guest")
	assert info.value.detail == "Room has reached maximum participant limit"


def test_admit_keeps_existing_overflow_members():
	room = _room(participants=["owner", "a", "b"])
	room.settings.max_participants = 2
	assert policy.admit(room, "a") is False
	assert room.participants == ["owner", "a", "b"]


def test_banned_user_is_purged_and_rejected():
	room = _room(participants=["owner", "troll"], banned_users=["troll"])
	with pytest.raises(Forbidden) as info:
		policy.admit(room, "troll")
	assert info.value.code == "banned"
	assert room.participants == ["owner"]


def test_membership_on_private_room_requires_participation():
	room = _room(is_private=True, invite_code="ABC123")
	with pytest.raises(Forbidden) as info:
		policy.ensure_membership(room, "guest")
	assert info.value.detail == "Not authorized to access this room"
	assert policy.ensure_membership(room, "owner") is False


def test_membership_on_public_room_joins_viewer():
	room = _room()
	assert policy.ensure_membership(room, "viewer") is True
	assert "viewer" in room.participants


def test_join_by_id_checks_invite_code_except_for_creator():
	room = _room(is_private=True, invite_code="ABC123")
	policy.check_join_by_id(room, "owner", None)
	policy.check_join_by_id(room, "guest", "ABC123")
	with pytest.raises(Forbidden):
		policy.check_join_by_id(room, "guest", "ZZZ999")
	with pytest.raises(Forbidden):
		policy.check_join_by_id(room, "guest", None)


def test_ban_removes_participant_and_unban_does_not_readmit():
	room = _room(participants=["owner", "guest"])
	assert policy.ban(room, "guest") is True
	assert room.participants == ["owner"]
	assert room.banned_users == ["guest"]
	assert policy.ban(room, "guest") is False
	assert policy.unban(room, "guest") is True
	assert room.banned_users == []
	assert room.participants == ["owner"]
	assert policy.unban(room, "guest") is False


def test_creator_cannot_be_banned():
	room = _room()
	with pytest.raises(ValidationFailed):
		policy.ban(room, "owner")


@pytest.mark.asyncio
async def test_create_limit(monkeypatch):
	monkeypatch.setattr(policy.settings, "room_create_limit_per_day", 2)
	await policy.enforce_create_limit("user-1")
	await policy.enforce_create_limit("user-1")
	with pytest.raises(RateLimited):
		await policy.enforce_create_limit("user-1")
