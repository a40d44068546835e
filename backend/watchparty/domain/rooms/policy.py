"""Policy helpers for room access, membership and bans."""

from __future__ import annotations

import secrets
from typing import Optional

from watchparty.domain.errors import Forbidden, NotFound, RateLimited, ValidationFailed
from watchparty.domain.rooms import models
from watchparty.infra import rate_limit
from watchparty.obs import metrics as obs_metrics
from watchparty.settings import settings

INVITE_ALPHABET = "1234567890ABCDEFGHIJKLMNOPQRSTUVWXYZ"
INVITE_CODE_LENGTH = 6


def generate_invite_code() -> str:
	return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


async def enforce_create_limit(user_id: str) -> None:
	allowed = await rate_limit.allow(
		"room:create",
		user_id,
		limit=settings.room_create_limit_per_day,
		window_seconds=86_400,
	)
	if not allowed:
		raise RateLimited("rate_limited:create", message="Too many rooms created today")


def ensure_active(room: Optional[models.Room]) -> models.Room:
	if room is None or not room.is_active:
		raise NotFound("room_not_found", message="Room not found")
	return room


def ensure_creator(room: models.Room, user_id: str, *, message: str = "Only the room creator can do this") -> None:
	if not room.is_creator(user_id):
		raise Forbidden("not_creator", message=message)


def ensure_participant(room: models.Room, user_id: str) -> None:
	if not room.is_participant(user_id):
		raise Forbidden("not_participant", message="Not a participant")


def ensure_not_banned(room: models.Room, user_id: str) -> None:
	if room.is_banned(user_id):
		obs_metrics.inc_room_join_reject("banned")
		raise Forbidden("banned", message="You are banned from this room")


def purge_banned(room: models.Room) -> bool:
	"""Drop banned users from the participant list; returns True when anything changed."""
	if not room.banned_users:
		return False
	banned = set(room.banned_users)
	kept = [user_id for user_id in room.participants if user_id not in banned]
	changed = len(kept) != len(room.participants)
	room.participants = kept
	return changed


def admit(room: models.Room, user_id: str) -> bool:
	"""Add ``user_id`` as a participant if there is room; idempotent for members.

	Capacity is only checked at admission, so a room whose limit was lowered
	keeps its existing overflow.
	"""
	purge_banned(room)
	ensure_not_banned(room, user_id)
	if room.is_participant(user_id):
		return False
	if room.at_capacity():
		obs_metrics.inc_room_join_reject("capacity")
		raise Forbidden("room_full", message="Room has reached maximum participant limit")
	room.participants.append(user_id)
	return True


def ensure_membership(room: models.Room, user_id: str) -> bool:
	"""Join-on-view: admit the viewer of a public room."""
	purge_banned(room)
	ensure_not_banned(room, user_id)
	if room.is_private and not room.is_participant(user_id):
		obs_metrics.inc_room_join_reject("private")
		raise Forbidden("private_room", message="Not authorized to access this room")
	return admit(room, user_id)


def check_join_by_id(room: models.Room, user_id: str, invite_code: Optional[str]) -> None:
	if room.is_creator(user_id):
		return
	if not invite_code or invite_code != room.invite_code:
		obs_metrics.inc_room_join_reject("invite_code")
		raise Forbidden("invalid_invite_code", message="Invalid invite code")


def ban(room: models.Room, target_id: str) -> bool:
	if room.is_creator(target_id):
		raise ValidationFailed("cannot_ban_creator", message="The room creator cannot be banned")
	changed = False
	if target_id not in room.banned_users:
		room.banned_users.append(target_id)
		changed = True
	return purge_banned(room) or changed


def unban(room: models.Room, target_id: str) -> bool:
	if target_id not in room.banned_users:
		return False
	room.banned_users = [user_id for user_id in room.banned_users if user_id != target_id]
	return True
