"""Room lifecycle service layer."""

from __future__ import annotations

import logging
import random
from typing import Dict, Iterable, List, Optional

import ulid

from watchparty.domain.common import UserRef, utc_now_iso
from watchparty.domain.errors import Conflict, NotFound, Unavailable, ValidationFailed
from watchparty.domain.rooms import models, outbox, policy, schemas
from watchparty.domain.rooms.relay import RoomRelay, get_relay
from watchparty.domain.rooms.repository import RoomRepository
from watchparty.domain.users.service import UserService
from watchparty.infra.auth import AuthenticatedUser
from watchparty.infra.documents import DuplicateDocument
from watchparty.obs import metrics as obs_metrics
from watchparty.settings import settings

LOGGER = logging.getLogger(__name__)

_NAME_INDEX = "rooms_active_name_key"
_INVITE_INDEX = "rooms_invite_code_key"


def _ref(user_id: str, names: Dict[str, str]) -> UserRef:
	return UserRef(id=user_id, username=names.get(user_id))


def present_movie(movie: models.MovieState) -> schemas.MovieStateModel:
	return schemas.MovieStateModel(
		title=movie.title,
		url=movie.url,
		thumbnail=movie.thumbnail,
		current_time=movie.current_time,
		is_playing=movie.is_playing,
		last_updated=movie.last_updated,
	)


def _watchlist(entries: Iterable[models.WatchlistEntry], names: Dict[str, str]) -> List[schemas.WatchlistEntryModel]:
	return [
		schemas.WatchlistEntryModel(
			movie=schemas.MovieSummaryModel(**entry.movie.to_doc()),
			added_by=_ref(entry.added_by, names) if entry.added_by else None,
			votes=list(entry.votes),
			added_at=entry.added_at,
		)
		for entry in entries
	]


def _referenced_users(room: models.Room) -> List[str]:
	ids = [room.creator, *room.participants]
	ids.extend(entry.added_by for entry in room.watchlist if entry.added_by)
	return ids


def _detail(room: models.Room, requester_id: str, names: Dict[str, str]) -> schemas.RoomDetail:
	is_creator = room.is_creator(requester_id)
	return schemas.RoomDetail(
		id=room.id,
		name=room.name,
		creator=_ref(room.creator, names),
		participants=[_ref(user_id, names) for user_id in room.participants],
		movie=present_movie(room.movie) if room.movie else None,
		settings=schemas.RoomSettingsModel(**room.settings.to_doc()),
		watchlist=_watchlist(room.watchlist, names),
		is_private=room.is_private,
		invite_code=room.invite_code if is_creator else None,
		banned_users=list(room.banned_users) if is_creator else None,
		is_active=room.is_active,
		created_at=room.created_at,
		playback_events=[schemas.PlaybackEventModel(**e.to_doc()) for e in room.playback_events],
		sync_events=[schemas.SyncEventModel(**e.to_doc()) for e in room.sync_events],
	)


async def present_watchlist(entries: List[models.WatchlistEntry], users: UserService) -> List[schemas.WatchlistEntryModel]:
	names = await users.get_usernames(entry.added_by for entry in entries if entry.added_by)
	return _watchlist(entries, names)


async def present_room(room: models.Room, requester_id: str, users: UserService) -> schemas.RoomDetail:
	"""Hydrate user references to ``{id, username}``."""
	names = await users.get_usernames(_referenced_users(room))
	return _detail(room, requester_id, names)


async def present_rooms(rooms: List[models.Room], requester_id: str, users: UserService) -> List[schemas.RoomDetail]:
	ids: List[str] = []
	for room in rooms:
		ids.extend(_referenced_users(room))
	names = await users.get_usernames(ids)
	return [_detail(room, requester_id, names) for room in rooms]


class RoomService:
	def __init__(
		self,
		repository: RoomRepository | None = None,
		*,
		users: UserService | None = None,
		relay: RoomRelay | None = None,
	) -> None:
		self._repo = repository or RoomRepository()
		self._users = users or UserService()
		self._relay = relay

	@property
	def relay(self) -> Optional[RoomRelay]:
		return self._relay or get_relay()

	async def _require_room(self, room_id: str) -> models.Room:
		return policy.ensure_active(await self._repo.get(room_id))

	async def create_room(self, auth_user: AuthenticatedUser, payload: schemas.RoomCreateRequest) -> schemas.RoomDetail:
		await policy.enforce_create_limit(auth_user.id)
		if await self._repo.active_name_taken(payload.name):
			raise Conflict("room_name_taken", message="A room with this name already exists")
		now = utc_now_iso()
		movie: Optional[models.MovieState] = None
		if payload.movie is not None:
			movie = models.MovieState(
				title=payload.movie.title,
				url=payload.movie.url,
				thumbnail=payload.movie.thumbnail,
				current_time=payload.movie.current_time,
				is_playing=payload.movie.is_playing,
				last_updated=now,
			)
		room = models.Room(
			id=str(ulid.new()),
			name=payload.name,
			creator=auth_user.id,
			created_at=now,
			participants=[auth_user.id],
			movie=movie,
			is_private=payload.is_private,
		)
		await self._insert_with_code(room)
		obs_metrics.inc_room_created(room.is_private)
		LOGGER.info("room_created", extra={"room_id": room.id, "private": room.is_private})
		await outbox.append_room_event("room_created", room.id, user_id=auth_user.id)
		await self._users.record_activity(auth_user.id, "roomsCreated")
		return await present_room(room, auth_user.id, self._users)

	async def _insert_with_code(self, room: models.Room) -> None:
		attempts = max(1, settings.invite_code_attempts) if room.is_private else 1
		for _ in range(attempts):
			if room.is_private:
				room.invite_code = policy.generate_invite_code()
			try:
				await self._repo.insert(room)
				return
			except DuplicateDocument as exc:
				if exc.index == _NAME_INDEX:
					raise Conflict("room_name_taken", message="A room with this name already exists") from exc
				if exc.index != _INVITE_INDEX:
					raise
		raise Unavailable("invite_code_exhausted", message="Could not allocate an invite code")

	async def get_room(self, auth_user: AuthenticatedUser, room_id: str) -> schemas.RoomDetail:
		room = await self._require_room(room_id)
		if policy.purge_banned(room):
			await self._repo.save(room)
		if policy.ensure_membership(room, auth_user.id):
			await self._repo.save(room)
			await self._on_joined(room, auth_user.id, path="view")
		return await present_room(room, auth_user.id, self._users)

	async def join(self, auth_user: AuthenticatedUser, payload: schemas.JoinRequest) -> schemas.RoomDetail:
		if payload.room_id:
			room = await self._repo.get(payload.room_id)
			if room is None or not room.is_active:
				raise NotFound("room_not_found", message="Room not found or inactive")
			policy.check_join_by_id(room, auth_user.id, payload.invite_code)
			path = "room_id"
		elif payload.invite_code:
			room = await self._repo.get_active_by_invite_code(payload.invite_code)
			if room is None:
				raise NotFound("invalid_invite_code", message="Invalid invite code")
			path = "invite_code"
		else:
			raise ValidationFailed("join_target_required", message="Invite code or room ID required")
		if policy.purge_banned(room):
			await self._repo.save(room)
		if policy.admit(room, auth_user.id):
			await self._repo.save(room)
			await self._on_joined(room, auth_user.id, path=path)
		return await present_room(room, auth_user.id, self._users)

	async def _on_joined(self, room: models.Room, user_id: str, *, path: str) -> None:
		obs_metrics.inc_room_join(path)
		await outbox.append_room_event("member_joined", room.id, user_id=user_id, meta={"path": path})
		await self._users.record_activity(user_id, "roomsParticipated")

	async def list_rooms(self, auth_user: AuthenticatedUser) -> List[schemas.RoomDetail]:
		rooms = await self._repo.list_active()
		return await present_rooms(rooms, auth_user.id, self._users)

	async def random_active_room(self, auth_user: AuthenticatedUser) -> schemas.RoomDetail:
		total = await self._repo.count_active()
		if total == 0:
			raise NotFound("no_active_rooms", message="No active rooms found")
		room = await self._repo.nth_active(random.randrange(total))
		if room is None:
			raise NotFound("no_active_rooms", message="No active rooms found")
		return await present_room(room, auth_user.id, self._users)

	async def delete_room(self, auth_user: AuthenticatedUser, room_id: str) -> schemas.DeleteResponse:
		room = await self._require_room(room_id)
		policy.ensure_creator(room, auth_user.id, message="Only the creator can delete the room")
		room.is_active = False
		await self._repo.save(room)
		obs_metrics.inc_room_deleted()
		LOGGER.info("room_deleted", extra={"room_id": room.id})
		await outbox.append_room_event("room_deleted", room.id, user_id=auth_user.id)
		return schemas.DeleteResponse(message="Room deleted successfully")

	async def get_invite_code(self, auth_user: AuthenticatedUser, room_id: str) -> schemas.InviteCodeResponse:
		room = await self._require_room(room_id)
		policy.ensure_creator(room, auth_user.id, message="Not authorized to access invite code")
		if not room.is_private or not room.invite_code:
			raise NotFound("invite_code_not_found", message="Invite code not found")
		return schemas.InviteCodeResponse(invite_code=room.invite_code)

	async def update_settings(
		self,
		auth_user: AuthenticatedUser,
		room_id: str,
		patch: schemas.SettingsPatch,
	) -> schemas.RoomDetail:
		room = await self._require_room(room_id)
		policy.ensure_creator(room, auth_user.id, message="Only the creator can modify room settings")
		changes = patch.model_dump(exclude_unset=True, exclude_none=True)
		for field_name, value in changes.items():
			setattr(room.settings, field_name, value)
		if "video_link" in changes:
			previous = room.movie
			room.movie = models.MovieState(
				title="Custom Video",
				url=patch.video_link,
				thumbnail=previous.thumbnail if previous else None,
				current_time=0.0,
				is_playing=False,
				last_updated=utc_now_iso(),
			)
		await self._repo.save(room)
		await outbox.append_room_event("settings_updated", room.id, user_id=auth_user.id, meta={"fields": ",".join(sorted(changes))})
		if "video_link" in changes and self.relay is not None:
			await self.relay.broadcast(room.id, "video-sync", present_movie(room.movie).model_dump(by_alias=True))
		return await present_room(room, auth_user.id, self._users)

	async def ban(self, auth_user: AuthenticatedUser, room_id: str, target_id: str) -> schemas.RoomDetail:
		room = await self._require_room(room_id)
		policy.ensure_creator(room, auth_user.id, message="Only the creator can ban users")
		if policy.ban(room, target_id):
			await self._repo.save(room)
			obs_metrics.inc_room_ban("ban")
			LOGGER.info("room_member_banned", extra={"room_id": room.id, "target_id": target_id})
			await outbox.append_room_event("member_banned", room.id, user_id=auth_user.id, meta={"target_id": target_id})
		if self.relay is not None:
			await self.relay.evict(room.id, target_id)
		return await present_room(room, auth_user.id, self._users)

	async def unban(self, auth_user: AuthenticatedUser, room_id: str, target_id: str) -> schemas.RoomDetail:
		room = await self._require_room(room_id)
		policy.ensure_creator(room, auth_user.id, message="Only the creator can unban users")
		if policy.unban(room, target_id):
			await self._repo.save(room)
			obs_metrics.inc_room_ban("unban")
			LOGGER.info("room_member_unbanned", extra={"room_id": room.id, "target_id": target_id})
			await outbox.append_room_event("member_unbanned", room.id, user_id=auth_user.id, meta={"target_id": target_id})
		return await present_room(room, auth_user.id, self._users)
