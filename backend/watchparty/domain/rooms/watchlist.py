"""Room-scoped watchlist and voting."""

from __future__ import annotations

import logging
from typing import Optional

from watchparty.domain.common import utc_now_iso
from watchparty.domain.errors import Forbidden
from watchparty.domain.rooms import ledger, models, outbox, policy, schemas
from watchparty.domain.rooms.relay import RoomRelay, get_relay
from watchparty.domain.rooms.repository import RoomRepository
from watchparty.domain.rooms.service import present_movie, present_room, present_watchlist
from watchparty.domain.users.service import UserService
from watchparty.infra.auth import AuthenticatedUser
from watchparty.obs import metrics as obs_metrics
from watchparty.settings import settings

LOGGER = logging.getLogger(__name__)


def playback_url(movie_id: str) -> str:
	return settings.playback_url_template.format(movie_id=movie_id)


class WatchlistService:
	"""Every mutation is one room save followed by a ``poll-update`` broadcast."""

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

	async def add(
		self,
		auth_user: AuthenticatedUser,
		room_id: str,
		payload: schemas.WatchlistAddRequest,
	) -> schemas.RoomDetail:
		room = policy.ensure_active(await self._repo.get(room_id))
		policy.ensure_participant(room, auth_user.id)
		if not room.settings.allow_watchlist:
			raise Forbidden("watchlist_disabled", message="Watchlist is disabled for this room")
		room.watchlist.append(ledger.new_entry(payload.movie, auth_user.id, added_by=auth_user.id))
		await self._repo.save(room)
		obs_metrics.inc_watchlist("room", "add")
		await outbox.append_room_event("watchlist_added", room.id, user_id=auth_user.id, meta={"movie_id": payload.movie.id})
		await self._publish_poll(room)
		return await present_room(room, auth_user.id, self._users)

	async def vote(self, auth_user: AuthenticatedUser, room_id: str, movie_id: str) -> schemas.RoomDetail:
		room = policy.ensure_active(await self._repo.get(room_id))
		policy.ensure_participant(room, auth_user.id)
		entry = ledger.require_entry(room.watchlist, movie_id)
		voted = ledger.toggle_vote(entry, auth_user.id)
		await self._repo.save(room)
		obs_metrics.inc_watchlist("room", "vote" if voted else "unvote")
		await self._publish_poll(room)
		return await present_room(room, auth_user.id, self._users)

	async def select(self, auth_user: AuthenticatedUser, room_id: str, movie_id: str) -> schemas.RoomDetail:
		"""Promote an entry into the room's playback state and drop it from the ledger in one save."""
		room = policy.ensure_active(await self._repo.get(room_id))
		policy.ensure_creator(room, auth_user.id, message="Only the room creator can select movies")
		entry = ledger.require_entry(room.watchlist, movie_id)
		room.movie = models.MovieState(
			title=entry.movie.title,
			url=playback_url(entry.movie.id),
			thumbnail=entry.movie.thumbnail,
			current_time=0.0,
			is_playing=True,
			last_updated=utc_now_iso(),
		)
		room.watchlist = ledger.remove_entry(room.watchlist, movie_id)
		await self._repo.save(room)
		obs_metrics.inc_watchlist("room", "select")
		LOGGER.info("watchlist_selected", extra={"room_id": room.id, "movie_id": movie_id})
		await outbox.append_room_event("watchlist_selected", room.id, user_id=auth_user.id, meta={"movie_id": movie_id})
		await self._publish_poll(room)
		if self.relay is not None:
			await self.relay.broadcast(room.id, "video-sync", present_movie(room.movie).model_dump(by_alias=True))
		return await present_room(room, auth_user.id, self._users)

	async def _publish_poll(self, room: models.Room) -> None:
		if self.relay is None:
			return
		poll = await present_watchlist(room.watchlist, self._users)
		await self.relay.broadcast(room.id, "poll-update", [item.model_dump(by_alias=True) for item in poll])
