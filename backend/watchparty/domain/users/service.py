"""User documents: lazy provisioning, profile, and the personal watchlist."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from watchparty.domain.common import utc_now_iso
from watchparty.domain.errors import Conflict, NotFound
from watchparty.domain.rooms import ledger
from watchparty.domain.rooms.schemas import MovieSummaryModel
from watchparty.domain.users import models, schemas
from watchparty.infra.auth import AuthenticatedUser
from watchparty.infra.documents import DocumentStore, DuplicateDocument
from watchparty.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)


class UserRepository:
	def __init__(self, store: DocumentStore | None = None) -> None:
		self._store = store or DocumentStore("users")

	async def get(self, user_id: str) -> Optional[models.User]:
		doc = await self._store.get(user_id)
		return models.User.from_doc(doc) if doc else None

	async def get_many(self, user_ids: Iterable[str]) -> List[models.User]:
		docs = await self._store.get_many(list(dict.fromkeys(user_ids)))
		return [models.User.from_doc(doc) for doc in docs]

	async def insert(self, user: models.User) -> None:
		await self._store.insert(user.to_doc())

	async def save(self, user: models.User) -> None:
		await self._store.replace(user.to_doc())


def _entries(user: models.User) -> List[schemas.UserWatchlistEntry]:
	return [
		schemas.UserWatchlistEntry(
			movie=MovieSummaryModel(**entry.movie.to_doc()),
			votes=list(entry.votes),
			added_at=entry.added_at,
		)
		for entry in user.watchlist
	]


def _profile(user: models.User) -> schemas.ProfileResponse:
	return schemas.ProfileResponse(
		id=user.id,
		username=user.username,
		email=user.email,
		photo_url=user.photo_url,
		bio=user.bio,
		social_links=schemas.SocialLinksModel(**user.social_links),
		preferences=schemas.PreferencesModel(**user.preferences.to_doc()),
		watchlist=_entries(user),
		created_at=user.created_at,
	)


class UserService:
	def __init__(self, repository: UserRepository | None = None) -> None:
		self._repo = repository or UserRepository()

	async def ensure_user(self, auth_user: AuthenticatedUser) -> models.User:
		"""Return the caller's user document, creating it from token claims on first use."""
		existing = await self._repo.get(auth_user.id)
		if existing is not None:
			return existing
		now = utc_now_iso()
		user = models.User(
			id=auth_user.id,
			username=auth_user.username or auth_user.id,
			email=auth_user.email,
			created_at=now,
			last_login=now,
		)
		try:
			await self._repo.insert(user)
		except DuplicateDocument as exc:
			raced = await self._repo.get(auth_user.id)
			if raced is not None:
				return raced
			if exc.index != "users_email_key":
				raise
			LOGGER.warning("user_email_taken", extra={"user_id": auth_user.id})
			user.email = None
			await self._repo.insert(user)
		LOGGER.info("user_provisioned", extra={"user_id": user.id})
		return user

	async def _require(self, user_id: str) -> models.User:
		user = await self._repo.get(user_id)
		if user is None:
			raise NotFound("user_not_found", message="User not found")
		return user

	async def get_usernames(self, user_ids: Iterable[str]) -> Dict[str, str]:
		users = await self._repo.get_many(user_ids)
		return {user.id: user.username for user in users}

	async def record_activity(self, user_id: str, stat: str) -> None:
		user = await self._repo.get(user_id)
		if user is None:
			return
		user.activity_stats[stat] = user.activity_stats.get(stat, 0) + 1
		await self._repo.save(user)

	async def get_profile(self, auth_user: AuthenticatedUser) -> schemas.ProfileResponse:
		return _profile(await self._require(auth_user.id))

	async def update_profile(
		self,
		auth_user: AuthenticatedUser,
		payload: schemas.ProfileUpdateRequest,
	) -> schemas.ProfileResponse:
		user = await self._require(auth_user.id)
		if payload.username:
			user.username = payload.username
		if payload.bio is not None:
			user.bio = payload.bio
		if payload.social_links is not None:
			# empty values keep what is already stored
			for name, value in payload.social_links.model_dump().items():
				if value:
					user.social_links[name] = value
		if payload.preferences is not None:
			if payload.preferences.theme:
				user.preferences.theme = payload.preferences.theme
			if payload.preferences.notifications is not None:
				user.preferences.notifications = payload.preferences.notifications
		await self._repo.save(user)
		return _profile(user)

	async def list_watchlist(self, auth_user: AuthenticatedUser) -> List[schemas.UserWatchlistEntry]:
		return _entries(await self._require(auth_user.id))

	async def add_to_watchlist(
		self,
		auth_user: AuthenticatedUser,
		movie: MovieSummaryModel,
	) -> List[schemas.UserWatchlistEntry]:
		user = await self._require(auth_user.id)
		if ledger.find_entry(user.watchlist, movie.id) is not None:
			raise Conflict("already_in_watchlist", message="Movie already in watchlist")
		user.watchlist.append(ledger.new_entry(movie, auth_user.id))
		await self._repo.save(user)
		obs_metrics.inc_watchlist("user", "add")
		return _entries(user)

	async def remove_from_watchlist(self, auth_user: AuthenticatedUser, movie_id: str) -> List[schemas.UserWatchlistEntry]:
		user = await self._require(auth_user.id)
		user.watchlist = ledger.remove_entry(user.watchlist, movie_id)
		await self._repo.save(user)
		obs_metrics.inc_watchlist("user", "remove")
		return _entries(user)

	async def vote(self, auth_user: AuthenticatedUser, movie_id: str) -> List[schemas.UserWatchlistEntry]:
		user = await self._require(auth_user.id)
		entry = ledger.require_entry(user.watchlist, movie_id)
		voted = ledger.toggle_vote(entry, auth_user.id)
		await self._repo.save(user)
		obs_metrics.inc_watchlist("user", "vote" if voted else "unvote")
		return _entries(user)

	async def select(self, auth_user: AuthenticatedUser, movie_id: str) -> List[schemas.UserWatchlistEntry]:
		user = await self._require(auth_user.id)
		ledger.require_entry(user.watchlist, movie_id)
		user.watchlist = ledger.remove_entry(user.watchlist, movie_id)
		await self._repo.save(user)
		obs_metrics.inc_watchlist("user", "select")
		return _entries(user)
