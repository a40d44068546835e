"""FastAPI routes for the caller's profile and personal watchlist."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from watchparty.api.deps import require_user
from watchparty.api.errors import as_http_error
from watchparty.domain.errors import WatchPartyError
from watchparty.domain.rooms.schemas import WatchlistAddRequest
from watchparty.domain.users import schemas
from watchparty.domain.users.service import UserService
from watchparty.infra.auth import AuthenticatedUser

router = APIRouter(prefix="/users", tags=["users"])

_user_service = UserService()


@router.get("/profile", response_model=schemas.ProfileResponse)
async def get_profile_endpoint(auth_user: AuthenticatedUser = Depends(require_user)) -> schemas.ProfileResponse:
	try:
		return await _user_service.get_profile(auth_user)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.put("/profile", response_model=schemas.ProfileResponse)
async def update_profile_endpoint(
	payload: schemas.ProfileUpdateRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.ProfileResponse:
	try:
		return await _user_service.update_profile(auth_user, payload)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.get("/watchlist", response_model=List[schemas.UserWatchlistEntry])
async def list_watchlist_endpoint(
	auth_user: AuthenticatedUser = Depends(require_user),
) -> List[schemas.UserWatchlistEntry]:
	try:
		return await _user_service.list_watchlist(auth_user)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.post("/watchlist", response_model=List[schemas.UserWatchlistEntry])
async def add_watchlist_endpoint(
	payload: WatchlistAddRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> List[schemas.UserWatchlistEntry]:
	try:
		return await _user_service.add_to_watchlist(auth_user, payload.movie)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.delete("/watchlist/{movie_id}", response_model=List[schemas.UserWatchlistEntry])
async def remove_watchlist_endpoint(
	movie_id: str,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> List[schemas.UserWatchlistEntry]:
	try:
		return await _user_service.remove_from_watchlist(auth_user, movie_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.post("/watchlist/{movie_id}/vote", response_model=List[schemas.UserWatchlistEntry])
async def vote_watchlist_endpoint(
	movie_id: str,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> List[schemas.UserWatchlistEntry]:
	try:
		return await _user_service.vote(auth_user, movie_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.post("/watchlist/{movie_id}/select", response_model=List[schemas.UserWatchlistEntry])
async def select_watchlist_endpoint(
	movie_id: str,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> List[schemas.UserWatchlistEntry]:
	try:
		return await _user_service.select(auth_user, movie_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc
