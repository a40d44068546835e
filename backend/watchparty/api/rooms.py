"""FastAPI routes for watch-party rooms."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from watchparty.api.deps import require_user
from watchparty.api.errors import as_http_error
from watchparty.domain.errors import WatchPartyError
from watchparty.domain.rooms import schemas
from watchparty.domain.rooms.chat_service import RoomChatService
from watchparty.domain.rooms.playback import PlaybackService
from watchparty.domain.rooms.service import RoomService
from watchparty.domain.rooms.watchlist import WatchlistService
from watchparty.domain.trivia import schemas as trivia_schemas
from watchparty.domain.trivia.service import TriviaService
from watchparty.infra.auth import AuthenticatedUser

router = APIRouter(prefix="/rooms", tags=["rooms"])

_room_service = RoomService()
_playback_service = PlaybackService()
_watchlist_service = WatchlistService()
_chat_service = RoomChatService()
_trivia_service = TriviaService()


@router.post("", response_model=schemas.RoomDetail, status_code=status.HTTP_201_CREATED)
async def create_room_endpoint(
	payload: schemas.RoomCreateRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.RoomDetail:
	try:
		return await _room_service.create_room(auth_user, payload)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.get("", response_model=List[schemas.RoomDetail])
async def list_rooms_endpoint(auth_user: AuthenticatedUser = Depends(require_user)) -> List[schemas.RoomDetail]:
	return await _room_service.list_rooms(auth_user)


@router.post("/join", response_model=schemas.RoomDetail)
async def join_room_endpoint(
	payload: schemas.JoinRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.RoomDetail:
	try:
		return await _room_service.join(auth_user, payload)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.get("/random/active", response_model=schemas.RoomDetail)
async def random_room_endpoint(auth_user: AuthenticatedUser = Depends(require_user)) -> schemas.RoomDetail:
	try:
		return await _room_service.random_active_room(auth_user)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.get("/{room_id}", response_model=schemas.RoomDetail)
async def get_room_endpoint(
	room_id: str,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.RoomDetail:
	try:
		return await _room_service.get_room(auth_user, room_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.delete("/{room_id}", response_model=schemas.DeleteResponse)
async def delete_room_endpoint(
	room_id: str,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.DeleteResponse:
	try:
		return await _room_service.delete_room(auth_user, room_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.get("/{room_id}/invite-code", response_model=schemas.InviteCodeResponse)
async def invite_code_endpoint(
	room_id: str,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.InviteCodeResponse:
	try:
		return await _room_service.get_invite_code(auth_user, room_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.patch("/{room_id}/settings", response_model=schemas.RoomDetail)
async def update_settings_endpoint(
	room_id: str,
	payload: schemas.SettingsPatch,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.RoomDetail:
	try:
		return await _room_service.update_settings(auth_user, room_id, payload)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.post("/{room_id}/ban", response_model=schemas.RoomDetail)
async def ban_endpoint(
	room_id: str,
	payload: schemas.BanRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.RoomDetail:
	try:
		return await _room_service.ban(auth_user, room_id, payload.user_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.post("/{room_id}/unban", response_model=schemas.RoomDetail)
async def unban_endpoint(
	room_id: str,
	payload: schemas.BanRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.RoomDetail:
	try:
		return await _room_service.unban(auth_user, room_id, payload.user_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.patch("/{room_id}/movie", response_model=schemas.RoomDetail)
async def playback_endpoint(
	room_id: str,
	payload: schemas.PlaybackReport,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.RoomDetail:
	try:
		return await _playback_service.report(auth_user, room_id, payload)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.post("/{room_id}/watchlist", response_model=schemas.RoomDetail)
async def watchlist_add_endpoint(
	room_id: str,
	payload: schemas.WatchlistAddRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.RoomDetail:
	try:
		return await _watchlist_service.add(auth_user, room_id, payload)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.post("/{room_id}/watchlist/{movie_id}/vote", response_model=schemas.RoomDetail)
async def watchlist_vote_endpoint(
	room_id: str,
	movie_id: str,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.RoomDetail:
	try:
		return await _watchlist_service.vote(auth_user, room_id, movie_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.post("/{room_id}/watchlist/{movie_id}/select", response_model=schemas.RoomDetail)
async def watchlist_select_endpoint(
	room_id: str,
	movie_id: str,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.RoomDetail:
	try:
		return await _watchlist_service.select(auth_user, room_id, movie_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.get("/{room_id}/messages", response_model=List[schemas.RoomMessageModel])
async def list_messages_endpoint(
	room_id: str,
	before: Optional[str] = Query(default=None, max_length=64),
	limit: Optional[int] = Query(default=None, ge=1),
	auth_user: AuthenticatedUser = Depends(require_user),
) -> List[schemas.RoomMessageModel]:
	try:
		return await _chat_service.history(auth_user, room_id, before=before, limit=limit)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.post("/{room_id}/messages", response_model=schemas.RoomMessageModel, status_code=status.HTTP_201_CREATED)
async def send_message_endpoint(
	room_id: str,
	payload: schemas.MessageCreateRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.RoomMessageModel:
	try:
		return await _chat_service.send_message(auth_user, room_id, payload)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.get("/{room_id}/trivia", response_model=List[trivia_schemas.TriviaModel])
async def list_room_trivia_endpoint(
	room_id: str,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> List[trivia_schemas.TriviaModel]:
	try:
		return await _trivia_service.list_room(auth_user, room_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.post("/{room_id}/trivia", response_model=trivia_schemas.TriviaModel, status_code=status.HTTP_201_CREATED)
async def create_room_trivia_endpoint(
	room_id: str,
	payload: trivia_schemas.TriviaCreateRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> trivia_schemas.TriviaModel:
	try:
		return await _trivia_service.create_room(auth_user, room_id, payload)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.post(
	"/{room_id}/trivia/{trivia_id}/answer",
	response_model=trivia_schemas.AnswerResponse,
	response_model_exclude_none=True,
)
async def answer_room_trivia_endpoint(
	room_id: str,
	trivia_id: str,
	payload: trivia_schemas.AnswerRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> trivia_schemas.AnswerResponse:
	try:
		return await _trivia_service.answer(auth_user, trivia_id, payload, room_id=room_id)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc
