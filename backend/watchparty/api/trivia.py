"""FastAPI routes for the global trivia bank."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from watchparty.api.deps import require_user
from watchparty.api.errors import as_http_error
from watchparty.domain.errors import WatchPartyError
from watchparty.domain.trivia import schemas
from watchparty.domain.trivia.service import TriviaService
from watchparty.infra.auth import AuthenticatedUser

router = APIRouter(prefix="/trivia", tags=["trivia"])

_trivia_service = TriviaService()


@router.get("", response_model=List[schemas.TriviaModel])
async def list_trivia_endpoint() -> List[schemas.TriviaModel]:
	return await _trivia_service.list_global()


@router.post("", response_model=schemas.TriviaModel, status_code=status.HTTP_201_CREATED)
async def create_trivia_endpoint(
	payload: schemas.TriviaCreateRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.TriviaModel:
	try:
		return await _trivia_service.create_global(auth_user, payload)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc


@router.get("/answered", response_model=schemas.AnsweredResponse)
async def answered_endpoint(auth_user: AuthenticatedUser = Depends(require_user)) -> schemas.AnsweredResponse:
	return await _trivia_service.answered_ids(auth_user)


@router.post("/{trivia_id}/answer", response_model=schemas.AnswerResponse, response_model_exclude_none=True)
async def answer_endpoint(
	trivia_id: str,
	payload: schemas.AnswerRequest,
	auth_user: AuthenticatedUser = Depends(require_user),
) -> schemas.AnswerResponse:
	try:
		return await _trivia_service.answer(auth_user, trivia_id, payload)
	except WatchPartyError as exc:
		raise as_http_error(exc) from exc
