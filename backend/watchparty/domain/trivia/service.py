"""Trivia bank: global and room-scoped questions plus first-answer scoring."""

from __future__ import annotations

import logging
from typing import List, Optional

import ulid

from watchparty.domain.common import UserRef, utc_now_iso
from watchparty.domain.errors import Forbidden, NotFound, ValidationFailed
from watchparty.domain.rooms import models as room_models
from watchparty.domain.rooms import outbox, policy
from watchparty.domain.rooms.relay import RoomRelay, get_relay
from watchparty.domain.rooms.repository import RoomRepository
from watchparty.domain.trivia import models, schemas
from watchparty.domain.users.service import UserService
from watchparty.infra.auth import AuthenticatedUser
from watchparty.infra.documents import DocumentStore, DuplicateDocument
from watchparty.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)

GLOBAL_OPTION_COUNT = 4
ROOM_MIN_OPTIONS = 2
ALREADY_ANSWERED = "You have already answered this question."


class TriviaRepository:
	def __init__(self, questions: DocumentStore | None = None, answers: DocumentStore | None = None) -> None:
		self._questions = questions or DocumentStore("trivia")
		self._answers = answers or DocumentStore("trivia_answers")

	async def get(self, trivia_id: str) -> Optional[models.Trivia]:
		doc = await self._questions.get(trivia_id)
		return models.Trivia.from_doc(doc) if doc else None

	async def insert(self, trivia: models.Trivia) -> None:
		await self._questions.insert(trivia.to_doc())

	async def save(self, trivia: models.Trivia) -> None:
		await self._questions.replace(trivia.to_doc())

	async def list_for(self, room_id: Optional[str]) -> List[models.Trivia]:
		docs = await self._questions.find({"room": room_id}, order_by="createdAt")
		return [models.Trivia.from_doc(doc) for doc in docs]

	async def get_answer(self, user_id: str, trivia_id: str) -> Optional[models.TriviaAnswer]:
		doc = await self._answers.find_one({"userId": user_id, "triviaId": trivia_id})
		return models.TriviaAnswer.from_doc(doc) if doc else None

	async def insert_answer(self, answer: models.TriviaAnswer) -> None:
		await self._answers.insert(answer.to_doc())

	async def answered_ids(self, user_id: str) -> List[str]:
		docs = await self._answers.find({"userId": user_id}, order_by="answeredAt")
		return [str(doc["triviaId"]) for doc in docs]


def _validate_options(payload: schemas.TriviaCreateRequest, *, exact: Optional[int]) -> List[str]:
	options = [option.strip() for option in payload.options]
	if exact is not None and len(options) != exact:
		raise ValidationFailed("invalid_options", message=f"Options must be an array of {exact} items")
	if len(options) < ROOM_MIN_OPTIONS or any(not option for option in options):
		raise ValidationFailed("invalid_options", message="At least two non-empty options are required")
	if payload.correct_answer.strip() not in options:
		raise ValidationFailed("invalid_correct_answer", message="Correct answer must be one of the options")
	return options


class TriviaService:
	def __init__(
		self,
		repository: TriviaRepository | None = None,
		*,
		rooms: RoomRepository | None = None,
		users: UserService | None = None,
		relay: RoomRelay | None = None,
	) -> None:
		self._repo = repository or TriviaRepository()
		self._rooms = rooms or RoomRepository()
		self._users = users or UserService()
		self._relay = relay

	@property
	def relay(self) -> Optional[RoomRelay]:
		return self._relay or get_relay()

	async def _present(self, items: List[models.Trivia]) -> List[schemas.TriviaModel]:
		names = await self._users.get_usernames(item.created_by for item in items)
		return [
			schemas.TriviaModel(
				id=item.id,
				room=item.room,
				movie=item.movie,
				question=item.question,
				options=list(item.options),
				correct_answer=item.correct_answer,
				timestamp=item.timestamp,
				created_by=UserRef(id=item.created_by, username=names.get(item.created_by)),
				created_at=item.created_at,
				category=item.category,
				points=item.points,
			)
			for item in items
		]

	async def _room_for(self, auth_user: AuthenticatedUser, room_id: str) -> room_models.Room:
		room = policy.ensure_active(await self._rooms.get(room_id))
		policy.ensure_participant(room, auth_user.id)
		return room

	def _build(
		self,
		auth_user: AuthenticatedUser,
		payload: schemas.TriviaCreateRequest,
		options: List[str],
		*,
		room_id: Optional[str],
	) -> models.Trivia:
		return models.Trivia(
			id=str(ulid.new()),
			room=room_id,
			movie=payload.movie or "General",
			question=payload.question.strip(),
			options=options,
			correct_answer=payload.correct_answer.strip(),
			timestamp=payload.timestamp or 0.0,
			created_by=auth_user.id,
			created_at=utc_now_iso(),
			category=payload.category or "General",
		)

	async def list_global(self) -> List[schemas.TriviaModel]:
		return await self._present(await self._repo.list_for(None))

	async def create_global(self, auth_user: AuthenticatedUser, payload: schemas.TriviaCreateRequest) -> schemas.TriviaModel:
		options = _validate_options(payload, exact=GLOBAL_OPTION_COUNT)
		trivia = self._build(auth_user, payload, options, room_id=None)
		await self._repo.insert(trivia)
		obs_metrics.inc_trivia_created("global")
		LOGGER.info("trivia_created", extra={"trivia_id": trivia.id})
		presented = await self._present([trivia])
		return presented[0]

	async def list_room(self, auth_user: AuthenticatedUser, room_id: str) -> List[schemas.TriviaModel]:
		room = await self._room_for(auth_user, room_id)
		return await self._present(await self._repo.list_for(room.id))

	async def create_room(
		self,
		auth_user: AuthenticatedUser,
		room_id: str,
		payload: schemas.TriviaCreateRequest,
	) -> schemas.TriviaModel:
		room = await self._room_for(auth_user, room_id)
		if not room.settings.allow_trivia:
			raise Forbidden("trivia_disabled", message="Trivia is disabled for this room")
		options = _validate_options(payload, exact=None)
		trivia = self._build(auth_user, payload, options, room_id=room.id)
		if not payload.movie and room.movie is not None and room.movie.title:
			trivia.movie = room.movie.title
		await self._repo.insert(trivia)
		obs_metrics.inc_trivia_created("room")
		LOGGER.info("trivia_created", extra={"trivia_id": trivia.id, "room_id": room.id})
		await outbox.append_room_event("trivia_created", room.id, user_id=auth_user.id, meta={"trivia_id": trivia.id})
		presented = (await self._present([trivia]))[0]
		if self.relay is not None:
			await self.relay.broadcast(room.id, "new-trivia", presented.model_dump(by_alias=True))
		return presented

	async def answer(
		self,
		auth_user: AuthenticatedUser,
		trivia_id: str,
		payload: schemas.AnswerRequest,
		*,
		room_id: Optional[str] = None,
	) -> schemas.AnswerResponse:
		if payload.answer is None or not payload.answer.strip():
			raise ValidationFailed("answer_required", message="Answer is required")
		if room_id is not None:
			await self._room_for(auth_user, room_id)
		trivia = await self._repo.get(trivia_id)
		if trivia is None or (room_id is not None and trivia.room != room_id):
			raise NotFound("trivia_not_found", message="Trivia question not found")
		if room_id is None and trivia.room is not None:
			# room questions stay behind the room's participant gate
			await self._room_for(auth_user, trivia.room)

		existing = await self._repo.get_answer(auth_user.id, trivia.id)
		if existing is not None:
			return self._already_answered(existing, trivia)

		submitted = payload.answer.strip()
		record = models.TriviaAnswer(
			id=str(ulid.new()),
			user_id=auth_user.id,
			trivia_id=trivia.id,
			answer=submitted,
			is_correct=submitted == trivia.correct_answer,
			answered_at=utc_now_iso(),
		)
		try:
			await self._repo.insert_answer(record)
		except DuplicateDocument:
			raced = await self._repo.get_answer(auth_user.id, trivia.id)
			if raced is None:
				raise
			return self._already_answered(raced, trivia)

		if record.is_correct:
			# increment on the freshest stored copy
			current = await self._repo.get(trivia.id) or trivia
			current.points += 1
			await self._repo.save(current)
			trivia = current
		obs_metrics.inc_trivia_answer("correct" if record.is_correct else "incorrect")
		return schemas.AnswerResponse(is_correct=record.is_correct, points=trivia.points)

	def _already_answered(self, existing: models.TriviaAnswer, trivia: models.Trivia) -> schemas.AnswerResponse:
		obs_metrics.inc_trivia_answer("repeat")
		return schemas.AnswerResponse(is_correct=existing.is_correct, points=trivia.points, message=ALREADY_ANSWERED)

	async def answered_ids(self, auth_user: AuthenticatedUser) -> schemas.AnsweredResponse:
		return schemas.AnsweredResponse(answered_trivia_ids=await self._repo.answered_ids(auth_user.id))
