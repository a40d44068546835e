from unittest.mock import AsyncMock, MagicMock

import pytest

from watchparty.domain.errors import Forbidden, NotFound, ValidationFailed
from watchparty.domain.rooms import models as room_models
from watchparty.domain.rooms.repository import RoomRepository
from watchparty.domain.trivia import schemas
from watchparty.domain.trivia.service import ALREADY_ANSWERED, TriviaService
from watchparty.infra.auth import AuthenticatedUser

OWNER = AuthenticatedUser(id="owner")
GUEST = AuthenticatedUser(id="guest")


def _question(options=None, answer="Pacino") -> schemas.TriviaCreateRequest:
	return schemas.TriviaCreateRequest(
		question="Who plays Vincent Hanna?",
		options=options or ["Pacino", "De Niro", "Kilmer", "Sizemore"],
		correctAnswer=answer,
	)


async def _room(**overrides) -> room_models.Room:
	room = room_models.Room(
		id="room-1",
		name="Movie night",
		creator="owner",
		created_at="2024-01-01T00:00:00.000000+00:00",
		participants=["owner", "guest"],
		**overrides,
	)
	await RoomRepository().insert(room)
	return room


@pytest.mark.asyncio
async def test_global_question_defaults():
	created = await TriviaService().create_global(OWNER, _question())
	assert created.category == "General"
	assert created.movie == "General"
	assert created.timestamp == 0
	assert created.points == 0
	assert created.room is None
	listed = await TriviaService().list_global()
	assert [item.id for item in listed] == [created.id]


@pytest.mark.asyncio
async def test_global_question_needs_four_options():
	with pytest.raises(ValidationFailed) as info:
		await TriviaService().create_global(OWNER, _question(options=["Pacino", "De Niro"]))
	assert info.value.detail == "Options must be an array of 4 items"


@pytest.mark.asyncio
async def test_correct_answer_must_be_an_option():
	with pytest.raises(ValidationFailed):
		await TriviaService().create_global(OWNER, _question(answer="Voight"))


@pytest.mark.asyncio
async def test_first_answer_is_final():
	service = TriviaService()
	created = await service.create_global(OWNER, _question())

	first = await service.answer(GUEST, created.id, schemas.AnswerRequest(answer="Pacino"))
	assert first.is_correct is True
	assert first.points == 1
	assert first.message is None

	again = await service.answer(GUEST, created.id, schemas.AnswerRequest(answer="Kilmer"))
	assert again.is_correct is True
	assert again.points == 1
	assert again.message == ALREADY_ANSWERED

	wrong = await service.answer(OWNER, created.id, schemas.AnswerRequest(answer="Kilmer"))
	assert wrong.is_correct is False
	assert wrong.points == 1

	answered = await service.answered_ids(GUEST)
	assert answered.answered_trivia_ids == [created.id]


@pytest.mark.asyncio
async def test_answer_validation_and_missing_question():
	service = TriviaService()
	with pytest.raises(ValidationFailed) as info:
		await service.answer(GUEST, "missing", schemas.AnswerRequest(answer="  "))
	assert info.value.detail == "Answer is required"
	with pytest.raises(NotFound) as info:
		await service.answer(GUEST, "missing", schemas.AnswerRequest(answer="Pacino"))
	assert info.value.detail == "Trivia question not found"


@pytest.mark.asyncio
async def test_room_trivia_broadcasts_and_stays_scoped():
	await _room()
	relay = MagicMock()
	relay.broadcast = AsyncMock()
	service = TriviaService(relay=relay)

	created = await service.create_room(GUEST, "room-1", _question(options=["Pacino", "De Niro"]))

	assert created.room == "room-1"
	relay.broadcast.assert_awaited_once()
	args = relay.broadcast.await_args.args
	assert args[0] == "room-1"
	assert args[1] == "new-trivia"
	assert args[2]["question"] == "Who plays Vincent Hanna?"
	assert await service.list_global() == []
	assert [item.id for item in await service.list_room(OWNER, "room-1")] == [created.id]


@pytest.mark.asyncio
async def test_room_trivia_respects_setting_and_membership():
	room_settings = room_models.RoomSettings(allow_trivia=False)
	await _room(settings=room_settings)
	service = TriviaService()
	with pytest.raises(Forbidden) as info:
		await service.create_room(OWNER, "room-1", _question())
	assert info.value.code == "trivia_disabled"
	with pytest.raises(Forbidden):
		await service.list_room(AuthenticatedUser(id="stranger"), "room-1")


@pytest.mark.asyncio
async def test_room_answer_requires_question_from_that_room():
	await _room()
	service = TriviaService()
	global_question = await service.create_global(OWNER, _question())
	with pytest.raises(NotFound):
		await service.answer(GUEST, global_question.id, schemas.AnswerRequest(answer="Pacino"), room_id="room-1")
