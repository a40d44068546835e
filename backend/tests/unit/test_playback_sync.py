import pytest

from watchparty.domain.errors import Forbidden
from watchparty.domain.rooms import models, schemas
from watchparty.domain.rooms.playback import PlaybackService, apply_report, classify_event, drift_sample
from watchparty.domain.rooms.repository import RoomRepository
from watchparty.infra.auth import AuthenticatedUser
from watchparty.settings import settings


def _state(position: float, playing: bool, **extra) -> models.MovieState:
	return models.MovieState(current_time=position, is_playing=playing, last_updated="2024-01-01T00:00:00.000000+00:00", **extra)


def _report(position: float, playing: bool, **extra) -> schemas.PlaybackReport:
	return schemas.PlaybackReport(currentTime=position, isPlaying=playing, **extra)


def test_play_and_pause_win_over_seek():
	assert classify_event(_state(10, False), _report(100, True)) == "play"
	assert classify_event(_state(10, True), _report(100, False)) == "pause"


def test_large_jump_is_seek():
	assert classify_event(_state(10, True), _report(16, True, timestamp=123)) == "seek"


def test_small_move_with_timestamp_is_sync():
	assert classify_event(_state(10, True), _report(12, True, timestamp=123)) == "sync"
	assert classify_event(_state(10, True), _report(12, True, timestamp="2024-01-01T00:00:00Z")) == "sync"


def test_small_move_without_timestamp_falls_back_to_seek():
	assert classify_event(_state(10, True), _report(12, True)) == "seek"
	assert classify_event(_state(10, True), _report(12, True, timestamp="")) == "seek"


def test_first_report_without_previous_state():
	assert classify_event(None, _report(0, True, timestamp=1)) == "sync"
	assert classify_event(None, _report(0, True)) == "seek"
	assert drift_sample(None, _report(50, True)) is None


def test_drift_sample_threshold_and_sign():
	assert drift_sample(_state(10, True), _report(12, True)) is None
	assert drift_sample(_state(10, True), _report(13, True)) == pytest.approx(-3)
	assert drift_sample(_state(20, True), _report(17.5, True)) == pytest.approx(2.5)


def test_apply_report_replaces_optional_fields():
	previous = _state(10, True, title="Heat", url="https://example.test/heat", thumbnail="t.png")
	state = apply_report(previous, _report(12, False), now="now")
	assert state.title is None
	assert state.url is None
	assert state.current_time == 12
	assert state.is_playing is False
	assert state.last_updated == "now"


def test_apply_report_merge_keeps_unsent_fields():
	previous = _state(10, True, title="Heat", url="https://example.test/heat", thumbnail="t.png")
	state = apply_report(previous, _report(12, False, title="Heat (1995)"), now="now", merge=True)
	assert state.title == "Heat (1995)"
	assert state.url == "https://example.test/heat"
	assert state.thumbnail == "t.png"


async def _seed_room(repo: RoomRepository, *, movie=None) -> models.Room:
	room = models.Room(
		id="room-1",
		name="Movie night",
		creator="user-1",
		created_at="2024-01-01T00:00:00.000000+00:00",
		participants=["user-1", "user-2"],
		movie=movie,
	)
	await repo.insert(room)
	return room


@pytest.mark.asyncio
async def test_report_records_event_and_drift_sample():
	repo = RoomRepository()
	await _seed_room(repo, movie=_state(100, True, title="Heat"))
	service = PlaybackService(repo)

	detail = await service.report(AuthenticatedUser(id="user-2"), "room-1", _report(97, True, timestamp=5))

	assert detail.movie.current_time == 97
	assert detail.playback_events[-1].type == "sync"
	assert detail.playback_events[-1].position == 97
	assert detail.sync_events[-1].difference == pytest.approx(3)
	stored = await repo.get("room-1")
	assert stored.movie.title is None
	assert len(stored.sync_events) == 1


@pytest.mark.asyncio
async def test_report_merge_mode_from_settings():
	settings.playback_merge_fields = True
	repo = RoomRepository()
	await _seed_room(repo, movie=_state(10, True, title="Heat"))
	detail = await PlaybackService(repo).report(AuthenticatedUser(id="user-1"), "room-1", _report(11, True))
	assert detail.movie.title == "Heat"
	assert detail.sync_events == []


@pytest.mark.asyncio
async def test_report_requires_participant():
	repo = RoomRepository()
	await _seed_room(repo)
	with pytest.raises(Forbidden):
		await PlaybackService(repo).report(AuthenticatedUser(id="stranger"), "room-1", _report(1, True))
