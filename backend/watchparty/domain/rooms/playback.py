"""Shared playback state: event classification, drift samples, and state writes.

Each report is classified against the state stored *before* it is applied:

* ``isPlaying`` changed: ``play`` or ``pause``
* position moved by more than the seek threshold: ``seek``
* the report carries a ``timestamp``: ``sync``
* anything else: ``seek``

A drift sample is recorded independently whenever the position moved by more
than the (lower) drift threshold.
"""

from __future__ import annotations

import logging
from typing import Optional

from watchparty.domain.common import utc_now_iso
from watchparty.domain.rooms import models, outbox, policy, schemas
from watchparty.domain.rooms.repository import RoomRepository
from watchparty.domain.rooms.service import present_room
from watchparty.domain.users.service import UserService
from watchparty.infra.auth import AuthenticatedUser
from watchparty.obs import metrics as obs_metrics
from watchparty.settings import settings

LOGGER = logging.getLogger(__name__)


def _has_timestamp(report: schemas.PlaybackReport) -> bool:
	return report.timestamp is not None and report.timestamp != ""


def classify_event(previous: Optional[models.MovieState], report: schemas.PlaybackReport) -> models.PlaybackEventType:
	if previous is not None and previous.is_playing != report.is_playing:
		return "play" if report.is_playing else "pause"
	if previous is not None and abs(previous.current_time - report.current_time) > settings.playback_seek_threshold_seconds:
		return "seek"
	if _has_timestamp(report):
		return "sync"
	return "seek"


def drift_sample(previous: Optional[models.MovieState], report: schemas.PlaybackReport) -> Optional[float]:
	"""Stored position minus reported position, or None below the drift threshold."""
	if previous is None:
		return None
	difference = previous.current_time - report.current_time
	if abs(difference) > settings.playback_drift_threshold_seconds:
		return difference
	return None


def apply_report(
	previous: Optional[models.MovieState],
	report: schemas.PlaybackReport,
	*,
	now: str,
	merge: bool = False,
) -> models.MovieState:
	"""Build the next movie state.

	Replace mode drops any optional field the report omits; merge mode keeps the
	previous value for fields the report did not send.
	"""
	state = models.MovieState(
		title=report.title,
		url=report.url,
		thumbnail=report.thumbnail,
		current_time=report.current_time,
		is_playing=report.is_playing,
		last_updated=now,
	)
	if merge and previous is not None:
		sent = report.model_fields_set
		for name in ("title", "url", "thumbnail"):
			if name not in sent:
				setattr(state, name, getattr(previous, name))
	return state


class PlaybackService:
	def __init__(self, repository: RoomRepository | None = None, *, users: UserService | None = None) -> None:
		self._repo = repository or RoomRepository()
		self._users = users or UserService()

	async def report(
		self,
		auth_user: AuthenticatedUser,
		room_id: str,
		report: schemas.PlaybackReport,
	) -> schemas.RoomDetail:
		room = policy.ensure_active(await self._repo.get(room_id))
		policy.ensure_participant(room, auth_user.id)
		now = utc_now_iso()
		previous = room.movie

		event_type = classify_event(previous, report)
		room.playback_events.append(
			models.PlaybackEvent(type=event_type, timestamp=now, user_id=auth_user.id, position=report.current_time)
		)
		difference = drift_sample(previous, report)
		if difference is not None:
			room.sync_events.append(models.SyncEvent(user_id=auth_user.id, timestamp=now, difference=difference))
			obs_metrics.observe_drift(difference)
			LOGGER.debug("playback_drift", extra={"room_id": room.id, "user_id": auth_user.id, "difference": difference})

		room.movie = apply_report(previous, report, now=now, merge=settings.playback_merge_fields)
		await self._repo.save(room)
		obs_metrics.inc_playback_event(event_type)
		await outbox.append_playback_event(
			event_type,
			room.id,
			user_id=auth_user.id,
			position=report.current_time,
			drift=difference,
		)
		return await present_room(room, auth_user.id, self._users)
