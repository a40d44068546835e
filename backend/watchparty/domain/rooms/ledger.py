"""Watchlist ledger helpers shared by the room and personal watchlists.

They operate on a bare list of entries; persistence and access checks belong
to the callers.
"""

from __future__ import annotations

from typing import List, Optional

from watchparty.domain.common import utc_now_iso
from watchparty.domain.errors import NotFound
from watchparty.domain.rooms import models, schemas


def new_entry(movie: schemas.MovieSummaryModel, user_id: str, *, added_by: Optional[str] = None) -> models.WatchlistEntry:
	"""The adder's vote is counted immediately."""
	return models.WatchlistEntry(
		movie=models.MovieSummary(id=movie.id, title=movie.title, thumbnail=movie.thumbnail, year=movie.year),
		votes=[user_id],
		added_at=utc_now_iso(),
		added_by=added_by,
	)


def find_entry(ledger: List[models.WatchlistEntry], movie_id: str) -> Optional[models.WatchlistEntry]:
	for entry in ledger:
		if entry.movie.id == movie_id:
			return entry
	return None


def require_entry(ledger: List[models.WatchlistEntry], movie_id: str) -> models.WatchlistEntry:
	entry = find_entry(ledger, movie_id)
	if entry is None:
		raise NotFound("movie_not_in_watchlist", message="Movie not in watchlist")
	return entry


def toggle_vote(entry: models.WatchlistEntry, user_id: str) -> bool:
	"""Flip ``user_id``'s vote; returns True when the user now votes for the entry."""
	if user_id in entry.votes:
		entry.votes = [vote for vote in entry.votes if vote != user_id]
		return False
	entry.votes.append(user_id)
	return True


def remove_entry(ledger: List[models.WatchlistEntry], movie_id: str) -> List[models.WatchlistEntry]:
	"""Drop every entry for ``movie_id``; a missing id is a no-op."""
	return [entry for entry in ledger if entry.movie.id != movie_id]
