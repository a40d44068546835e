import pytest

from watchparty.domain.errors import NotFound
from watchparty.domain.rooms import ledger, schemas


def _movie(movie_id: str = "tt0113277") -> schemas.MovieSummaryModel:
	return schemas.MovieSummaryModel(id=movie_id, title="Heat", thumbnail=None, year=1995)


def test_new_entry_counts_adder_vote():
	entry = ledger.new_entry(_movie(), "user-1", added_by="user-1")
	assert entry.votes == ["user-1"]
	assert entry.added_by == "user-1"
	assert entry.movie.year == "1995"


def test_toggle_vote():
	entry = ledger.new_entry(_movie(), "user-1")
	assert ledger.toggle_vote(entry, "user-2") is True
	assert entry.votes == ["user-1", "user-2"]
	assert ledger.toggle_vote(entry, "user-1") is False
	assert entry.votes == ["user-2"]


def test_remove_entry_drops_duplicates_and_ignores_missing():
	entries = [ledger.new_entry(_movie(), "a"), ledger.new_entry(_movie(), "b"), ledger.new_entry(_movie("tt2"), "c")]
	remaining = ledger.remove_entry(entries, "tt0113277")
	assert [entry.movie.id for entry in remaining] == ["tt2"]
	assert ledger.remove_entry(remaining, "missing") == remaining


def test_require_entry_raises_not_found():
	with pytest.raises(NotFound) as info:
		ledger.require_entry([], "tt1")
	assert info.value.detail == "Movie not in watchlist"
