from unittest.mock import AsyncMock

import pytest

from watchparty.infra import documents
from watchparty.infra.documents import DocumentStore, DuplicateDocument


@pytest.mark.asyncio
async def test_active_room_name_is_unique_only_while_active():
	store = DocumentStore("rooms")
	await store.insert({"id": "r1", "name": "Movie night", "isActive": True})
	with pytest.raises(DuplicateDocument) as info:
		await store.insert({"id": "r2", "name": "Movie night", "isActive": True})
	assert info.value.index == "rooms_active_name_key"

	await store.replace({"id": "r1", "name": "Movie night", "isActive": False})
	await store.insert({"id": "r2", "name": "Movie night", "isActive": True})


@pytest.mark.asyncio
async def test_invite_code_index_is_sparse():
	store = DocumentStore("rooms")
	await store.insert({"id": "r1", "name": "a", "isActive": True})
	await store.insert({"id": "r2", "name": "b", "isActive": True})
	await store.insert({"id": "r3", "name": "c", "isActive": True, "inviteCode": "ABC123"})
	with pytest.raises(DuplicateDocument):
		await store.insert({"id": "r4", "name": "d", "isActive": True, "inviteCode": "ABC123"})


@pytest.mark.asyncio
async def test_primary_key_conflict_and_missing_replace():
	store = DocumentStore("messages")
	await store.insert({"id": "m1", "room": "r1"})
	with pytest.raises(DuplicateDocument):
		await store.insert({"id": "m1", "room": "r1"})
	assert await store.replace({"id": "m2", "room": "r1"}) is False


@pytest.mark.asyncio
async def test_find_orders_filters_and_bounds():
	store = DocumentStore("messages")
	for index in range(5):
		await store.insert({"id": f"m{index}", "room": "r1", "timestamp": f"2024-01-01T00:00:0{index}.000000+00:00"})
	await store.insert({"id": "other", "room": "r2", "timestamp": "2024-01-01T00:00:09.000000+00:00"})

	newest = await store.find({"room": "r1"}, order_by="timestamp", descending=True, limit=2)
	assert [doc["id"] for doc in newest] == ["m4", "m3"]

	older = await store.find(
		{"room": "r1"},
		order_by="timestamp",
		descending=True,
		before=("timestamp", "2024-01-01T00:00:02.000000+00:00"),
	)
	assert [doc["id"] for doc in older] == ["m1", "m0"]
	assert await store.count({"room": "r1"}) == 5


@pytest.mark.asyncio
async def test_documents_are_copied():
	store = DocumentStore("users")
	doc = {"id": "u1", "watchlist": []}
	await store.insert(doc)
	doc["watchlist"].append("mutated")
	loaded = await store.get("u1")
	assert loaded["watchlist"] == []


def test_unknown_collection_rejected():
	with pytest.raises(ValueError):
		DocumentStore("sessions")


@pytest.mark.asyncio
async def test_backend_decision_is_shared_across_collections(monkeypatch):
	lookups = AsyncMock(side_effect=AssertionError("pool not initialised"))
	monkeypatch.setattr(documents, "get_pool", lookups)

	await DocumentStore("rooms").insert({"id": "r1", "name": "a", "isActive": True})
	await DocumentStore("users").get("u1")
	await DocumentStore("rooms").get("r1")

	assert lookups.await_count == 1
	assert await DocumentStore("rooms").get("r1") == {"id": "r1", "name": "a", "isActive": True}
