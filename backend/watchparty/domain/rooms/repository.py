"""Room persistence over the document store."""

from __future__ import annotations

from typing import List, Optional

from watchparty.domain.rooms import models
from watchparty.infra.documents import DocumentStore


class RoomRepository:
	def __init__(self, store: DocumentStore | None = None) -> None:
		self._store = store or DocumentStore("rooms")

	async def insert(self, room: models.Room) -> models.Room:
		await self._store.insert(room.to_doc())
		return room

	async def get(self, room_id: str) -> Optional[models.Room]:
		doc = await self._store.get(room_id)
		return models.Room.from_doc(doc) if doc else None

	async def save(self, room: models.Room) -> None:
		await self._store.replace(room.to_doc())

	async def get_active_by_invite_code(self, invite_code: str) -> Optional[models.Room]:
		doc = await self._store.find_one({"inviteCode": invite_code, "isActive": True})
		return models.Room.from_doc(doc) if doc else None

	async def active_name_taken(self, name: str) -> bool:
		return await self._store.find_one({"name": name, "isActive": True}) is not None

	async def list_active(self) -> List[models.Room]:
		docs = await self._store.find({"isActive": True}, order_by="createdAt")
		return [models.Room.from_doc(doc) for doc in docs]

	async def count_active(self) -> int:
		return await self._store.count({"isActive": True})

	async def nth_active(self, index: int) -> Optional[models.Room]:
		docs = await self._store.find({"isActive": True}, order_by="createdAt", offset=index, limit=1)
		return models.Room.from_doc(docs[0]) if docs else None
