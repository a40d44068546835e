"""Room chat message handling."""

from __future__ import annotations

from typing import List, Optional

import ulid

from watchparty.domain.common import UserRef, parse_iso, to_iso, utc_now_iso
from watchparty.domain.errors import Forbidden
from watchparty.domain.rooms import models, outbox, policy, schemas
from watchparty.domain.rooms.repository import RoomRepository
from watchparty.domain.users.service import UserService
from watchparty.infra.auth import AuthenticatedUser
from watchparty.infra.documents import DocumentStore
from watchparty.obs import metrics as obs_metrics
from watchparty.settings import settings


class RoomChatRepository:
	def __init__(self, store: DocumentStore | None = None) -> None:
		self._store = store or DocumentStore("messages")

	async def persist_message(self, message: models.RoomMessage) -> models.RoomMessage:
		await self._store.insert(message.to_doc())
		return message

	async def get_message(self, room_id: str, message_id: str) -> Optional[models.RoomMessage]:
		doc = await self._store.get(message_id)
		if not doc or doc.get("room") != room_id:
			return None
		return models.RoomMessage.from_doc(doc)

	async def fetch_messages(self, room_id: str, *, before: Optional[str], limit: int) -> List[models.RoomMessage]:
		"""Newest ``limit`` messages strictly older than ``before``, returned oldest first."""
		docs = await self._store.find(
			{"room": room_id},
			order_by="timestamp",
			descending=True,
			limit=limit,
			before=("timestamp", before) if before else None,
		)
		docs.reverse()
		return [models.RoomMessage.from_doc(doc) for doc in docs]


class RoomChatService:
	def __init__(
		self,
		repository: RoomChatRepository | None = None,
		*,
		rooms: RoomRepository | None = None,
		users: UserService | None = None,
	) -> None:
		self._repo = repository or RoomChatRepository()
		self._rooms = rooms or RoomRepository()
		self._users = users or UserService()

	async def _require_participant(self, auth_user: AuthenticatedUser, room_id: str) -> models.Room:
		room = policy.ensure_active(await self._rooms.get(room_id))
		policy.ensure_participant(room, auth_user.id)
		return room

	async def _present(self, messages: List[models.RoomMessage]) -> List[schemas.RoomMessageModel]:
		names = await self._users.get_usernames(message.user for message in messages)
		return [
			schemas.RoomMessageModel(
				id=message.id,
				room=message.room,
				user=UserRef(id=message.user, username=names.get(message.user)),
				content=message.content,
				timestamp=message.timestamp,
			)
			for message in messages
		]

	async def send_message(
		self,
		auth_user: AuthenticatedUser,
		room_id: str,
		payload: schemas.MessageCreateRequest,
	) -> schemas.RoomMessageModel:
		room = await self._require_participant(auth_user, room_id)
		if not room.settings.allow_chat:
			raise Forbidden("chat_disabled", message="Chat is disabled for this room")
		message = models.RoomMessage(
			id=str(ulid.new()),
			room=room.id,
			user=auth_user.id,
			content=payload.content,
			timestamp=utc_now_iso(),
		)
		await self._repo.persist_message(message)
		obs_metrics.inc_message_sent()
		await outbox.append_room_event("message_posted", room.id, user_id=auth_user.id, meta={"message_id": message.id})
		await self._users.record_activity(auth_user.id, "messagesSent")
		presented = await self._present([message])
		return presented[0]

	async def history(
		self,
		auth_user: AuthenticatedUser,
		room_id: str,
		*,
		before: Optional[str] = None,
		limit: Optional[int] = None,
	) -> List[schemas.RoomMessageModel]:
		await self._require_participant(auth_user, room_id)
		limit = limit or settings.messages_default_limit
		limit = max(1, min(limit, settings.messages_max_limit))
		bound = await self._resolve_cursor(room_id, before)
		messages = await self._repo.fetch_messages(room_id, before=bound, limit=limit)
		return await self._present(messages)

	async def _resolve_cursor(self, room_id: str, before: Optional[str]) -> Optional[str]:
		"""``before`` is an ISO timestamp or a message id; an unknown id means no bound."""
		if not before:
			return None
		parsed = parse_iso(before)
		if parsed is not None:
			return to_iso(parsed)
		anchor = await self._repo.get_message(room_id, before)
		return anchor.timestamp if anchor else None
