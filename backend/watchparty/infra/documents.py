"""JSONB document store used by the domain repositories.

Each collection is a table ``(id TEXT PRIMARY KEY, doc JSONB)``. Filters are
containment matches (``doc @> filter``). When no postgres pool is reachable in a
non-production environment, the same operations run against an in-memory store
that enforces the same unique indexes.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

import asyncpg

from watchparty.domain.errors import Unavailable
from watchparty.infra.postgres import get_pool
from watchparty.settings import settings

LOGGER = logging.getLogger(__name__)

COLLECTIONS = ("rooms", "users", "messages", "trivia", "trivia_answers")


@dataclass(frozen=True, slots=True)
class UniqueIndex:
	"""Unique constraint over top-level fields; documents missing a field are not indexed."""

	name: str
	collection: str
	fields: Tuple[str, ...]
	where: Tuple[Tuple[str, Any], ...] = ()

	def applies_to(self, doc: Mapping[str, Any]) -> bool:
		if any(doc.get(key) != value for key, value in self.where):
			return False
		return all(doc.get(field) is not None for field in self.fields)

	def key_of(self, doc: Mapping[str, Any]) -> Tuple[Any, ...]:
		return tuple(doc.get(field) for field in self.fields)

	def ddl(self) -> str:
		columns = ", ".join(f"(doc->>'{field}')" for field in self.fields)
		predicates = [f"doc ? '{field}'" for field in self.fields]
		if self.where:
			predicates.append(f"doc @> '{json.dumps(dict(self.where))}'::jsonb")
		return (
			f"CREATE UNIQUE INDEX IF NOT EXISTS {self.name} ON {self.collection} ({columns}) "
			f"WHERE {' AND '.join(predicates)}"
		)


UNIQUE_INDEXES: Tuple[UniqueIndex, ...] = (
	UniqueIndex("rooms_active_name_key", "rooms", ("name",), (("isActive", True),)),
	UniqueIndex("rooms_invite_code_key", "rooms", ("inviteCode",)),
	UniqueIndex("users_email_key", "users", ("email",)),
	UniqueIndex("trivia_answers_user_trivia_key", "trivia_answers", ("userId", "triviaId")),
)


class DuplicateDocument(Exception):
	"""Raised when an insert or replace violates a unique index."""

	def __init__(self, index: str) -> None:
		super().__init__(index)
		self.index = index


def _contains(doc: Any, match: Any) -> bool:
	"""In-memory equivalent of jsonb ``@>``."""
	if isinstance(match, Mapping):
		if not isinstance(doc, Mapping):
			return False
		return all(key in doc and _contains(doc[key], value) for key, value in match.items())
	if isinstance(match, list):
		if not isinstance(doc, list):
			return False
		return all(any(_contains(item, wanted) for item in doc) for wanted in match)
	if isinstance(doc, list):
		return any(_contains(item, match) for item in doc)
	return doc == match


class _MemoryStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {name: {} for name in COLLECTIONS}

	def _check_unique(self, collection: str, doc: Mapping[str, Any]) -> None:
		for index in UNIQUE_INDEXES:
			if index.collection != collection or not index.applies_to(doc):
				continue
			key = index.key_of(doc)
			for other in self.collections[collection].values():
				if other["id"] != doc["id"] and index.applies_to(other) and index.key_of(other) == key:
					raise DuplicateDocument(index.name)

	async def insert(self, collection: str, doc: Dict[str, Any]) -> None:
		async with self._lock:
			docs = self.collections[collection]
			if doc["id"] in docs:
				raise DuplicateDocument(f"{collection}_pkey")
			self._check_unique(collection, doc)
			docs[doc["id"]] = copy.deepcopy(doc)

	async def replace(self, collection: str, doc: Dict[str, Any]) -> bool:
		async with self._lock:
			docs = self.collections[collection]
			if doc["id"] not in docs:
				return False
			self._check_unique(collection, doc)
			docs[doc["id"]] = copy.deepcopy(doc)
			return True

	async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
		async with self._lock:
			doc = self.collections[collection].get(doc_id)
			return copy.deepcopy(doc) if doc is not None else None

	async def find(
		self,
		collection: str,
		match: Mapping[str, Any],
		*,
		order_by: Optional[str],
		descending: bool,
		limit: Optional[int],
		offset: int,
		before: Optional[Tuple[str, str]],
	) -> List[Dict[str, Any]]:
		async with self._lock:
			docs = [doc for doc in self.collections[collection].values() if _contains(doc, match)]
			if before is not None:
				field, bound = before
				docs = [doc for doc in docs if doc.get(field) is not None and str(doc[field]) < bound]
			if order_by is not None:
				docs.sort(key=lambda doc: (str(doc.get(order_by) or ""), doc["id"]), reverse=descending)
			docs = docs[offset:]
			if limit is not None:
				docs = docs[:limit]
			return copy.deepcopy(docs)

	async def count(self, collection: str, match: Mapping[str, Any]) -> int:
		async with self._lock:
			return sum(1 for doc in self.collections[collection].values() if _contains(doc, match))

	async def get_many(self, collection: str, doc_ids: List[str]) -> List[Dict[str, Any]]:
		async with self._lock:
			docs = self.collections[collection]
			return [copy.deepcopy(docs[doc_id]) for doc_id in doc_ids if doc_id in docs]

	def reset(self) -> None:
		self.collections = {name: {} for name in COLLECTIONS}


_MEMORY = _MemoryStore()

# one pool-or-memory decision per process, shared by every collection
_backend_checked = False
_backend_pool: Optional[asyncpg.Pool] = None


def reset_memory_state() -> None:
	global _backend_checked, _backend_pool
	_MEMORY.reset()
	_backend_checked = False
	_backend_pool = None


async def _resolve_pool(collection: str) -> Optional[asyncpg.Pool]:
	global _backend_checked, _backend_pool
	if _backend_checked:
		return _backend_pool
	try:
		pool = await get_pool()
	except AssertionError:
		pool = None
	except Exception:
		if settings.is_prod():
			LOGGER.error("postgres_unreachable", exc_info=True)
			raise Unavailable("database_unavailable")
		LOGGER.warning("postgres_unreachable_using_memory", extra={"collection": collection})
		pool = None
	if pool is None and settings.is_prod():
		raise Unavailable("database_unavailable")
	_backend_checked = True
	_backend_pool = pool
	return pool


class DocumentStore:
	"""Single-document reads and writes over one collection."""

	def __init__(self, collection: str) -> None:
		if collection not in COLLECTIONS:
			raise ValueError(f"unknown collection: {collection}")
		self.collection = collection

	async def _get_pool(self) -> Optional[asyncpg.Pool]:
		return await _resolve_pool(self.collection)

	async def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
		pool = await self._get_pool()
		if pool is None:
			await _MEMORY.insert(self.collection, doc)
			return doc
		try:
			async with pool.acquire() as conn:
				await conn.execute(
					f"INSERT INTO {self.collection} (id, doc) VALUES ($1, $2::jsonb)",
					doc["id"],
					doc,
				)
		except asyncpg.UniqueViolationError as exc:
			raise DuplicateDocument(exc.constraint_name or self.collection) from exc
		return doc

	async def replace(self, doc: Dict[str, Any]) -> bool:
		pool = await self._get_pool()
		if pool is None:
			return await _MEMORY.replace(self.collection, doc)
		try:
			async with pool.acquire() as conn:
				status = await conn.execute(
					f"UPDATE {self.collection} SET doc = $2::jsonb WHERE id = $1",
					doc["id"],
					doc,
				)
		except asyncpg.UniqueViolationError as exc:
			raise DuplicateDocument(exc.constraint_name or self.collection) from exc
		return status.endswith(" 1")

	async def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
		pool = await self._get_pool()
		if pool is None:
			return await _MEMORY.get(self.collection, doc_id)
		async with pool.acquire() as conn:
			return await conn.fetchval(f"SELECT doc FROM {self.collection} WHERE id = $1", doc_id)

	async def get_many(self, doc_ids: List[str]) -> List[Dict[str, Any]]:
		if not doc_ids:
			return []
		pool = await self._get_pool()
		if pool is None:
			return await _MEMORY.get_many(self.collection, doc_ids)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"SELECT doc FROM {self.collection} WHERE id = ANY($1::text[])",
				list(doc_ids),
			)
		return [row["doc"] for row in rows]

	async def find(
		self,
		match: Optional[Mapping[str, Any]] = None,
		*,
		order_by: Optional[str] = None,
		descending: bool = False,
		limit: Optional[int] = None,
		offset: int = 0,
		before: Optional[Tuple[str, str]] = None,
	) -> List[Dict[str, Any]]:
		"""Return documents containing ``match``.

		``before`` is a ``(field, value)`` pair keeping documents whose field sorts
		strictly below ``value`` as text.
		"""
		match = dict(match or {})
		pool = await self._get_pool()
		if pool is None:
			return await _MEMORY.find(
				self.collection,
				match,
				order_by=order_by,
				descending=descending,
				limit=limit,
				offset=offset,
				before=before,
			)
		clauses = ["doc @> $1::jsonb"]
		args: List[Any] = [match]
		if before is not None:
			args.append(before[1])
			clauses.append(f"doc->>'{_field(before[0])}' < ${len(args)}")
		sql = f"SELECT doc FROM {self.collection} WHERE {' AND '.join(clauses)}"
		if order_by is not None:
			direction = "DESC" if descending else "ASC"
			sql += f" ORDER BY doc->>'{_field(order_by)}' {direction}, id {direction}"
		if limit is not None:
			args.append(limit)
			sql += f" LIMIT ${len(args)}"
		if offset:
			args.append(offset)
			sql += f" OFFSET ${len(args)}"
		async with pool.acquire() as conn:
			rows = await conn.fetch(sql, *args)
		return [row["doc"] for row in rows]

	async def find_one(self, match: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
		docs = await self.find(match, limit=1)
		return docs[0] if docs else None

	async def count(self, match: Optional[Mapping[str, Any]] = None) -> int:
		match = dict(match or {})
		pool = await self._get_pool()
		if pool is None:
			return await _MEMORY.count(self.collection, match)
		async with pool.acquire() as conn:
			value = await conn.fetchval(
				f"SELECT COUNT(*) FROM {self.collection} WHERE doc @> $1::jsonb",
				match,
			)
		return int(value or 0)


def _field(name: str) -> str:
	if not name.replace("_", "").isalnum():
		raise ValueError(f"invalid field name: {name}")
	return name


async def ensure_schema(pool: asyncpg.Pool) -> None:
	"""Create collection tables and unique indexes if they are missing."""
	async with pool.acquire() as conn:
		async with conn.transaction():
			for collection in COLLECTIONS:
				await conn.execute(
					f"CREATE TABLE IF NOT EXISTS {collection} (id TEXT PRIMARY KEY, doc JSONB NOT NULL)"
				)
			for index in UNIQUE_INDEXES:
				await conn.execute(index.ddl())
