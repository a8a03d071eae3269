import copy
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel
from postgrest.exceptions import APIError
from supabase import AsyncClient

UNIQUE_VIOLATION = "23505"


class DuplicateDocumentError(Exception):
    """An insert collided with a unique constraint."""


COLLECTIONS = (
    "users",
    "teams",
    "tasks",
    "time_logs",
    "comments",
    "team_leave_requests",
    "notifications",
)


def encode(value: Any) -> Any:
    """Convert ids, enums, datetimes and models to their JSON representation."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [encode(item) for item in value]
    return value


def _stamp(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = encode(doc)
    doc.setdefault("id", str(uuid4()))
    doc.setdefault("created_at", datetime.now(timezone.utc).isoformat())
    return doc


class Collection(ABC):
    """A named set of JSON documents addressed by their ``id``."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def get(self, doc_id: Any) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        contains: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        desc: bool = False,
    ) -> List[Dict[str, Any]]:
        """Documents whose fields equal ``filters`` (``None`` matches null) and
        whose array fields include every value in ``contains``."""

    @abstractmethod
    async def update(
        self,
        doc_id: Any,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Apply ``patch``; when ``expected`` is given the write only happens if
        the stored fields still match it. Returns ``None`` when nothing changed."""

    @abstractmethod
    async def update_many(self, filters: Dict[str, Any], patch: Dict[str, Any]) -> int:
        pass

    @abstractmethod
    async def delete(self, doc_id: Any) -> bool:
        pass

    @abstractmethod
    async def delete_many(self, filters: Dict[str, Any]) -> int:
        pass

    @abstractmethod
    async def increment(
        self, doc_id: Any, field: str, amount: float
    ) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def add_to_set(
        self, doc_id: Any, field: str, value: Any
    ) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def pull(self, doc_id: Any, field: str, value: Any) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def append(
        self, doc_id: Any, field: str, value: Any
    ) -> Optional[Dict[str, Any]]:
        pass

    async def find_one(self, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        docs = await self.find(filters)
        return docs[0] if docs else None

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        return len(await self.find(filters))


class MemoryCollection(Collection):
    """In-process collection. No method awaits between reading and writing a
    document, so each operation is atomic for concurrent coroutines."""

    def __init__(self, name: str):
        super().__init__(name)
        self._docs: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def _matches(
        doc: Dict[str, Any],
        filters: Optional[Dict[str, Any]],
        contains: Optional[Dict[str, Any]] = None,
    ) -> bool:
        for key, value in encode(filters or {}).items():
            if doc.get(key) != value:
                return False
        for key, value in encode(contains or {}).items():
            if value not in (doc.get(key) or []):
                return False
        return True

    async def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        doc = _stamp(doc)
        self._docs[doc["id"]] = doc
        return copy.deepcopy(doc)

    async def get(self, doc_id: Any) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(str(doc_id))
        return copy.deepcopy(doc) if doc is not None else None

    async def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        contains: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        desc: bool = False,
    ) -> List[Dict[str, Any]]:
        docs = [
            copy.deepcopy(doc)
            for doc in self._docs.values()
            if self._matches(doc, filters, contains)
        ]
        if order_by:
            present = [doc for doc in docs if doc.get(order_by) is not None]
            missing = [doc for doc in docs if doc.get(order_by) is None]
            present.sort(key=lambda doc: doc[order_by], reverse=desc)
            docs = present + missing
        return docs

    async def update(
        self,
        doc_id: Any,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(str(doc_id))
        if doc is None or not self._matches(doc, expected):
            return None
        doc.update(encode(patch))
        return copy.deepcopy(doc)

    async def update_many(self, filters: Dict[str, Any], patch: Dict[str, Any]) -> int:
        changed = 0
        for doc in self._docs.values():
            if self._matches(doc, filters):
                doc.update(encode(patch))
                changed += 1
        return changed

    async def delete(self, doc_id: Any) -> bool:
        return self._docs.pop(str(doc_id), None) is not None

    async def delete_many(self, filters: Dict[str, Any]) -> int:
        doomed = [
            doc_id for doc_id, doc in self._docs.items() if self._matches(doc, filters)
        ]
        for doc_id in doomed:
            del self._docs[doc_id]
        return len(doomed)

    async def increment(
        self, doc_id: Any, field: str, amount: float
    ) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(str(doc_id))
        if doc is None:
            return None
        doc[field] = (doc.get(field) or 0) + amount
        return copy.deepcopy(doc)

    async def add_to_set(
        self, doc_id: Any, field: str, value: Any
    ) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(str(doc_id))
        if doc is None:
            return None
        items = doc.setdefault(field, [])
        value = encode(value)
        if value not in items:
            items.append(value)
        return copy.deepcopy(doc)

    async def pull(self, doc_id: Any, field: str, value: Any) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(str(doc_id))
        if doc is None:
            return None
        value = encode(value)
        doc[field] = [item for item in doc.get(field) or [] if item != value]
        return copy.deepcopy(doc)

    async def append(
        self, doc_id: Any, field: str, value: Any
    ) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(str(doc_id))
        if doc is None:
            return None
        doc.setdefault(field, []).append(encode(value))
        return copy.deepcopy(doc)


class SupabaseCollection(Collection):
    """Collection backed by a Supabase (PostgREST) table.

    The atomic primitives go through the ``doc_*`` Postgres functions declared
    in ``backend/sql/schema.sql``.
    """

    def __init__(self, name: str, supabase_client: AsyncClient):
        super().__init__(name)
        self.client = supabase_client

    def _table(self):
        return self.client.table(self.name)

    @staticmethod
    def _apply_filters(query, filters: Optional[Dict[str, Any]]):
        for key, value in encode(filters or {}).items():
            query = query.is_(key, "null") if value is None else query.eq(key, value)
        return query

    async def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = (
                await self._table()
                .insert(_stamp(doc), returning="representation")
                .execute()
            )
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise DuplicateDocumentError(e.message) from e
            raise
        return result.data[0]

    async def get(self, doc_id: Any) -> Optional[Dict[str, Any]]:
        rows = (
            await self._table().select("*").eq("id", str(doc_id)).limit(1).execute()
        ).data
        return rows[0] if rows else None

    async def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        contains: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        desc: bool = False,
    ) -> List[Dict[str, Any]]:
        query = self._apply_filters(self._table().select("*"), filters)
        for key, value in encode(contains or {}).items():
            query = query.contains(key, [value])
        if order_by:
            query = query.order(order_by, desc=desc, nullsfirst=False)
        return (await query.execute()).data

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        query = self._apply_filters(
            self._table().select("id", count="exact", head=True), filters
        )
        return (await query.execute()).count or 0

    async def update(
        self,
        doc_id: Any,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        query = self._table().update(encode(patch), returning="representation").eq(
            "id", str(doc_id)
        )
        rows = (await self._apply_filters(query, expected).execute()).data
        return rows[0] if rows else None

    async def update_many(self, filters: Dict[str, Any], patch: Dict[str, Any]) -> int:
        query = self._table().update(encode(patch), returning="representation")
        return len((await self._apply_filters(query, filters).execute()).data)

    async def delete(self, doc_id: Any) -> bool:
        rows = (await self._table().delete().eq("id", str(doc_id)).execute()).data
        return bool(rows)

    async def delete_many(self, filters: Dict[str, Any]) -> int:
        return len((await self._apply_filters(self._table().delete(), filters).execute()).data)

    async def _rpc(self, function: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return (
            await self.client.rpc(
                function, {"p_table": self.name, **encode(params)}
            ).execute()
        ).data

    async def increment(
        self, doc_id: Any, field: str, amount: float
    ) -> Optional[Dict[str, Any]]:
        return await self._rpc(
            "doc_increment", {"p_id": doc_id, "p_field": field, "p_amount": amount}
        )

    async def add_to_set(
        self, doc_id: Any, field: str, value: Any
    ) -> Optional[Dict[str, Any]]:
        return await self._rpc(
            "doc_add_to_set", {"p_id": doc_id, "p_field": field, "p_value": value}
        )

    async def pull(self, doc_id: Any, field: str, value: Any) -> Optional[Dict[str, Any]]:
        return await self._rpc(
            "doc_pull", {"p_id": doc_id, "p_field": field, "p_value": value}
        )

    async def append(
        self, doc_id: Any, field: str, value: Any
    ) -> Optional[Dict[str, Any]]:
        return await self._rpc(
            "doc_append", {"p_id": doc_id, "p_field": field, "p_value": value}
        )


class Database:
    """Handles to every collection plus the blob store, passed to services."""

    def __init__(self, collections: Dict[str, Collection], blobs):
        self.users = collections["users"]
        self.teams = collections["teams"]
        self.tasks = collections["tasks"]
        self.time_logs = collections["time_logs"]
        self.comments = collections["comments"]
        self.leave_requests = collections["team_leave_requests"]
        self.notifications = collections["notifications"]
        self.blobs = blobs

    @staticmethod
    def in_memory() -> "Database":
        from app.db.blob_store import MemoryBlobStore

        return Database(
            {name: MemoryCollection(name) for name in COLLECTIONS}, MemoryBlobStore()
        )

    @staticmethod
    def supabase(supabase_client: AsyncClient) -> "Database":
        from app.db.blob_store import SupabaseBlobStore

        return Database(
            {name: SupabaseCollection(name, supabase_client) for name in COLLECTIONS},
            SupabaseBlobStore(supabase_client),
        )
