"""
Entity store: the only place that talks to persistence.

Two backends share one contract:
- SupabaseStore for production (supabase-py over PostgREST)
- MemoryStore for local runs without credentials and for tests

All writes are last-write-wins except update_if, which only applies when the
stored document still matches `expected` (used to close the moderation race).
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError

from models import USERS, CONFESSIONS, COMMENTS, MESSAGES

logger = logging.getLogger(__name__)

KEY_FIELDS = {
    USERS: "user_id",
    CONFESSIONS: "confession_id",
    COMMENTS: "comment_id",
    MESSAGES: "message_id",
}

OPS = ("==", "!=", "<", "<=", ">", ">=", "contains")


class StoreError(Exception):
    pass


def key_field(collection: str) -> str:
    try:
        return KEY_FIELDS[collection]
    except KeyError:
        raise StoreError(f"Unknown collection: {collection}")


class EntityStore:
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def set(self, collection: str, doc_id: str, doc: Dict[str, Any]) -> None:
        raise NotImplementedError

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError

    def update_if(self, collection: str, doc_id: str, fields: Dict[str, Any], expected: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def query(self, collection: str, field: str, op: str, value: Any,
              order_by: Optional[str] = None, descending: bool = False,
              limit: Optional[int] = None) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def count(self, collection: str, field: Optional[str] = None, value: Any = None) -> int:
        raise NotImplementedError


# ------------------ In-memory backend ------------------
def _matches(doc: Dict[str, Any], field: str, op: str, value: Any) -> bool:
    current = doc.get(field)
    if op == "==":
        return current == value
    if op == "!=":
        return current != value
    if op == "contains":
        return isinstance(current, list) and value in current
    if current is None:
        return False
    if op == "<":
        return current < value
    if op == "<=":
        return current <= value
    if op == ">":
        return current > value
    if op == ">=":
        return current >= value
    raise StoreError(f"Unsupported operator: {op}")


class MemoryStore(EntityStore):
    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {name: {} for name in KEY_FIELDS}

    def _table(self, collection: str) -> Dict[str, Dict[str, Any]]:
        key_field(collection)
        return self._data[collection]

    def get(self, collection, doc_id):
        doc = self._table(collection).get(str(doc_id))
        return copy.deepcopy(doc) if doc is not None else None

    def set(self, collection, doc_id, doc):
        stored = copy.deepcopy(doc)
        stored[key_field(collection)] = str(doc_id)
        self._table(collection)[str(doc_id)] = stored

    def update(self, collection, doc_id, fields):
        table = self._table(collection)
        if str(doc_id) not in table:
            raise StoreError(f"{collection}/{doc_id} does not exist")
        table[str(doc_id)].update(copy.deepcopy(fields))

    def update_if(self, collection, doc_id, fields, expected):
        table = self._table(collection)
        doc = table.get(str(doc_id))
        if doc is None:
            return False
        if any(doc.get(k) != v for k, v in expected.items()):
            return False
        doc.update(copy.deepcopy(fields))
        return True

    def query(self, collection, field, op, value, order_by=None, descending=False, limit=None):
        if op not in OPS:
            raise StoreError(f"Unsupported operator: {op}")
        rows = [copy.deepcopy(d) for d in self._table(collection).values() if _matches(d, field, op, value)]
        if order_by:
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return rows

    def count(self, collection, field=None, value=None):
        table = self._table(collection)
        if field is None:
            return len(table)
        return sum(1 for d in table.values() if d.get(field) == value)


# ------------------ Supabase backend ------------------
class SupabaseStore(EntityStore):
    """
    One table per collection; the key field is the primary key column.
    Nested fields (privacy, settings) are jsonb, id lists are text[].
    """

    def __init__(self, client):
        self.client = client

    def _apply_filter(self, builder, field: str, op: str, value: Any):
        if op == "==":
            return builder.eq(field, value)
        if op == "!=":
            return builder.neq(field, value)
        if op == "<":
            return builder.lt(field, value)
        if op == "<=":
            return builder.lte(field, value)
        if op == ">":
            return builder.gt(field, value)
        if op == ">=":
            return builder.gte(field, value)
        if op == "contains":
            return builder.contains(field, [value])
        raise StoreError(f"Unsupported operator: {op}")

    def get(self, collection, doc_id):
        try:
            r = self.client.table(collection).select("*").eq(key_field(collection), str(doc_id)).limit(1).execute()
        except APIError as e:
            logger.error("Error getting %s/%s: %s", collection, doc_id, e)
            raise StoreError(str(e)) from e
        return r.data[0] if r.data else None

    def set(self, collection, doc_id, doc):
        payload = dict(doc)
        payload[key_field(collection)] = str(doc_id)
        try:
            self.client.table(collection).upsert(payload).execute()
        except APIError as e:
            logger.error("Error writing %s/%s: %s", collection, doc_id, e)
            raise StoreError(str(e)) from e

    def update(self, collection, doc_id, fields):
        try:
            self.client.table(collection).update(fields).eq(key_field(collection), str(doc_id)).execute()
        except APIError as e:
            logger.error("Error updating %s/%s: %s", collection, doc_id, e)
            raise StoreError(str(e)) from e

    def update_if(self, collection, doc_id, fields, expected):
        builder = self.client.table(collection).update(fields).eq(key_field(collection), str(doc_id))
        for k, v in expected.items():
            builder = builder.eq(k, v)
        try:
            r = builder.execute()
        except APIError as e:
            logger.error("Error in conditional update %s/%s: %s", collection, doc_id, e)
            raise StoreError(str(e)) from e
        # PostgREST returns the updated rows; none means the guard did not match.
        return bool(r.data)

    def query(self, collection, field, op, value, order_by=None, descending=False, limit=None):
        builder = self._apply_filter(self.client.table(collection).select("*"), field, op, value)
        if order_by:
            builder = builder.order(order_by, desc=descending)
        if limit is not None:
            builder = builder.limit(limit)
        try:
            r = builder.execute()
        except APIError as e:
            logger.error("Error querying %s where %s %s %r: %s", collection, field, op, value, e)
            raise StoreError(str(e)) from e
        return r.data or []

    def count(self, collection, field=None, value=None):
        builder = self.client.table(collection).select(key_field(collection), count="exact")
        if field is not None:
            builder = builder.eq(field, value)
        try:
            r = builder.execute()
        except APIError as e:
            logger.error("Error counting %s: %s", collection, e)
            raise StoreError(str(e)) from e
        return int(r.count or 0)


def create_store(settings) -> EntityStore:
    if settings.uses_supabase:
        from supabase import create_client
        return SupabaseStore(create_client(settings.supabase_url, settings.supabase_key))
    logger.warning("SUPABASE_URL/SUPABASE_KEY not set, using in-memory store (data is lost on restart)")
    return MemoryStore()
