"""Ledger store backed by Supabase.

The ledger core only needs three operations from persistence: insert
rows, query rows by simple filters, and fetch one row by id. This module
implements them on top of the PostgREST query builder and translates its
errors into the service's error types.
"""

import logging

import httpx
from postgrest.exceptions import APIError

from splitledger.errors import ConflictError, StoreError
from splitledger.utils import get_supabase_client

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
# PostgREST caps responses at 1000 rows by default
PAGE_SIZE = 1000
IN_BATCH_SIZE = 200


class SupabaseLedgerStore:
    """Key-indexed record store over Supabase tables."""

    def __init__(self, client):
        self.client = client

    def insert(self, table: str, record) -> list[dict]:
        """Insert one row (dict) or many rows (list of dicts) in a single call.

        Returns the inserted rows as written by the database, including
        server-side defaults such as ``id`` and timestamps.
        """
        try:
            res = self.client.table(table).insert(record).execute()
        except (APIError, httpx.HTTPError) as e:
            raise self._translate(table, "insert", e) from e
        return res.data or []

    def query(self, table: str, columns: str = "*", order_by: str | None = None,
              desc: bool = False, **filters) -> list[dict]:
        """Select rows from ``table``.

        A scalar filter value means equality; a list, tuple or set means
        membership. An empty membership set matches nothing, so no request
        is sent. A membership list longer than ``IN_BATCH_SIZE`` is sent in
        several requests, and each request is read in pages of
        ``PAGE_SIZE`` rows so the server's row cap never truncates a result.
        """
        members = {}
        for field, value in filters.items():
            if isinstance(value, (list, tuple, set, frozenset)):
                if not value:
                    return []
                members[field] = list(value)
        for field, values in members.items():
            if len(values) > IN_BATCH_SIZE:
                rows = []
                for i in range(0, len(values), IN_BATCH_SIZE):
                    batch = {**filters, field: values[i:i + IN_BATCH_SIZE]}
                    rows.extend(self.query(table, columns, order_by, desc, **batch))
                if order_by:
                    rows.sort(key=lambda r: r.get(order_by) or "", reverse=desc)
                return rows

        rows, start = [], 0
        while True:
            q = self.client.table(table).select(columns)
            for field, value in filters.items():
                if field in members:
                    q = q.in_(field, members[field])
                else:
                    q = q.eq(field, value)
            if order_by:
                q = q.order(order_by, desc=desc)
            q = q.range(start, start + PAGE_SIZE - 1)
            try:
                res = q.execute()
            except (APIError, httpx.HTTPError) as e:
                raise self._translate(table, "query", e) from e
            page = res.data or []
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE

    def get_by_id(self, table: str, record_id: str) -> dict | None:
        rows = self.query(table, id=record_id)
        return rows[0] if rows else None

    def _translate(self, table: str, op: str, e: Exception):
        if getattr(e, "code", None) == UNIQUE_VIOLATION:
            return ConflictError(f"Duplicate record in {table}")
        logger.exception("Store %s on %s failed: code=%s message=%s",
                         op, table, getattr(e, "code", None), getattr(e, "message", e))
        return StoreError(e)


def get_store() -> SupabaseLedgerStore:
    """FastAPI dependency returning the store for the configured project."""
    return SupabaseLedgerStore(get_supabase_client())
