import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import app
from splitledger import services
from splitledger.errors import ConflictError, StoreError
from splitledger.models import GroupCreate, UserCreate
from splitledger.store import get_store

_TIMESTAMP_COLUMN = {"settlements": "settled_at", "group_members": "joined_at"}
_UNIQUE = {"users": ("email",), "group_members": ("group_id", "user_id")}


class InMemoryLedgerStore:
    """Same interface as SupabaseLedgerStore, backed by lists of dicts."""

    def __init__(self):
        self.tables = defaultdict(list)
        self.failing_tables = set()
        self.calls = []
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def insert(self, table, record):
        self.calls.append(("insert", table))
        if table in self.failing_tables:
            raise StoreError(RuntimeError(f"insert into {table} failed"))
        records = record if isinstance(record, list) else [record]
        rows = []
        for r in records:
            row = dict(r)
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault(_TIMESTAMP_COLUMN.get(table, "created_at"), self._now())
            rows.append(row)
        keys = _UNIQUE.get(table)
        if keys:
            seen = {tuple(r.get(k) for k in keys) for r in self.tables[table]}
            for row in rows:
                key = tuple(row.get(k) for k in keys)
                if key in seen:
                    raise ConflictError(f"Duplicate record in {table}")
                seen.add(key)
        self.tables[table].extend(rows)
        return [dict(r) for r in rows]

    def query(self, table, columns="*", order_by=None, desc=False, **filters):
        self.calls.append(("query", table))
        rows = self.tables[table]
        for field, value in filters.items():
            if isinstance(value, (list, tuple, set, frozenset)):
                if not value:
                    return []
                rows = [r for r in rows if r.get(field) in set(value)]
            else:
                rows = [r for r in rows if r.get(field) == value]
        if order_by:
            rows = sorted(rows, key=lambda r: r.get(order_by) or "", reverse=desc)
        if columns != "*":
            wanted = [c.strip() for c in columns.split(",")]
            return [{c: r.get(c) for c in wanted} for r in rows]
        return [dict(r) for r in rows]

    def get_by_id(self, table, record_id):
        rows = self.query(table, id=record_id)
        return rows[0] if rows else None

    def count(self, op, table):
        return self.calls.count((op, table))


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def add_user(store, name):
    return services.create_user(store, UserCreate(name=name, email=f"{name.lower()}@example.com")).id


@pytest.fixture
def trio(store):
    """Users A, B, C in one group created by A. Returns (group_id, a, b, c)."""
    a, b, c = (add_user(store, n) for n in ("Alice", "Bob", "Carol"))
    group = services.create_group(store, GroupCreate(name="Trip", created_by=a, member_ids=[b, c]))
    return group.id, a, b, c


def pay(store, group_id, payer, amount, participants, kind="equal"):
    return services.create_expense(store, group_id, "expense", amount, payer, kind, participants)


def settle(store, group_id, payer, payee, amount):
    return services.create_settlement(store, group_id, payer, payee, amount)
