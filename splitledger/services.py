"""Business logic for the ledger service.

Validates input, calls the split calculator and writes records through the
store. Route handlers stay thin and only translate HTTP to these calls.
"""

import logging
from typing import List, Optional

from splitledger.errors import ConflictError, NotFoundError, StoreError, ValidationError
from splitledger.models import (
    Expense,
    ExpenseSplit,
    Group,
    GroupCreate,
    Settlement,
    User,
    UserCreate,
)
from splitledger.splits import compute_splits
from splitledger.utils import ensure_uuid, quantize_money

logger = logging.getLogger(__name__)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _positive_amount(amount) -> float:
    value = quantize_money(amount)
    if value <= 0:
        raise ValidationError("amount must be greater than 0")
    return float(value)


## Users

def create_user(store, user: UserCreate) -> User:
    try:
        rows = store.insert("users", {"name": user.name, "email": user.email})
    except ConflictError:
        raise ConflictError("User with this email already exists")
    logger.info("Created user %s", rows[0]["id"])
    return User(**rows[0])


def list_users(store) -> List[User]:
    rows = store.query("users", order_by="created_at", desc=True)
    return [User(**r) for r in rows]


def get_user(store, user_id: str) -> User:
    ensure_uuid(user_id, "user_id")
    row = store.get_by_id("users", user_id)
    if not row:
        raise NotFoundError("User not found")
    return User(**row)


## Groups

def ensure_group_exists(store, group_id: str) -> dict:
    """Return the group row or raise NotFoundError."""
    ensure_uuid(group_id, "group_id")
    row = store.get_by_id("groups", group_id)
    if not row:
        raise NotFoundError("Group not found")
    return row


def create_group(store, group: GroupCreate) -> Group:
    if _is_blank(group.name) or _is_blank(group.created_by):
        raise ValidationError("Name and created_by are required")
    ensure_uuid(group.created_by, "created_by")
    for member_id in group.member_ids:
        ensure_uuid(member_id, "member_ids")
    rows = store.insert("groups", {
        "name": group.name,
        "description": group.description or "",
        "created_by": group.created_by,
    })
    created = rows[0]
    # The creator is always on the roster
    member_ids = list(dict.fromkeys([group.created_by, *group.member_ids]))
    try:
        store.insert("group_members", [{"group_id": created["id"], "user_id": uid} for uid in member_ids])
    except StoreError:
        logger.error("Group %s was stored without its %d members; needs reconciliation",
                     created["id"], len(member_ids))
        raise
    logger.info("Created group %s with %d members", created["id"], len(member_ids))
    return Group(**created)


def add_member(store, group_id: str, user_id: Optional[str]) -> dict:
    if _is_blank(user_id):
        raise ValidationError("user_id is required")
    ensure_uuid(user_id, "user_id")
    ensure_group_exists(store, group_id)
    try:
        rows = store.insert("group_members", {"group_id": group_id, "user_id": user_id})
    except ConflictError:
        raise ConflictError("User is already a member of this group")
    return rows[0]


def list_user_groups(store, user_id: str) -> List[Group]:
    ensure_uuid(user_id, "user_id")
    memberships = store.query("group_members", "group_id", user_id=user_id)
    group_ids = [m["group_id"] for m in memberships]
    rows = store.query("groups", id=group_ids)
    return [Group(**r) for r in rows]


def get_group(store, group_id: str) -> Group:
    row = ensure_group_exists(store, group_id)
    memberships = store.query("group_members", "user_id", group_id=group_id)
    users = store.query("users", id=[m["user_id"] for m in memberships])
    return Group(**row, members=[User(**u) for u in users])


## Expenses

def create_expense(store, group_id, description, amount, paid_by, split_type, splits) -> Expense:
    """Validate, split and persist an expense together with its splits.

    The expense row is written first, then all split rows in one insert.
    If the second write fails the expense is left without splits; that is
    logged with the expense id for reconciliation and the StoreError is
    raised to the caller.
    """
    if any(_is_blank(v) for v in (group_id, description, amount, paid_by, split_type)) or not splits:
        raise ValidationError("group_id, description, amount, paid_by, split_type, and splits are required")
    ensure_uuid(group_id, "group_id")
    ensure_uuid(paid_by, "paid_by")
    total = _positive_amount(amount)
    shares = compute_splits(total, split_type, splits)
    for share in shares:
        ensure_uuid(share.user_id, "split user_id")
    ensure_group_exists(store, group_id)

    rows = store.insert("expenses", {
        "group_id": group_id,
        "description": description,
        "amount": total,
        "paid_by": paid_by,
        "split_type": split_type,
    })
    expense = rows[0]
    split_rows = [
        {"expense_id": expense["id"], "user_id": s.user_id, "amount": s.amount, "percentage": s.percentage}
        for s in shares
    ]
    try:
        written = store.insert("expense_splits", split_rows)
    except StoreError:
        logger.error("Expense %s was stored without its %d splits; needs reconciliation",
                     expense["id"], len(split_rows))
        raise
    logger.info("Created %s expense %s in group %s (%d splits)",
                split_type, expense["id"], group_id, len(written))
    return Expense(**expense, splits=[ExpenseSplit(**s) for s in written])


def _attach_splits(store, expense_rows: List[dict]) -> List[Expense]:
    split_rows = store.query("expense_splits", expense_id=[e["id"] for e in expense_rows])
    by_expense = {}
    for s in split_rows:
        by_expense.setdefault(s["expense_id"], []).append(ExpenseSplit(**s))
    return [Expense(**e, splits=by_expense.get(e["id"], [])) for e in expense_rows]


def list_group_expenses(store, group_id: str) -> List[Expense]:
    ensure_uuid(group_id, "group_id")
    rows = store.query("expenses", group_id=group_id, order_by="created_at", desc=True)
    return _attach_splits(store, rows)


def get_expense(store, expense_id: str) -> Expense:
    ensure_uuid(expense_id, "expense_id")
    row = store.get_by_id("expenses", expense_id)
    if not row:
        raise NotFoundError("Expense not found")
    return _attach_splits(store, [row])[0]


## Settlements

def create_settlement(store, group_id, paid_by, paid_to, amount) -> Settlement:
    """Record a payment from ``paid_by`` to ``paid_to``.

    Overpayment is allowed; it shows up as a reversed balance on the next
    query.
    """
    if any(_is_blank(v) for v in (group_id, paid_by, paid_to, amount)):
        raise ValidationError("group_id, paid_by, paid_to, and amount are required")
    if paid_by == paid_to:
        raise ValidationError("paid_by and paid_to must be different users")
    ensure_uuid(group_id, "group_id")
    ensure_uuid(paid_by, "paid_by")
    ensure_uuid(paid_to, "paid_to")
    value = _positive_amount(amount)
    ensure_group_exists(store, group_id)
    rows = store.insert("settlements", {
        "group_id": group_id,
        "paid_by": paid_by,
        "paid_to": paid_to,
        "amount": value,
    })
    logger.info("Recorded settlement %s in group %s", rows[0]["id"], group_id)
    return Settlement(**rows[0])


def list_group_settlements(store, group_id: str) -> List[Settlement]:
    ensure_uuid(group_id, "group_id")
    rows = store.query("settlements", group_id=group_id, order_by="settled_at", desc=True)
    return [Settlement(**r) for r in rows]
