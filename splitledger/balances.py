"""Balance engine.

Folds the raw ledger (expenses with their splits, and settlements) into
simplified balances. Nothing is cached: every query reads its slice of the
ledger and recomputes from scratch, so the result is a pure function of
what the store returned.

Sign convention: ``balances[(a, b)]`` is how much ``a`` owes ``b``. A split
adds to ``(ower, payer)``; a settlement subtracts from ``(payer, payee)``
because the payer's debt to the payee shrinks by what changed hands.
"""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from splitledger.models import (
    BalanceEdge,
    BalanceSummary,
    CounterpartyBalance,
    GroupBalance,
    MemberRef,
    UserBalances,
)
from splitledger.utils import TOLERANCE, ensure_uuid, format_money, quantize_money, to_decimal

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]


def load_ledger(store, group_id) -> tuple[list[dict], list[dict]]:
    """Return (expenses, settlements) for one group id or a list of them.

    Each expense dict gets a ``splits`` list with its ``expense_splits`` rows.
    """
    expenses = store.query("expenses", "id, amount, paid_by, group_id", group_id=group_id)
    expense_ids = [e["id"] for e in expenses]
    split_rows = store.query("expense_splits", "expense_id, user_id, amount", expense_id=expense_ids)
    by_expense: Dict[str, list] = defaultdict(list)
    for row in split_rows:
        by_expense[row["expense_id"]].append(row)
    for expense in expenses:
        expense["splits"] = by_expense.get(expense["id"], [])
    settlements = store.query("settlements", "*", group_id=group_id)
    logger.debug("Loaded ledger: %d expenses, %d splits, %d settlements",
                 len(expenses), len(split_rows), len(settlements))
    return expenses, settlements


def accumulate_pairs(expenses: Iterable[dict], settlements: Iterable[dict]) -> Dict[Pair, Decimal]:
    """Sum every contribution into a mapping keyed by (ower, owed_to)."""
    balances: Dict[Pair, Decimal] = defaultdict(Decimal)
    for expense in expenses:
        payer = expense["paid_by"]
        for split in expense.get("splits", []):
            # A member's own share of what they paid is not a debt
            if split["user_id"] != payer:
                balances[(split["user_id"], payer)] += to_decimal(split["amount"])
    for settlement in settlements:
        balances[(settlement["paid_by"], settlement["paid_to"])] -= to_decimal(settlement["amount"])
    return balances


def net_pairs(balances: Dict[Pair, Decimal]) -> List[BalanceEdge]:
    """Collapse (a, b) and (b, a) into at most one directed edge per pair.

    Pairs whose net is within tolerance are settled and left out. Edges come
    out in the order their pair was first seen.
    """
    edges: List[BalanceEdge] = []
    processed = set()
    for a, b in list(balances):
        if (a, b) in processed:
            continue
        processed.add((a, b))
        processed.add((b, a))
        net = balances.get((a, b), Decimal(0)) - balances.get((b, a), Decimal(0))
        if abs(net) <= TOLERANCE:
            continue
        if net > 0:
            edges.append(BalanceEdge(from_user=a, to_user=b, amount=format_money(net)))
        else:
            edges.append(BalanceEdge(from_user=b, to_user=a, amount=format_money(-net)))
    return edges


def simplify_balances(expenses: Iterable[dict], settlements: Iterable[dict]) -> List[BalanceEdge]:
    return net_pairs(accumulate_pairs(expenses, settlements))


def resolve_members(store, user_ids: Iterable[str]) -> Dict[str, MemberRef]:
    """Fetch display records for ``user_ids`` in one query.

    Ids without a users row still resolve, to a bare MemberRef.
    """
    ids = list(dict.fromkeys(user_ids))
    rows = store.query("users", "id, name, email", id=ids)
    found = {r["id"]: MemberRef(id=r["id"], name=r.get("name"), email=r.get("email")) for r in rows}
    return {uid: found.get(uid) or MemberRef(id=uid) for uid in ids}


def get_group_balances(store, group_id: str) -> List[GroupBalance]:
    """Simplified who-owes-whom for one group."""
    ensure_uuid(group_id, "groupId")
    expenses, settlements = load_ledger(store, group_id)
    edges = simplify_balances(expenses, settlements)
    if not edges:
        return []
    members = resolve_members(store, [uid for e in edges for uid in (e.from_user, e.to_user)])
    return [
        GroupBalance(from_user=members[e.from_user], to_user=members[e.to_user], amount=e.amount)
        for e in edges
    ]


def counterparty_balances(user_id: str, expenses: Iterable[dict],
                          settlements: Iterable[dict]) -> Dict[str, Decimal]:
    """Signed balance of ``user_id`` toward each counterparty.

    Positive means the user owes the counterparty, negative means the
    counterparty owes the user.
    """
    balances: Dict[str, Decimal] = defaultdict(Decimal)
    for expense in expenses:
        payer = expense["paid_by"]
        for split in expense.get("splits", []):
            ower = split["user_id"]
            if ower == user_id and payer != user_id:
                balances[payer] += to_decimal(split["amount"])
            elif payer == user_id and ower != user_id:
                balances[ower] -= to_decimal(split["amount"])
    for settlement in settlements:
        amount = to_decimal(settlement["amount"])
        if settlement["paid_by"] == user_id:
            balances[settlement["paid_to"]] -= amount
        elif settlement["paid_to"] == user_id:
            balances[settlement["paid_by"]] += amount
    return balances


def get_user_balances(store, user_id: str) -> UserBalances:
    """What ``user_id`` owes and is owed across every group they belong to."""
    ensure_uuid(user_id, "userId")
    memberships = store.query("group_members", "group_id", user_id=user_id)
    group_ids = list(dict.fromkeys(m["group_id"] for m in memberships))
    if not group_ids:
        return UserBalances()

    expenses, settlements = load_ledger(store, group_ids)
    balances = counterparty_balances(user_id, expenses, settlements)
    open_balances = {uid: v for uid, v in balances.items() if abs(v) > TOLERANCE}
    members = resolve_members(store, open_balances)

    owes: List[CounterpartyBalance] = []
    owed: List[CounterpartyBalance] = []
    total_owes = Decimal(0)
    total_owed = Decimal(0)
    for uid, value in open_balances.items():
        amount = quantize_money(abs(value))
        if value > 0:
            owes.append(CounterpartyBalance(user=members[uid], amount=str(amount)))
            total_owes += amount
        else:
            owed.append(CounterpartyBalance(user=members[uid], amount=str(amount)))
            total_owed += amount

    return UserBalances(
        owes=owes,
        owed=owed,
        summary=BalanceSummary(total_owes=format_money(total_owes), total_owed=format_money(total_owed)),
    )
