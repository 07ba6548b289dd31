import uuid

import pytest

from conftest import pay, settle
from splitledger import services
from splitledger.balances import (
    get_group_balances,
    get_user_balances,
    net_pairs,
    simplify_balances,
)
from splitledger.errors import ValidationError
from splitledger.models import GroupCreate


def expense(payer, *splits):
    return {"paid_by": payer, "splits": [{"user_id": u, "amount": a} for u, a in splits]}


def settlement(payer, payee, amount):
    return {"paid_by": payer, "paid_to": payee, "amount": amount}


def edges(result):
    return {(e.from_user, e.to_user): e.amount for e in result}


THREE_WAY = [
    expense("A", ("A", 100), ("B", 100), ("C", 100)),
    expense("B", ("A", 30), ("B", 30), ("C", 30)),
    expense("C", ("A", 20), ("B", 20), ("C", 20)),
]


class TestNetting:

    def test_three_way_example(self):
        assert edges(simplify_balances(THREE_WAY, [])) == {
            ("B", "A"): "70.00",
            ("C", "A"): "80.00",
            ("C", "B"): "10.00",
        }

    def test_settlement_only_moves_its_own_edge(self):
        result = simplify_balances(THREE_WAY, [settlement("C", "A", 50)])
        assert edges(result) == {
            ("B", "A"): "70.00",
            ("C", "A"): "30.00",
            ("C", "B"): "10.00",
        }

    def test_settlement_cancels_debt(self):
        ledger = [expense("A", ("A", 30), ("B", 30), ("C", 30))]
        result = simplify_balances(ledger, [settlement("B", "A", 30)])
        assert edges(result) == {("C", "A"): "30.00"}

    def test_overpayment_reverses_direction(self):
        ledger = [expense("A", ("A", 30), ("B", 30))]
        result = simplify_balances(ledger, [settlement("B", "A", 50)])
        assert edges(result) == {("A", "B"): "20.00"}

    def test_settlement_without_prior_debt_creates_reverse_debt(self):
        assert edges(simplify_balances([], [settlement("A", "B", 25)])) == {("B", "A"): "25.00"}

    def test_own_share_is_not_a_debt(self):
        assert simplify_balances([expense("A", ("A", 50))], []) == []

    def test_pair_within_tolerance_is_omitted(self):
        ledger = [expense("A", ("B", 10.00)), expense("B", ("A", 9.99))]
        assert simplify_balances(ledger, []) == []

    def test_pair_just_outside_tolerance_is_kept(self):
        ledger = [expense("A", ("B", 10.00)), expense("B", ("A", 9.98))]
        assert edges(simplify_balances(ledger, [])) == {("B", "A"): "0.02"}

    def test_at_most_one_edge_per_pair(self):
        balances = {("A", "B"): 40, ("B", "A"): 15, ("B", "C"): 5}
        result = net_pairs(balances)
        assert edges(result) == {("A", "B"): "25.00", ("B", "C"): "5.00"}

    def test_netting_is_idempotent(self):
        ledger = THREE_WAY + [expense("B", ("C", 12.34))]
        settlements = [settlement("C", "A", 50), settlement("A", "B", 5)]
        first = simplify_balances(ledger, settlements)
        second = simplify_balances(ledger, settlements)
        assert first == second


class TestGroupBalances:

    def test_settlement_example_against_store(self, store, trio):
        group_id, a, b, c = trio
        pay(store, group_id, a, 90, [a, b, c])
        settle(store, group_id, b, a, 30)

        result = get_group_balances(store, group_id)

        assert len(result) == 1
        assert result[0].from_user.id == c
        assert result[0].from_user.name == "Carol"
        assert result[0].to_user.id == a
        assert result[0].amount == "30.00"

    def test_three_way_example_against_store(self, store, trio):
        group_id, a, b, c = trio
        pay(store, group_id, a, 300, [a, b, c])
        pay(store, group_id, b, 90, [a, b, c])
        pay(store, group_id, c, 60, [a, b, c])

        def named(result):
            return {(e.from_user.name, e.to_user.name): e.amount for e in result}

        assert named(get_group_balances(store, group_id)) == {
            ("Bob", "Alice"): "70.00",
            ("Carol", "Alice"): "80.00",
            ("Carol", "Bob"): "10.00",
        }

        settle(store, group_id, c, a, 50)
        assert named(get_group_balances(store, group_id)) == {
            ("Bob", "Alice"): "70.00",
            ("Carol", "Alice"): "30.00",
            ("Carol", "Bob"): "10.00",
        }

    def test_member_records_fetched_in_one_batch(self, store, trio):
        group_id, a, b, c = trio
        pay(store, group_id, a, 300, [a, b, c])
        pay(store, group_id, b, 90, [a, b, c])
        before = store.count("query", "users")
        get_group_balances(store, group_id)
        assert store.count("query", "users") - before == 1

    def test_unknown_member_resolves_to_bare_ref(self, store, trio):
        group_id, a, _, _ = trio
        ghost = str(uuid.uuid4())
        settle(store, group_id, a, ghost, 12.5)
        result = get_group_balances(store, group_id)
        assert result[0].from_user.id == ghost
        assert result[0].from_user.name is None
        assert result[0].amount == "12.50"

    def test_empty_group_has_no_balances(self, store, trio):
        group_id = trio[0]
        assert get_group_balances(store, group_id) == []

    def test_other_groups_do_not_leak(self, store, trio):
        group_id, a, b, c = trio
        other = services.create_group(store, GroupCreate(name="Other", created_by=a, member_ids=[b])).id
        pay(store, other, a, 100, [a, b])
        assert get_group_balances(store, group_id) == []

    @pytest.mark.parametrize("bad_id", ["", "not-a-uuid", "123", None])
    def test_malformed_group_id(self, store, bad_id):
        with pytest.raises(ValidationError, match="groupId"):
            get_group_balances(store, bad_id)


class TestUserBalances:

    def test_user_in_no_groups(self, store):
        result = get_user_balances(store, str(uuid.uuid4()))
        assert result.owes == []
        assert result.owed == []
        assert result.summary.total_owes == "0.00"
        assert result.summary.total_owed == "0.00"

    def test_three_way_from_each_side(self, store, trio):
        group_id, a, b, c = trio
        pay(store, group_id, a, 300, [a, b, c])
        pay(store, group_id, b, 90, [a, b, c])
        pay(store, group_id, c, 60, [a, b, c])

        for_a = get_user_balances(store, a)
        assert for_a.owes == []
        assert {x.user.name: x.amount for x in for_a.owed} == {"Bob": "70.00", "Carol": "80.00"}
        assert for_a.summary.total_owed == "150.00"
        assert for_a.summary.total_owes == "0.00"

        for_c = get_user_balances(store, c)
        assert {x.user.name: x.amount for x in for_c.owes} == {"Alice": "80.00", "Bob": "10.00"}
        assert for_c.summary.total_owes == "90.00"

        for_b = get_user_balances(store, b)
        assert {x.user.name: x.amount for x in for_b.owes} == {"Alice": "70.00"}
        assert {x.user.name: x.amount for x in for_b.owed} == {"Carol": "10.00"}

    def test_settled_counterparty_is_omitted(self, store, trio):
        group_id, a, b, c = trio
        pay(store, group_id, a, 90, [a, b, c])
        settle(store, group_id, b, a, 30)

        for_b = get_user_balances(store, b)
        assert for_b.owes == [] and for_b.owed == []

        for_a = get_user_balances(store, a)
        assert [(x.user.id, x.amount) for x in for_a.owed] == [(c, "30.00")]

    def test_sums_across_groups(self, store, trio):
        group_id, a, b, c = trio
        other = services.create_group(store, GroupCreate(name="Flat", created_by=b, member_ids=[a])).id
        pay(store, group_id, a, 20, [a, b])
        pay(store, other, a, 30, [a, b])
        for_b = get_user_balances(store, b)
        assert [(x.user.id, x.amount) for x in for_b.owes] == [(a, "25.00")]

    def test_malformed_user_id(self, store):
        with pytest.raises(ValidationError, match="userId"):
            get_user_balances(store, "abc")


def test_group_and_user_views_agree(store, trio):
    group_id, a, b, c = trio
    pay(store, group_id, a, 300, [a, b, c])
    pay(store, group_id, b, 90, [a, b, c])
    pay(store, group_id, c, 100, [
        {"user_id": a, "percentage": 25},
        {"user_id": b, "percentage": 25},
        {"user_id": c, "percentage": 50},
    ], kind="percentage")
    pay(store, group_id, b, 40, [{"user_id": a, "amount": 15}, {"user_id": c, "amount": 25}], kind="exact")
    settle(store, group_id, c, a, 50)
    settle(store, group_id, a, b, 5)
    settle(store, group_id, b, c, 7.5)

    group_view = {(e.from_user.id, e.to_user.id): e.amount for e in get_group_balances(store, group_id)}
    user_view = {}
    for member in (a, b, c):
        result = get_user_balances(store, member)
        for item in result.owes:
            user_view[(member, item.user.id)] = item.amount
        for item in result.owed:
            assert user_view.setdefault((item.user.id, member), item.amount) == item.amount

    assert group_view == user_view
