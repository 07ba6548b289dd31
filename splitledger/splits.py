"""Split calculator.

Turns an expense total, a split kind and the participant input into the
per-member amounts that get stored as ``expense_splits`` rows. Pure: no
store access and no logging.
"""

from decimal import Decimal
from typing import List

from splitledger.config import SPLIT_KINDS
from splitledger.errors import ValidationError
from splitledger.models import SplitShare
from splitledger.utils import quantize_money, to_decimal, within_tolerance


def _field(item, name: str):
    """Read ``name`` from a dict or a model-like object, or None."""
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def _member_id(item) -> str:
    user_id = item if isinstance(item, str) else _field(item, "user_id")
    if not user_id:
        raise ValidationError("Each split must name a user_id")
    return str(user_id)


def _equal(total: Decimal, participants) -> List[SplitShare]:
    # Each share is rounded on its own; the leftover cent is not redistributed
    share = quantize_money(total / len(participants))
    return [SplitShare(user_id=_member_id(p), amount=float(share)) for p in participants]


def _exact(total: Decimal, participants) -> List[SplitShare]:
    amounts = [to_decimal(_field(p, "amount"), "split amount") for p in participants]
    if not within_tolerance(sum(amounts), total):
        raise ValidationError("Sum of exact splits must equal total amount")
    return [
        SplitShare(user_id=_member_id(p), amount=float(quantize_money(a)))
        for p, a in zip(participants, amounts)
    ]


def _percentage(total: Decimal, participants) -> List[SplitShare]:
    percentages = [to_decimal(_field(p, "percentage"), "percentage") for p in participants]
    if not within_tolerance(sum(percentages), 100):
        raise ValidationError("Sum of percentages must equal 100")
    return [
        SplitShare(
            user_id=_member_id(p),
            amount=float(quantize_money(total * pct / 100)),
            percentage=float(pct),
        )
        for p, pct in zip(participants, percentages)
    ]


_CALCULATORS = {
    "equal": _equal,
    "exact": _exact,
    "percentage": _percentage,
}


def compute_splits(total_amount, kind: str, participants) -> List[SplitShare]:
    """Divide ``total_amount`` among ``participants`` according to ``kind``.

    - ``equal``: participants are user ids (or objects with ``user_id``);
      everyone gets ``total / count`` rounded to cents.
    - ``exact``: participants carry ``user_id`` and ``amount``; the amounts
      must add up to the total within 0.01.
    - ``percentage``: participants carry ``user_id`` and ``percentage``; the
      percentages must add up to 100 within 0.01.

    The total is rounded to cents before it is divided.

    Raises ValidationError on an unknown kind, a non-positive total, an
    empty participant list or a sum mismatch.
    """
    if kind not in SPLIT_KINDS:
        raise ValidationError("split_type must be equal, exact, or percentage")
    total = quantize_money(total_amount)
    if total <= 0:
        raise ValidationError("amount must be greater than 0")
    if not participants:
        raise ValidationError("At least one participant is required")
    return _CALCULATORS[kind](total, list(participants))
