import uuid
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from supabase import create_client

from splitledger import config
from splitledger.errors import ValidationError

_supabase = None

CENT = Decimal("0.01")
TOLERANCE = Decimal(str(config.TOLERANCE))


def get_supabase_client():
    global _supabase
    if _supabase is not None:
        return _supabase
    if not config.SUPABASE_URL or not config.SUPABASE_KEY:
        raise Exception("SUPABASE_URL and SUPABASE_KEY must be set in .env")
    _supabase = create_client(config.SUPABASE_URL, config.SUPABASE_KEY)
    return _supabase


def to_decimal(value, field: str = "amount") -> Decimal:
    """Convert a float, int or numeric string to an exact Decimal.

    Going through str() keeps 33.33 as 33.33 instead of its binary
    approximation, so tolerance checks compare the numbers people typed.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not d.is_finite():
        raise ValidationError(f"{field} must be a number")
    return d


def quantize_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_money(value) -> float:
    """Round to cents, half-up, and return a float for storage."""
    return float(quantize_money(value))


def format_money(value) -> str:
    """Render an amount as a fixed 2-place decimal string for the wire."""
    return str(quantize_money(value))


def within_tolerance(a, b) -> bool:
    return abs(to_decimal(a) - to_decimal(b)) <= TOLERANCE


def ensure_uuid(value, field: str) -> str:
    """Raise ValidationError unless value is a well-formed UUID string."""
    try:
        uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"Invalid {field}")
    return str(value)
