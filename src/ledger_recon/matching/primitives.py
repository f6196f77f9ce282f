"""
Comparison helpers shared by the automatic reconciler and the candidate scorer.
"""

from datetime import date, datetime
from decimal import Decimal
import math

from ..models.transaction import Transaction

SECONDS_PER_DAY = 24 * 60 * 60

# Tokens this short ("de", "the", "pos") carry no identifying signal
MIN_TOKEN_LENGTH = 4


def signed_amount(txn: Transaction) -> Decimal:
    """Positive for income, negative for expense."""
    return txn.signed_amount


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def day_difference(first: date, second: date) -> int:
    """
    Whole-day distance between two dates.

    The absolute time difference is rounded up to the next whole day, so two
    datetimes a few hours apart on different days count as one day apart.
    """
    delta = abs((_as_datetime(first) - _as_datetime(second)).total_seconds())
    return math.ceil(delta / SECONDS_PER_DAY)


def dates_within(first: date, second: date, margin_days: int) -> bool:
    """Inclusive date window check."""
    return day_difference(first, second) <= margin_days


def amounts_within(first: Decimal, second: Decimal, tolerance: Decimal) -> bool:
    return abs(first - second) <= tolerance


def sign(value: Decimal) -> int:
    return (value > 0) - (value < 0)


def same_sign(first: Decimal, second: Decimal) -> bool:
    return sign(first) == sign(second)


def _tokens(text: str) -> set[str]:
    return {word for word in (text or "").lower().split() if len(word) >= MIN_TOKEN_LENGTH}


def description_similarity(first: str, second: str) -> float:
    """
    Word-overlap (Jaccard) similarity between two descriptions.

    Both texts are lower-cased and split on whitespace; words of three
    characters or fewer are ignored. Returns 0.0 when neither text has a
    usable word.

    Args:
        first: Description of one transaction
        second: Description of the other transaction

    Returns:
        Similarity between 0.0 and 1.0
    """
    words_first = _tokens(first)
    words_second = _tokens(second)

    union = words_first | words_second
    if not union:
        return 0.0

    return len(words_first & words_second) / len(union)
