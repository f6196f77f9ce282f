"""
Bounded search for a combination of transactions adding up to a target amount.
"""

from decimal import Decimal
from typing import Optional, Sequence

from ..models.transaction import Transaction


def find_subset(
    candidates: Sequence[Transaction],
    target: Decimal,
    tolerance: Decimal,
    max_size: int,
) -> Optional[list[Transaction]]:
    """
    Find a small combination of candidates whose signed amounts sum to target.

    The search walks the candidates in their given order, depth first, always
    trying to include the current candidate before skipping it. The first
    non-empty selection whose sum lies within ``tolerance`` of ``target`` is
    returned, so when several combinations qualify the result depends on the
    input order, not on which combination is closest or shortest.

    Cost grows as 2**len(candidates); callers are expected to keep the pool
    small.

    Args:
        candidates: Transactions to choose from, in priority order
        target: Signed amount to reach
        tolerance: Maximum allowed absolute gap between sum and target
        max_size: Maximum number of transactions in a selection

    Returns:
        Selected transactions in candidate order, or None if no selection fits
    """
    pool = list(candidates)

    def search(index: int, total: Decimal, selected: list[Transaction]) -> Optional[list[Transaction]]:
        if selected and abs(total - target) <= tolerance:
            return selected
        if len(selected) >= max_size:
            return None

        # Each later iteration is the branch that skipped pool[index..i-1]
        for i in range(index, len(pool)):
            current = pool[i]
            found = search(i + 1, total + current.signed_amount, selected + [current])
            if found is not None:
                return found

        return None

    return search(0, Decimal("0"), [])
