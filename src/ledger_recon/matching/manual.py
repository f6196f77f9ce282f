"""
Manual match creation and match status changes made by a reviewer.
"""

from decimal import Decimal
from typing import Sequence
import logging

from ..models.reconciliation import (
    MatchRule,
    MatchStatus,
    ReconciliationCandidate,
    ReconciliationMatch,
)
from ..models.transaction import Transaction
from ..utils.exceptions import MatchStateError, ReconciliationError
from .engine import new_match_id

logger = logging.getLogger(__name__)


def create_manual_match(
    internal: Sequence[Transaction],
    external: Sequence[Transaction],
    confidence: int = 100,
    status: MatchStatus = MatchStatus.MATCHED_MANUAL,
) -> ReconciliationMatch:
    """
    Link transactions a reviewer decided belong together.

    Args:
        internal: Ledger transactions (at least one)
        external: Statement transactions (at least one)
        confidence: Reviewer confidence, clamped to 0-100
        status: Initial status, matched_manual unless proposing a suggestion

    Returns:
        New match; difference is the gap between the two sides' signed sums

    Raises:
        ReconciliationError: If either side is empty or an id repeats within a side
    """
    if not internal or not external:
        raise ReconciliationError("A manual match needs at least one transaction per side")

    for side, transactions in (("internal", internal), ("external", external)):
        ids = [t.id for t in transactions]
        if len(set(ids)) != len(ids):
            raise ReconciliationError(f"{side.capitalize()} transaction listed twice: {ids}")

    internal_total = sum((t.signed_amount for t in internal), Decimal("0"))
    external_total = sum((t.signed_amount for t in external), Decimal("0"))
    count = len(internal) + len(external)

    match = ReconciliationMatch(
        id=new_match_id(),
        internal_ids=[t.id for t in internal],
        external_ids=[t.id for t in external],
        total_amount=external_total,
        date=external[0].date or internal[0].date,
        difference=external_total - internal_total,
        status=status,
        rule_info=f"Manual ({count} transactions)",
        confidence=confidence,
        rule=MatchRule.MANUAL,
    )
    logger.info(f"Created manual match {match.id}: {match.internal_ids} <-> {match.external_ids}")
    return match


def match_from_candidate(
    target: Transaction, candidate: ReconciliationCandidate
) -> ReconciliationMatch:
    """Turn a scored candidate into a suggested match awaiting confirmation."""
    return create_manual_match(
        [candidate.transaction],
        [target],
        confidence=candidate.score,
        status=MatchStatus.SUGGESTED,
    )


def _ensure_unlocked(match: ReconciliationMatch) -> None:
    if match.status is MatchStatus.LOCKED:
        raise MatchStateError(f"Match {match.id} is locked")


def confirm_match(match: ReconciliationMatch) -> ReconciliationMatch:
    """Mark a match as confirmed by a reviewer."""
    _ensure_unlocked(match)
    match.status = MatchStatus.MATCHED_MANUAL
    return match


def lock_match(match: ReconciliationMatch) -> ReconciliationMatch:
    """Freeze a match so later edits are refused."""
    _ensure_unlocked(match)
    match.status = MatchStatus.LOCKED
    return match
