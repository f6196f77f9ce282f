"""
Candidate scoring for interactive reconciliation.

Ranks ledger transactions as possible counterparts of one statement
transaction so a reviewer can resolve what the automatic phases left over.
"""

from decimal import Decimal
from typing import Optional, Sequence
import logging

from ..config import CandidateSettings
from ..models.reconciliation import ReasonCode, ReconciliationCandidate, ScoreReason
from ..models.transaction import Transaction
from .primitives import day_difference, description_similarity

logger = logging.getLogger(__name__)

# Candidates scoring below this are dropped
MIN_CANDIDATE_SCORE = 20
PERFECT_SCORE = 100

SIMILAR_AMOUNT_RATIO = Decimal("0.05")


class CandidateScorer:
    """
    Additive scorer over three axes: amount (max 50), date (max 30) and
    description (max 20).

    A pair with identical signed amount and identical date is forced to 100
    whatever the descriptions say.
    """

    def __init__(self, settings: Optional[CandidateSettings] = None):
        self.settings = settings or CandidateSettings()

    def score_pair(
        self, target: Transaction, txn: Transaction
    ) -> tuple[int, list[ScoreReason]]:
        """
        Score one ledger transaction against a statement transaction.

        Args:
            target: Statement transaction being resolved
            txn: Ledger transaction under consideration

        Returns:
            Tuple of (raw score before the perfect-match override, reasons)
        """
        reasons: list[ScoreReason] = []

        amount_diff = abs(target.signed_amount - txn.signed_amount)
        amount_reason = self._score_amount(amount_diff, abs(target.signed_amount))
        if amount_reason:
            reasons.append(amount_reason)

        days = day_difference(target.date, txn.date)
        date_reason = self._score_date(days)
        if date_reason:
            reasons.append(date_reason)

        similarity = description_similarity(target.description, txn.description)
        if similarity > 0.8:
            reasons.append(ScoreReason(ReasonCode.DESCRIPTION_VERY_SIMILAR, 20, similarity))
        elif similarity > 0.5:
            reasons.append(ScoreReason(ReasonCode.DESCRIPTION_SIMILAR, 10, similarity))

        return sum(r.points for r in reasons), reasons

    def _score_amount(
        self, amount_diff: Decimal, target_magnitude: Decimal
    ) -> Optional[ScoreReason]:
        s = self.settings
        if amount_diff == 0:
            return ScoreReason(ReasonCode.EXACT_AMOUNT, 50, amount_diff)
        if amount_diff <= s.amount_tolerance:
            return ScoreReason(ReasonCode.NEAR_EXACT_AMOUNT, 48, amount_diff)
        if amount_diff <= s.amount_tolerance_abs:
            return ScoreReason(ReasonCode.TOLERABLE_AMOUNT, 45, amount_diff)
        if amount_diff <= target_magnitude * SIMILAR_AMOUNT_RATIO:
            return ScoreReason(ReasonCode.SIMILAR_AMOUNT, 30, amount_diff)
        return None

    def _score_date(self, days: int) -> Optional[ScoreReason]:
        if days == 0:
            return ScoreReason(ReasonCode.SAME_DATE, 30, days)
        if days <= 1:
            return ScoreReason(ReasonCode.ONE_DAY_APART, 25, days)
        if days <= self.settings.date_margin_days:
            # Shrinks towards the edge of the window and can go negative
            return ScoreReason(ReasonCode.DAYS_APART, 20 - 2 * days, days)
        return None

    def evaluate(
        self, target: Transaction, txn: Transaction
    ) -> Optional[ReconciliationCandidate]:
        """Build a candidate for the pair, or None if it scores too low."""
        score, reasons = self.score_pair(target, txn)
        if score < MIN_CANDIDATE_SCORE:
            return None

        codes = {r.code for r in reasons}
        if ReasonCode.EXACT_AMOUNT in codes and ReasonCode.SAME_DATE in codes:
            reasons.insert(
                0, ScoreReason(ReasonCode.EXACT_FINANCIAL_MATCH, PERFECT_SCORE - score)
            )
            score = PERFECT_SCORE

        return ReconciliationCandidate(transaction=txn, score=score, reasons=tuple(reasons))

    def find_candidates(
        self, target: Transaction, pool: Sequence[Transaction]
    ) -> list[ReconciliationCandidate]:
        """
        Rank ledger transactions as counterparts for one statement transaction.

        Args:
            target: Statement transaction being resolved
            pool: Ledger transactions to consider

        Returns:
            Candidates scoring at least 20, best first (ties keep pool order)
        """
        if not target.is_valid:
            logger.warning(f"Cannot score candidates for malformed transaction {target.id!r}")
            return []

        candidates = []
        for txn in pool:
            if not txn.is_valid:
                continue
            candidate = self.evaluate(target, txn)
            if candidate is not None:
                candidates.append(candidate)

        return sorted(candidates, key=lambda c: c.score, reverse=True)

    def find_batch_candidates(
        self, targets: Sequence[Transaction], pool: Sequence[Transaction]
    ) -> dict[str, list[ReconciliationCandidate]]:
        """
        Rank candidates for several statement transactions independently.

        Unlike the automatic reconciler nothing is claimed: the same ledger
        transaction may appear in several targets' lists.
        """
        results: dict[str, list[ReconciliationCandidate]] = {}
        for target in targets:
            results[target.id] = self.find_candidates(target, pool)

        logger.debug(
            f"Scored candidates for {len(targets)} targets against {len(pool)} transactions"
        )
        return results


def find_candidates(
    target: Transaction,
    pool: Sequence[Transaction],
    config: Optional[CandidateSettings] = None,
) -> list[ReconciliationCandidate]:
    return CandidateScorer(config).find_candidates(target, pool)


def find_batch_candidates(
    targets: Sequence[Transaction],
    pool: Sequence[Transaction],
    config: Optional[CandidateSettings] = None,
) -> dict[str, list[ReconciliationCandidate]]:
    return CandidateScorer(config).find_batch_candidates(targets, pool)
