"""
Matching strategies for transaction reconciliation.
Each strategy implements one phase of the automatic reconciler.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from ..models.reconciliation import MatchRule
from ..models.transaction import Transaction
from .primitives import amounts_within, dates_within, same_sign
from .subset_sum import find_subset

# Phase 4 search cost is 2**n per external transaction
MAX_SUBSET_CANDIDATES = 15


class MatchingStrategy(ABC):
    """Abstract base class for matching strategies."""

    rule: MatchRule

    @abstractmethod
    def find_matches(
        self,
        external_txn: Transaction,
        internal_candidates: list[Transaction],
    ) -> list[Transaction]:
        """
        Find internal transactions that account for an external transaction.

        Args:
            external_txn: Statement transaction to match
            internal_candidates: Unclaimed ledger transactions, in input order

        Returns:
            Matching internal transactions (empty when there is no match)
        """
        pass

    @abstractmethod
    def describe_match(
        self,
        external_txn: Transaction,
        matched_internal: list[Transaction],
    ) -> tuple[str, Decimal]:
        """
        Describe a match this strategy produced.

        Args:
            external_txn: Statement transaction
            matched_internal: Ledger transactions returned by find_matches

        Returns:
            Tuple of (rule description, absolute amount difference)
        """
        pass

    @staticmethod
    def _gap(external_txn: Transaction, matched_internal: list[Transaction]) -> Decimal:
        internal_total = sum((t.signed_amount for t in matched_internal), Decimal("0"))
        return abs(internal_total - external_txn.signed_amount)


class ExactMatchStrategy(MatchingStrategy):
    """
    Exact match strategy - identical signed amount on the identical date.
    Highest confidence matching phase.
    """

    rule = MatchRule.EXACT

    def find_matches(
        self,
        external_txn: Transaction,
        internal_candidates: list[Transaction],
    ) -> list[Transaction]:
        """Take the first candidate with the same signed amount and date."""
        target = external_txn.signed_amount
        for internal_txn in internal_candidates:
            if internal_txn.signed_amount == target and internal_txn.date == external_txn.date:
                return [internal_txn]
        return []

    def describe_match(
        self,
        external_txn: Transaction,
        matched_internal: list[Transaction],
    ) -> tuple[str, Decimal]:
        return "Exact (date and amount)", Decimal("0")


class DateWindowStrategy(MatchingStrategy):
    """
    Date window matching - identical signed amount, date within tolerance.
    """

    rule = MatchRule.DATE_WINDOW

    def __init__(self, date_margin_days: int = 3):
        """
        Initialize with date tolerance.

        Args:
            date_margin_days: Maximum days difference allowed (inclusive)
        """
        self.date_margin_days = date_margin_days

    def find_matches(
        self,
        external_txn: Transaction,
        internal_candidates: list[Transaction],
    ) -> list[Transaction]:
        """Take the first candidate with the same amount inside the window."""
        target = external_txn.signed_amount
        for internal_txn in internal_candidates:
            if internal_txn.signed_amount == target and dates_within(
                internal_txn.date, external_txn.date, self.date_margin_days
            ):
                return [internal_txn]
        return []

    def describe_match(
        self,
        external_txn: Transaction,
        matched_internal: list[Transaction],
    ) -> tuple[str, Decimal]:
        return f"Date window ({self.date_margin_days} days)", Decimal("0")


class AmountToleranceStrategy(MatchingStrategy):
    """
    Amount tolerance matching - allows small differences in amounts.
    """

    rule = MatchRule.AMOUNT_TOLERANCE

    def __init__(
        self,
        date_margin_days: int = 3,
        amount_tolerance: Decimal = Decimal("0.05"),
    ):
        """
        Initialize with tolerances.

        Args:
            date_margin_days: Maximum days difference
            amount_tolerance: Maximum absolute signed-amount difference
        """
        self.date_margin_days = date_margin_days
        self.amount_tolerance = amount_tolerance

    def find_matches(
        self,
        external_txn: Transaction,
        internal_candidates: list[Transaction],
    ) -> list[Transaction]:
        """Take the first candidate close in both amount and date."""
        target = external_txn.signed_amount
        for internal_txn in internal_candidates:
            if amounts_within(
                internal_txn.signed_amount, target, self.amount_tolerance
            ) and dates_within(internal_txn.date, external_txn.date, self.date_margin_days):
                return [internal_txn]
        return []

    def describe_match(
        self,
        external_txn: Transaction,
        matched_internal: list[Transaction],
    ) -> tuple[str, Decimal]:
        difference = self._gap(external_txn, matched_internal)
        return f"Amount tolerance ({difference:.2f})", difference


class ManyToOneStrategy(MatchingStrategy):
    """
    Many-to-one matching - several ledger entries settle one statement line,
    e.g. a single bank deposit covering three recorded sales.
    """

    rule = MatchRule.MANY_TO_ONE

    def __init__(
        self,
        date_margin_days: int = 3,
        amount_tolerance: Decimal = Decimal("0.05"),
        max_combination_size: int = 4,
        max_candidates: int = MAX_SUBSET_CANDIDATES,
    ):
        """
        Initialize with search bounds.

        Args:
            date_margin_days: Maximum days difference for a ledger entry to join
            amount_tolerance: Maximum gap between combined sum and target
            max_combination_size: Maximum ledger entries in one combination
            max_candidates: Largest candidate pool the search will accept
        """
        self.date_margin_days = date_margin_days
        self.amount_tolerance = amount_tolerance
        self.max_combination_size = max_combination_size
        self.max_candidates = max_candidates

    def find_matches(
        self,
        external_txn: Transaction,
        internal_candidates: list[Transaction],
    ) -> list[Transaction]:
        """Search same-sign entries inside the date window for a combination."""
        target = external_txn.signed_amount
        pool = [
            t
            for t in internal_candidates
            if same_sign(t.signed_amount, target)
            and dates_within(t.date, external_txn.date, self.date_margin_days)
        ]

        if not 0 < len(pool) <= self.max_candidates:
            return []

        combination = find_subset(
            pool, target, self.amount_tolerance, self.max_combination_size
        )
        return combination or []

    def describe_match(
        self,
        external_txn: Transaction,
        matched_internal: list[Transaction],
    ) -> tuple[str, Decimal]:
        # Recorded as zero even when the sum only falls within tolerance
        return "Many-to-one", Decimal("0")
