"""
Phased matching engine for ledger / statement reconciliation.
Applies the matching strategies in a fixed order with claim-and-remove semantics.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence
import logging
import uuid

from ..config import AutoMatchSettings
from ..models.reconciliation import (
    MatchStatus,
    ReconciliationMatch,
    ReconciliationResult,
    ReconciliationSummary,
)
from ..models.transaction import Transaction
from .strategies import (
    MatchingStrategy,
    ExactMatchStrategy,
    DateWindowStrategy,
    AmountToleranceStrategy,
    ManyToOneStrategy,
)

logger = logging.getLogger(__name__)

AUTO_MATCH_CONFIDENCE = 100


def new_match_id() -> str:
    return f"match-{uuid.uuid4().hex[:12]}"


class ReconciliationEngine:
    """
    Main reconciliation engine that orchestrates the matching process.

    Phases run strictly in order (exact, date window, amount tolerance,
    many-to-one). Within a phase, statement transactions are visited in
    input order and each takes the first qualifying unclaimed ledger
    transaction. Anything claimed by an earlier phase is gone for later ones;
    there is no backtracking.

    The engine keeps no state between calls, so one instance can serve
    concurrent reconciliations.
    """

    def __init__(self, settings: Optional[AutoMatchSettings] = None):
        """
        Initialize the reconciliation engine.

        Args:
            settings: Matching settings (defaults are used when omitted)
        """
        self.settings = settings or AutoMatchSettings()
        self.strategies = self._build_strategies()

    def _build_strategies(self) -> list[MatchingStrategy]:
        """Build the phase strategies in execution order."""
        s = self.settings
        return [
            ExactMatchStrategy(),
            DateWindowStrategy(date_margin_days=s.date_margin_days),
            AmountToleranceStrategy(
                date_margin_days=s.date_margin_days,
                amount_tolerance=s.amount_tolerance,
            ),
            ManyToOneStrategy(
                date_margin_days=s.date_margin_days,
                amount_tolerance=s.amount_tolerance,
                max_combination_size=s.max_combination_size,
            ),
        ]

    def reconcile(
        self,
        internal_transactions: Sequence[Transaction],
        external_transactions: Sequence[Transaction],
    ) -> ReconciliationResult:
        """
        Reconcile ledger transactions against statement transactions.

        Args:
            internal_transactions: Ledger transactions
            external_transactions: Statement transactions

        Returns:
            Matches plus the transactions left unmatched on each side
        """
        start_time = datetime.now()
        logger.info(
            f"Starting reconciliation: {len(internal_transactions)} internal txns, "
            f"{len(external_transactions)} external txns"
        )

        internal_pool = self._filter_invalid(internal_transactions, side="internal")
        external_pool = self._filter_invalid(external_transactions, side="external")

        claimed_internal: set[str] = set()
        claimed_external: set[str] = set()
        matches: list[ReconciliationMatch] = []

        for strategy in self.strategies:
            phase_count = 0

            for external_txn in external_pool:
                if external_txn.id in claimed_external:
                    continue

                candidates = [t for t in internal_pool if t.id not in claimed_internal]
                if not candidates:
                    break

                matched_internal = strategy.find_matches(external_txn, candidates)
                if not matched_internal:
                    continue

                match = self._create_match(strategy, external_txn, matched_internal)
                matches.append(match)
                claimed_internal.update(match.internal_ids)
                claimed_external.update(match.external_ids)
                phase_count += 1

            logger.debug(
                f"Phase {strategy.rule.value}: {phase_count} matches found, "
                f"{len(internal_pool) - len(claimed_internal)} internal and "
                f"{len(external_pool) - len(claimed_external)} external remaining"
            )

        result = ReconciliationResult(
            matches=matches,
            unmatched_internal=[
                t for t in internal_transactions if t.id not in claimed_internal
            ],
            unmatched_external=[
                t for t in external_transactions if t.id not in claimed_external
            ],
        )

        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Reconciliation complete in {elapsed:.2f}s: {len(matches)} matches, "
            f"{len(result.unmatched_internal)} internal-only, "
            f"{len(result.unmatched_external)} external-only"
        )

        return result

    def _filter_invalid(
        self, transactions: Sequence[Transaction], side: str
    ) -> list[Transaction]:
        """
        Drop transactions that cannot be compared.

        Args:
            transactions: Transactions to filter
            side: "internal" or "external", for logging

        Returns:
            Transactions with a date and a finite amount, in input order
        """
        valid: list[Transaction] = []
        for txn in transactions:
            if txn.is_valid:
                valid.append(txn)
            else:
                logger.warning(
                    f"Skipping malformed {side} transaction {txn.id!r}: "
                    f"date={txn.date!r}, amount={txn.amount!r}"
                )
        return valid

    def _create_match(
        self,
        strategy: MatchingStrategy,
        external_txn: Transaction,
        matched_internal: list[Transaction],
    ) -> ReconciliationMatch:
        rule_info, difference = strategy.describe_match(external_txn, matched_internal)
        return ReconciliationMatch(
            id=new_match_id(),
            internal_ids=[t.id for t in matched_internal],
            external_ids=[external_txn.id],
            total_amount=external_txn.signed_amount,
            date=external_txn.date or matched_internal[0].date,
            difference=difference,
            status=MatchStatus.MATCHED_AUTO,
            rule_info=rule_info,
            confidence=AUTO_MATCH_CONFIDENCE,
            rule=strategy.rule,
        )

    def generate_summary(
        self,
        internal_transactions: Sequence[Transaction],
        external_transactions: Sequence[Transaction],
        result: ReconciliationResult,
        internal_source: str = "",
        external_source: str = "",
        processing_time: float = 0.0,
        config_file_used: Optional[str] = None,
    ) -> ReconciliationSummary:
        """
        Generate a summary of the reconciliation results.

        Args:
            internal_transactions: All ledger transactions
            external_transactions: All statement transactions
            result: Reconciliation result
            internal_source: Name of the ledger source (e.g. file name)
            external_source: Name of the statement source
            processing_time: Time taken in seconds
            config_file_used: Configuration file path, if any

        Returns:
            Reconciliation summary object
        """
        rule_counts = {
            rule.value: len(matches) for rule, matches in result.matches_by_rule().items()
        }

        with_difference = [m for m in result.matches if m.difference > 0]
        total_difference = sum((m.difference for m in with_difference), Decimal("0"))

        statement_dates = [t.date for t in external_transactions if t.is_valid]

        return ReconciliationSummary(
            total_internal_transactions=len(internal_transactions),
            total_external_transactions=len(external_transactions),
            match_count=len(result.matches),
            matched_internal_count=len(result.matched_internal_ids),
            matched_external_count=len(result.matched_external_ids),
            unmatched_internal_count=len(result.unmatched_internal),
            unmatched_external_count=len(result.unmatched_external),
            total_difference=total_difference,
            difference_count=len(with_difference),
            period_start=min(statement_dates) if statement_dates else None,
            period_end=max(statement_dates) if statement_dates else None,
            internal_source=internal_source,
            external_source=external_source,
            matches_by_rule=rule_counts,
            processing_time_seconds=processing_time,
            config_file_used=config_file_used,
        )


def reconcile(
    internal_transactions: Sequence[Transaction],
    external_transactions: Sequence[Transaction],
    config: Optional[AutoMatchSettings] = None,
) -> ReconciliationResult:
    """Run the automatic reconciler once with the given (or default) settings."""
    return ReconciliationEngine(config).reconcile(
        internal_transactions, external_transactions
    )
