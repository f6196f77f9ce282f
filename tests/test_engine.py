"""
Tests for the phased reconciliation engine.
"""

import random
from datetime import date, timedelta
from decimal import Decimal

from ledger_recon.config import AutoMatchSettings
from ledger_recon.matching.engine import ReconciliationEngine, reconcile
from ledger_recon.matching.strategies import MAX_SUBSET_CANDIDATES
from ledger_recon.models import MatchRule, MatchStatus, TransactionKind

DAY = date(2024, 1, 10)


def ids(transactions):
    return [t.id for t in transactions]


def assert_partition(result, internal, external):
    """Every input id is either matched exactly once or left unmatched."""
    matched_internal = [i for m in result.matches for i in m.internal_ids]
    matched_external = [e for m in result.matches for e in m.external_ids]

    assert len(matched_internal) == len(set(matched_internal))
    assert len(matched_external) == len(set(matched_external))
    assert set(matched_internal).isdisjoint(ids(result.unmatched_internal))
    assert set(matched_external).isdisjoint(ids(result.unmatched_external))
    assert set(matched_internal) | set(ids(result.unmatched_internal)) == set(ids(internal))
    assert set(matched_external) | set(ids(result.unmatched_external)) == set(ids(external))


# ============================================
# Phase 1: Exact
# ============================================

class TestExactPhase:

    def test_exact_match(self, make_txn):
        internal = [make_txn("i1", "100.00", DAY)]
        external = [make_txn("e1", "100.00", DAY)]

        result = reconcile(internal, external)

        assert len(result.matches) == 1
        match = result.matches[0]
        assert match.internal_ids == ["i1"]
        assert match.external_ids == ["e1"]
        assert match.rule is MatchRule.EXACT
        assert match.status is MatchStatus.MATCHED_AUTO
        assert match.confidence == 100
        assert match.difference == Decimal("0")
        assert match.rule_info == "Exact (date and amount)"
        assert match.total_amount == Decimal("100.00")
        assert match.date == DAY

    def test_expense_total_is_negative(self, make_txn):
        internal = [make_txn("i1", 50, DAY, TransactionKind.EXPENSE)]
        external = [make_txn("e1", 50, DAY, TransactionKind.EXPENSE)]

        result = reconcile(internal, external)

        assert result.matches[0].total_amount == Decimal("-50")

    def test_kind_must_agree(self, make_txn):
        internal = [make_txn("i1", 100, DAY, TransactionKind.EXPENSE)]
        external = [make_txn("e1", 100, DAY, TransactionKind.INCOME)]

        result = reconcile(internal, external)

        assert result.matches == []
        assert ids(result.unmatched_internal) == ["i1"]
        assert ids(result.unmatched_external) == ["e1"]


# ============================================
# Phase 2: Date Window
# ============================================

class TestDateWindowPhase:

    def test_within_margin(self, make_txn):
        internal = [make_txn("i1", 100, DAY + timedelta(days=3))]
        external = [make_txn("e1", 100, DAY)]

        result = reconcile(internal, external)

        match = result.matches[0]
        assert match.rule is MatchRule.DATE_WINDOW
        assert match.rule_info == "Date window (3 days)"
        assert match.difference == Decimal("0")

    def test_outside_margin(self, make_txn):
        internal = [make_txn("i1", 100, DAY + timedelta(days=4))]
        external = [make_txn("e1", 100, DAY)]

        result = reconcile(internal, external)

        assert result.matches == []

    def test_custom_margin(self, make_txn):
        internal = [make_txn("i1", 100, DAY + timedelta(days=4))]
        external = [make_txn("e1", 100, DAY)]

        result = reconcile(internal, external, AutoMatchSettings(date_margin_days=5))

        assert result.matches[0].rule_info == "Date window (5 days)"

    def test_first_in_input_order_not_closest(self, make_txn):
        internal = [
            make_txn("far", 100, DAY - timedelta(days=2)),
            make_txn("near", 100, DAY + timedelta(days=1)),
        ]
        external = [make_txn("e1", 100, DAY)]

        result = reconcile(internal, external)

        assert result.matches[0].internal_ids == ["far"]
        assert ids(result.unmatched_internal) == ["near"]


# ============================================
# Phase 3: Amount Tolerance
# ============================================

class TestAmountTolerancePhase:

    def test_within_tolerance(self, make_txn):
        internal = [make_txn("i1", "100.04", DAY + timedelta(days=1))]
        external = [make_txn("e1", "100.00", DAY)]

        result = reconcile(internal, external)

        match = result.matches[0]
        assert match.rule is MatchRule.AMOUNT_TOLERANCE
        assert match.difference == Decimal("0.04")
        assert match.rule_info == "Amount tolerance (0.04)"

    def test_tolerance_edge_is_inclusive(self, make_txn):
        internal = [make_txn("i1", "99.95", DAY)]
        external = [make_txn("e1", "100.00", DAY)]

        result = reconcile(internal, external)

        assert result.matches[0].difference == Decimal("0.05")

    def test_outside_tolerance(self, make_txn):
        internal = [make_txn("i1", "100.06", DAY)]
        external = [make_txn("e1", "100.00", DAY)]

        result = reconcile(internal, external)

        assert result.matches == []


# ============================================
# Phase 4: Many-to-one
# ============================================

class TestManyToOnePhase:

    def test_combination_settles_statement_line(self, make_txn):
        internal = [
            make_txn("i1", 100, DAY - timedelta(days=1)),
            make_txn("i2", 200, DAY),
            make_txn("i3", 200, DAY),
        ]
        external = [make_txn("e1", 500, DAY)]

        result = reconcile(internal, external)

        assert len(result.matches) == 1
        match = result.matches[0]
        assert match.rule is MatchRule.MANY_TO_ONE
        assert match.internal_ids == ["i1", "i2", "i3"]
        assert match.rule_info == "Many-to-one"
        assert match.total_amount == Decimal("500")
        assert match.difference == Decimal("0")
        assert match.is_many_to_one
        assert result.unmatched_internal == []

    def test_difference_is_zero_within_tolerance(self, make_txn):
        internal = [make_txn("i1", "250.03", DAY), make_txn("i2", "250.00", DAY)]
        external = [make_txn("e1", "500.00", DAY)]

        result = reconcile(internal, external)

        assert result.matches[0].rule is MatchRule.MANY_TO_ONE
        assert result.matches[0].internal_ids == ["i1", "i2"]
        assert result.matches[0].difference == Decimal("0")

    def test_opposite_sign_excluded(self, make_txn):
        internal = [
            make_txn("i1", 700, DAY),
            make_txn("refund", 200, DAY, TransactionKind.EXPENSE),
        ]
        external = [make_txn("e1", 500, DAY)]

        result = reconcile(internal, external)

        assert result.matches == []

    def test_max_combination_size(self, make_txn):
        internal = [make_txn(f"i{n}", 100, DAY) for n in range(5)]
        external = [make_txn("e1", 500, DAY)]

        assert reconcile(internal, external).matches == []

        result = reconcile(internal, external, AutoMatchSettings(max_combination_size=5))
        assert len(result.matches[0].internal_ids) == 5

    def test_pool_over_cap_is_skipped(self, make_txn):
        internal = [make_txn(f"i{n}", 10, DAY) for n in range(MAX_SUBSET_CANDIDATES + 1)]
        external = [make_txn("e1", 20, DAY)]

        result = reconcile(internal, external)

        assert result.matches == []
        assert len(result.unmatched_internal) == MAX_SUBSET_CANDIDATES + 1

    def test_pool_at_cap_is_searched(self, make_txn):
        internal = [make_txn(f"i{n}", 10, DAY) for n in range(MAX_SUBSET_CANDIDATES)]
        external = [make_txn("e1", 20, DAY)]

        result = reconcile(internal, external)

        assert result.matches[0].internal_ids == ["i0", "i1"]


# ============================================
# Cross-phase behaviour
# ============================================

class TestPhaseOrdering:

    def test_exact_phase_runs_before_tolerance(self, make_txn):
        """The tolerable entry comes first in input but the exact one wins."""
        internal = [make_txn("close", "100.03", DAY), make_txn("exact", "100.00", DAY)]
        external = [make_txn("e1", "100.00", DAY)]

        result = reconcile(internal, external)

        assert result.matches[0].internal_ids == ["exact"]
        assert result.matches[0].rule is MatchRule.EXACT
        assert ids(result.unmatched_internal) == ["close"]

    def test_earlier_phase_claims_are_final(self, make_txn):
        # e1 takes i1 in the date-window phase, leaving e2 nothing in phase 4
        internal = [make_txn("i1", 100, DAY + timedelta(days=1)), make_txn("i2", 150, DAY)]
        external = [make_txn("e1", 100, DAY), make_txn("e2", 250, DAY)]

        result = reconcile(internal, external)

        assert [m.rule for m in result.matches] == [MatchRule.DATE_WINDOW]
        assert ids(result.unmatched_internal) == ["i2"]
        assert ids(result.unmatched_external) == ["e2"]

    def test_external_input_order_decides(self, make_txn):
        internal = [make_txn("i1", 100, DAY)]
        external = [make_txn("e1", 100, DAY), make_txn("e2", 100, DAY)]

        result = reconcile(internal, external)

        assert result.matches[0].external_ids == ["e1"]
        assert ids(result.unmatched_external) == ["e2"]

    def test_matches_in_phase_order(self, make_txn):
        internal = [
            make_txn("i1", 10, DAY),
            make_txn("i2", 20, DAY + timedelta(days=2)),
        ]
        external = [
            make_txn("e2", 20, DAY),
            make_txn("e1", 10, DAY),
        ]

        result = reconcile(internal, external)

        assert [m.rule for m in result.matches] == [MatchRule.EXACT, MatchRule.DATE_WINDOW]


# ============================================
# Edge cases and invariants
# ============================================

class TestReconcileEdgeCases:

    def test_empty_inputs(self, make_txn):
        result = reconcile([], [])
        assert result.matches == []
        assert result.unmatched_internal == []
        assert result.unmatched_external == []

    def test_empty_internal(self, make_txn):
        external = [make_txn("e1", 10, DAY)]

        result = reconcile([], external)

        assert ids(result.unmatched_external) == ["e1"]

    def test_malformed_transactions_left_unmatched(self, make_txn):
        internal = [make_txn("bad", "NaN", DAY), make_txn("i1", 100, DAY)]
        external = [make_txn("e1", 100, DAY), make_txn("no-date", 100, None)]

        result = reconcile(internal, external)

        assert result.matches[0].internal_ids == ["i1"]
        assert ids(result.unmatched_internal) == ["bad"]
        assert ids(result.unmatched_external) == ["no-date"]
        assert_partition(result, internal, external)

    def test_unmatched_keep_input_order(self, make_txn):
        internal = [make_txn(f"i{n}", n + 1, DAY) for n in range(5)]
        external = [make_txn("e1", 3, DAY)]

        result = reconcile(internal, external)

        assert ids(result.unmatched_internal) == ["i0", "i1", "i3", "i4"]

    def test_randomised_partition_and_determinism(self, make_txn):
        rng = random.Random(7)

        def random_txns(prefix, count):
            return [
                make_txn(
                    f"{prefix}{n}",
                    Decimal(rng.randint(1, 40) * 5) / 4,
                    DAY + timedelta(days=rng.randint(-4, 4)),
                    rng.choice([TransactionKind.INCOME, TransactionKind.EXPENSE]),
                )
                for n in range(count)
            ]

        internal = random_txns("i", 40)
        external = random_txns("e", 30)

        first = reconcile(internal, external)
        second = reconcile(internal, external)

        assert_partition(first, internal, external)
        assert [(m.internal_ids, m.external_ids, m.rule) for m in first.matches] == [
            (m.internal_ids, m.external_ids, m.rule) for m in second.matches
        ]

    def test_engine_reusable(self, make_txn):
        engine = ReconciliationEngine()
        internal = [make_txn("i1", 100, DAY)]
        external = [make_txn("e1", 100, DAY)]

        assert len(engine.reconcile(internal, external).matches) == 1
        assert len(engine.reconcile(internal, external).matches) == 1


# ============================================
# Summary
# ============================================

class TestGenerateSummary:

    def test_counts(self, make_txn):
        internal = [
            make_txn("i1", 100, DAY),
            make_txn("i2", "49.98", DAY),
            make_txn("i3", 7, DAY),
        ]
        external = [
            make_txn("e1", 100, DAY),
            make_txn("e2", 50, DAY + timedelta(days=2)),
            make_txn("e3", 999, DAY + timedelta(days=5)),
        ]
        engine = ReconciliationEngine()
        result = engine.reconcile(internal, external)

        summary = engine.generate_summary(
            internal, external, result, internal_source="ledger.csv", external_source="bank.csv"
        )

        assert summary.match_count == 2
        assert summary.matched_internal_count == 2
        assert summary.unmatched_internal_count == 1
        assert summary.unmatched_external_count == 1
        assert summary.difference_count == 1
        assert summary.total_difference == Decimal("0.02")
        assert summary.matches_by_rule == {"exact": 1, "amount_tolerance": 1}
        assert summary.period_start == DAY
        assert summary.period_end == DAY + timedelta(days=5)
        assert round(summary.match_rate_external, 1) == 66.7
