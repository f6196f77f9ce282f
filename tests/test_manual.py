"""
Tests for manual matches and reviewer status changes.
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_recon.matching.candidates import find_candidates
from ledger_recon.matching.manual import (
    confirm_match,
    create_manual_match,
    lock_match,
    match_from_candidate,
)
from ledger_recon.models import MatchRule, MatchStatus, TransactionKind
from ledger_recon.utils.exceptions import MatchStateError, ReconciliationError

DAY = date(2024, 2, 1)


class TestCreateManualMatch:

    def test_many_to_many(self, make_txn):
        internal = [make_txn("i1", 60, DAY), make_txn("i2", 40, DAY)]
        external = [make_txn("e1", "99.50", DAY)]

        match = create_manual_match(internal, external)

        assert match.internal_ids == ["i1", "i2"]
        assert match.external_ids == ["e1"]
        assert match.rule is MatchRule.MANUAL
        assert match.status is MatchStatus.MATCHED_MANUAL
        assert match.difference == Decimal("0.50")
        assert match.total_amount == Decimal("99.50")
        assert match.rule_info == "Manual (3 transactions)"
        assert match.id.startswith("match-")

    def test_expense_totals(self, make_txn):
        internal = [make_txn("i1", 20, DAY, TransactionKind.EXPENSE)]
        external = [make_txn("e1", 20, DAY, TransactionKind.EXPENSE)]

        match = create_manual_match(internal, external)

        assert match.total_amount == Decimal("-20")
        assert match.difference == Decimal("0")

    def test_requires_both_sides(self, make_txn):
        with pytest.raises(ReconciliationError):
            create_manual_match([], [make_txn("e1", 10, DAY)])

    def test_rejects_repeated_transaction(self, make_txn):
        txn = make_txn("i1", 10, DAY)

        with pytest.raises(ReconciliationError):
            create_manual_match([txn, txn], [make_txn("e1", 20, DAY)])

    def test_same_id_on_both_sides(self, make_txn):
        match = create_manual_match([make_txn("1", 100, DAY)], [make_txn("1", 100, DAY)])

        assert match.internal_ids == ["1"]
        assert match.external_ids == ["1"]

    def test_rejects_repeated_external_transaction(self, make_txn):
        txn = make_txn("e1", 10, DAY)

        with pytest.raises(ReconciliationError):
            create_manual_match([make_txn("i1", 20, DAY)], [txn, txn])

    def test_confidence_clamped(self, make_txn):
        match = create_manual_match(
            [make_txn("i1", 10, DAY)], [make_txn("e1", 10, DAY)], confidence=250
        )

        assert match.confidence == 100


class TestMatchLifecycle:

    def test_suggestion_from_candidate(self, make_txn):
        target = make_txn("e1", 100, DAY)
        [candidate] = find_candidates(target, [make_txn("i1", "100.50", DAY)])

        match = match_from_candidate(target, candidate)

        assert match.status is MatchStatus.SUGGESTED
        assert match.confidence == candidate.score
        assert match.internal_ids == ["i1"]
        assert match.external_ids == ["e1"]

    def test_suggestion_with_shared_id(self, make_txn):
        target = make_txn("1", 100, DAY)
        [candidate] = find_candidates(target, [make_txn("1", 100, DAY)])

        match = match_from_candidate(target, candidate)

        assert match.confidence == 100
        assert match.internal_ids == match.external_ids == ["1"]

    def test_confirm_then_lock(self, make_txn):
        target = make_txn("e1", 100, DAY)
        [candidate] = find_candidates(target, [make_txn("i1", 100, DAY)])
        match = match_from_candidate(target, candidate)

        confirm_match(match)
        assert match.status is MatchStatus.MATCHED_MANUAL

        lock_match(match)
        assert match.status is MatchStatus.LOCKED

    def test_locked_match_refuses_changes(self, make_txn):
        match = create_manual_match([make_txn("i1", 10, DAY)], [make_txn("e1", 10, DAY)])
        lock_match(match)

        with pytest.raises(MatchStateError):
            confirm_match(match)
        with pytest.raises(MatchStateError):
            lock_match(match)
