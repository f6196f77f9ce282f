"""Data models for reconciliation."""

from .transaction import Transaction, TransactionKind
from .reconciliation import (
    MatchStatus,
    MatchRule,
    ReconciliationMatch,
    ReconciliationResult,
    ReasonCode,
    ScoreReason,
    ReconciliationCandidate,
    ReconciliationSummary,
    clamp_score,
)

__all__ = [
    "Transaction",
    "TransactionKind",
    "MatchStatus",
    "MatchRule",
    "ReconciliationMatch",
    "ReconciliationResult",
    "ReasonCode",
    "ScoreReason",
    "ReconciliationCandidate",
    "ReconciliationSummary",
    "clamp_score",
]
