"""Reconcile an internal ledger against an external bank statement."""

__version__ = "0.1.0"

from .config import AutoMatchSettings, CandidateSettings, ReconConfig, load_config
from .models import (
    Transaction,
    TransactionKind,
    MatchStatus,
    MatchRule,
    ReconciliationMatch,
    ReconciliationResult,
    ReasonCode,
    ScoreReason,
    ReconciliationCandidate,
)
from .matching import (
    ReconciliationEngine,
    reconcile,
    find_subset,
    CandidateScorer,
    find_candidates,
    find_batch_candidates,
)

__all__ = [
    "__version__",
    "AutoMatchSettings",
    "CandidateSettings",
    "ReconConfig",
    "load_config",
    "Transaction",
    "TransactionKind",
    "MatchStatus",
    "MatchRule",
    "ReconciliationMatch",
    "ReconciliationResult",
    "ReasonCode",
    "ScoreReason",
    "ReconciliationCandidate",
    "ReconciliationEngine",
    "reconcile",
    "find_subset",
    "CandidateScorer",
    "find_candidates",
    "find_batch_candidates",
]
