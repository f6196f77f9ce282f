"""Matching engine, strategies and candidate scoring."""

from .engine import ReconciliationEngine, reconcile
from .strategies import (
    MatchingStrategy,
    ExactMatchStrategy,
    DateWindowStrategy,
    AmountToleranceStrategy,
    ManyToOneStrategy,
    MAX_SUBSET_CANDIDATES,
)
from .subset_sum import find_subset
from .candidates import CandidateScorer, find_candidates, find_batch_candidates
from .manual import create_manual_match, match_from_candidate, confirm_match, lock_match

__all__ = [
    "ReconciliationEngine",
    "reconcile",
    "MatchingStrategy",
    "ExactMatchStrategy",
    "DateWindowStrategy",
    "AmountToleranceStrategy",
    "ManyToOneStrategy",
    "MAX_SUBSET_CANDIDATES",
    "find_subset",
    "CandidateScorer",
    "find_candidates",
    "find_batch_candidates",
    "create_manual_match",
    "match_from_candidate",
    "confirm_match",
    "lock_match",
]
