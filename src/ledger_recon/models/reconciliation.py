"""Data models for reconciliation matches, results and candidates."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from .transaction import Transaction


class MatchStatus(Enum):
    """Lifecycle state of a reconciliation match."""

    MATCHED_AUTO = "matched_auto"
    MATCHED_MANUAL = "matched_manual"
    SUGGESTED = "suggested"
    PENDING = "pending"
    LOCKED = "locked"


class MatchRule(Enum):
    """Rule that produced a match."""

    EXACT = "exact"
    DATE_WINDOW = "date_window"
    AMOUNT_TOLERANCE = "amount_tolerance"
    MANY_TO_ONE = "many_to_one"
    MANUAL = "manual"


def clamp_score(value: Union[int, float]) -> int:
    """Clamp a score or confidence into the 0-100 range."""
    return int(max(0, min(100, value)))


@dataclass
class ReconciliationMatch:
    """Link between internal and external transactions judged to be one event."""

    id: str
    internal_ids: list[str]
    external_ids: list[str]
    total_amount: Decimal
    date: Optional[date]
    difference: Decimal
    status: MatchStatus
    rule_info: str
    confidence: int
    rule: MatchRule = MatchRule.EXACT
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        self.difference = abs(self.difference)
        self.confidence = clamp_score(self.confidence)

    @property
    def is_many_to_one(self) -> bool:
        return len(self.internal_ids) > 1


@dataclass
class ReconciliationResult:
    """Partition of both inputs into matches and leftovers."""

    matches: list[ReconciliationMatch] = field(default_factory=list)
    unmatched_internal: list[Transaction] = field(default_factory=list)
    unmatched_external: list[Transaction] = field(default_factory=list)

    @property
    def matched_internal_ids(self) -> set[str]:
        return {txn_id for m in self.matches for txn_id in m.internal_ids}

    @property
    def matched_external_ids(self) -> set[str]:
        return {txn_id for m in self.matches for txn_id in m.external_ids}

    def matches_by_rule(self) -> dict[MatchRule, list[ReconciliationMatch]]:
        grouped: dict[MatchRule, list[ReconciliationMatch]] = {}
        for match in self.matches:
            grouped.setdefault(match.rule, []).append(match)
        return grouped


class ReasonCode(Enum):
    """Closed set of reasons that contribute to a candidate score."""

    EXACT_FINANCIAL_MATCH = "exact_financial_match"
    EXACT_AMOUNT = "exact_amount"
    NEAR_EXACT_AMOUNT = "near_exact_amount"
    TOLERABLE_AMOUNT = "tolerable_amount"
    SIMILAR_AMOUNT = "similar_amount"
    SAME_DATE = "same_date"
    ONE_DAY_APART = "one_day_apart"
    DAYS_APART = "days_apart"
    DESCRIPTION_VERY_SIMILAR = "description_very_similar"
    DESCRIPTION_SIMILAR = "description_similar"


@dataclass(frozen=True)
class ScoreReason:
    """One scoring contribution: what triggered, how many points, and the measured value."""

    code: ReasonCode
    points: int
    value: Optional[Union[Decimal, int, float]] = None


@dataclass
class ReconciliationCandidate:
    """Internal transaction proposed as a counterpart for an external one."""

    transaction: Transaction
    score: int
    reasons: tuple[ScoreReason, ...] = ()

    def __post_init__(self) -> None:
        self.score = clamp_score(self.score)

    @property
    def reason_codes(self) -> list[ReasonCode]:
        return [r.code for r in self.reasons]


@dataclass
class ReconciliationSummary:
    """Summary of the reconciliation process."""

    # Transaction counts
    total_internal_transactions: int
    total_external_transactions: int

    # Match results
    match_count: int
    matched_internal_count: int
    matched_external_count: int
    unmatched_internal_count: int
    unmatched_external_count: int

    # Differences tolerated by amount-tolerance matches
    total_difference: Decimal
    difference_count: int

    # Period covered by the statement
    period_start: Optional[date] = None
    period_end: Optional[date] = None

    internal_source: str = ""
    external_source: str = ""
    reconciliation_date: datetime = field(default_factory=datetime.now)

    matches_by_rule: dict[str, int] = field(default_factory=dict)

    # Processing metadata
    processing_time_seconds: float = 0.0
    config_file_used: Optional[str] = None

    @property
    def match_rate_internal(self) -> float:
        """Percentage of internal transactions matched."""
        if self.total_internal_transactions == 0:
            return 0.0
        return (self.matched_internal_count / self.total_internal_transactions) * 100

    @property
    def match_rate_external(self) -> float:
        """Percentage of external transactions matched."""
        if self.total_external_transactions == 0:
            return 0.0
        return (self.matched_external_count / self.total_external_transactions) * 100
