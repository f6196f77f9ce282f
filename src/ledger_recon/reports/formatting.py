"""Human-readable wording for scores and matches."""

from decimal import Decimal
from typing import Iterable, Union

from ..models.reconciliation import (
    ReasonCode,
    ReconciliationCandidate,
    ReconciliationMatch,
    ScoreReason,
)

REASON_SEPARATOR = " • "

REASON_TEMPLATES: dict[ReasonCode, str] = {
    ReasonCode.EXACT_FINANCIAL_MATCH: "exact financial match",
    ReasonCode.EXACT_AMOUNT: "exact amount",
    ReasonCode.NEAR_EXACT_AMOUNT: "near-exact amount (rounding)",
    ReasonCode.TOLERABLE_AMOUNT: "tolerable difference (±{value:,.2f})",
    ReasonCode.SIMILAR_AMOUNT: "similar amount (±5%)",
    ReasonCode.SAME_DATE: "same date",
    ReasonCode.ONE_DAY_APART: "1 day apart",
    ReasonCode.DAYS_APART: "{value} days apart",
    ReasonCode.DESCRIPTION_VERY_SIMILAR: "very similar description",
    ReasonCode.DESCRIPTION_SIMILAR: "similar description",
}


def format_amount(value: Union[Decimal, int, float]) -> str:
    return f"{value:,.2f}"


def format_reason(reason: ScoreReason) -> str:
    template = REASON_TEMPLATES[reason.code]
    return template.format(value=reason.value)


def format_reasons(reasons: Iterable[ScoreReason], separator: str = REASON_SEPARATOR) -> str:
    """Join reason fragments in scoring order."""
    return separator.join(format_reason(r) for r in reasons)


def describe_candidate(candidate: ReconciliationCandidate) -> str:
    txn = candidate.transaction
    return (
        f"{txn.id} ({txn.date}, {format_amount(txn.signed_amount)}) "
        f"score {candidate.score}: {format_reasons(candidate.reasons)}"
    )


def describe_match(match: ReconciliationMatch) -> str:
    internal = ", ".join(match.internal_ids)
    external = ", ".join(match.external_ids)
    text = f"[{match.status.value}] {internal} <-> {external}: {match.rule_info}"
    if match.difference:
        text += f" (difference {format_amount(match.difference)})"
    return text
