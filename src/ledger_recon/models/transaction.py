"""Transaction record shared by the ledger and the statement side."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


class TransactionKind(Enum):
    """Direction of the money movement."""

    INCOME = "income"  # Money in
    EXPENSE = "expense"  # Money out


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so 0.1 stays 0.1 rather than its binary expansion
    return Decimal(str(value))


@dataclass(frozen=True)
class Transaction:
    """
    Immutable financial movement fed into reconciliation.

    Both the internal ledger and the external statement are expressed with
    this model. Amounts are magnitudes; the direction lives in ``kind``.
    """

    id: str
    date: date
    description: str
    amount: Decimal
    kind: TransactionKind

    def __post_init__(self) -> None:
        """Coerce loosely typed amount and kind values."""
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", _to_decimal(self.amount))
        if not isinstance(self.kind, TransactionKind):
            object.__setattr__(self, "kind", TransactionKind(str(self.kind).lower()))
        if self.description is None:
            object.__setattr__(self, "description", "")

    @property
    def signed_amount(self) -> Decimal:
        """Amount with sign applied: positive for income, negative for expense."""
        magnitude = abs(self.amount)
        return magnitude if self.kind is TransactionKind.INCOME else -magnitude

    @property
    def is_valid(self) -> bool:
        """Whether the record can take part in amount and date comparisons."""
        return isinstance(self.date, date) and self.amount.is_finite()


