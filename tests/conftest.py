"""Shared fixtures for the reconciliation test suite."""

from datetime import date
from decimal import Decimal
from typing import Callable, Union

import pytest

from ledger_recon.models import Transaction, TransactionKind


def build_txn(
    id: str,
    amount: Union[Decimal, int, float, str],
    txn_date: date = date(2024, 1, 1),
    kind: TransactionKind = TransactionKind.INCOME,
    description: str = "",
) -> Transaction:
    return Transaction(
        id=id,
        date=txn_date,
        description=description,
        amount=Decimal(str(amount)),
        kind=kind,
    )


@pytest.fixture
def make_txn() -> Callable[..., Transaction]:
    """Factory for transactions; amounts given as strings or numbers."""
    return build_txn


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a file under tmp_path and return its path."""

    def _write(name: str, content: str):
        path = tmp_path / name
        path.write_text(content.strip() + "\n")
        return path

    return _write
