"""
Transaction CSV parser.
Reads ledger exports and bank statements into Transaction records.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional
import logging

import pandas as pd

from ..config import CsvInputConfig, ReconConfig
from ..models.transaction import Transaction, TransactionKind
from ..utils.exceptions import TransactionParseError

logger = logging.getLogger(__name__)


class TransactionCsvParser:
    """
    Parser for transaction CSV files.

    Column names are taken from ``input.csv.column_mappings``. When the file
    has no kind column, the sign of the amount decides: negative amounts are
    expenses.
    """

    def __init__(self, config: ReconConfig, id_prefix: str = "TXN"):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
            id_prefix: Prefix for generated ids when a row has none
        """
        self.config = config
        self.csv_config: CsvInputConfig = config.input.csv
        self.column_mappings = self.csv_config.column_mappings
        self.id_prefix = id_prefix
        self._income_labels = {label.lower() for label in self.csv_config.income_labels}
        self._expense_labels = {label.lower() for label in self.csv_config.expense_labels}

    def parse_file(self, file_path: Path) -> list[Transaction]:
        """
        Parse a CSV file and return transactions.

        Args:
            file_path: Path to the CSV file

        Returns:
            List of transactions, in file order

        Raises:
            TransactionParseError: If the file cannot be read
        """
        logger.info(f"Parsing transaction CSV file: {file_path}")

        try:
            df = pd.read_csv(
                file_path,
                encoding=self.csv_config.encoding,
                delimiter=self.csv_config.delimiter,
                dtype=str,
            )
        except Exception as e:
            logger.error(f"Failed to read CSV file: {e}")
            raise TransactionParseError(f"Failed to read CSV file: {e}") from e

        transactions = self.parse_dataframe(df)
        logger.info(f"Extracted {len(transactions)} transactions from {file_path.name}")

        return transactions

    def parse_dataframe(self, df: pd.DataFrame) -> list[Transaction]:
        """
        Convert DataFrame rows to transactions, skipping rows that don't parse.

        Raises:
            TransactionParseError: If required columns are missing
        """
        required = [self.column_mappings.get("date", "date"), self.column_mappings.get("amount", "amount")]
        missing = [col for col in required if col not in df.columns]
        if missing:
            raise TransactionParseError(f"Missing required columns: {', '.join(missing)}")

        transactions: list[Transaction] = []
        for idx, row in df.iterrows():
            txn = self._normalize_row(row, int(idx))
            if txn:
                transactions.append(txn)

        return transactions

    def _normalize_row(self, row: pd.Series, idx: int) -> Optional[Transaction]:
        """
        Convert a DataFrame row to a Transaction.

        Args:
            row: Pandas Series representing a row
            idx: Row index

        Returns:
            Transaction or None if row is invalid
        """
        id_col = self.column_mappings.get("id", "id")
        date_col = self.column_mappings.get("date", "date")
        desc_col = self.column_mappings.get("description", "description")
        amount_col = self.column_mappings.get("amount", "amount")
        kind_col = self.column_mappings.get("kind", "kind")

        txn_date = self._parse_date(row.get(date_col))
        if not txn_date:
            logger.warning(f"Row {idx}: Invalid date, skipping")
            return None

        amount = self._parse_amount(row.get(amount_col))
        if amount is None:
            logger.warning(f"Row {idx}: No valid amount found, skipping")
            return None

        raw_kind = row.get(kind_col)
        if pd.notna(raw_kind) and str(raw_kind).strip():
            kind = self._parse_kind(str(raw_kind))
            if kind is None:
                logger.warning(f"Row {idx}: Unknown kind {raw_kind!r}, skipping")
                return None
        else:
            kind = TransactionKind.EXPENSE if amount < 0 else TransactionKind.INCOME

        raw_id = row.get(id_col)
        txn_id = str(raw_id).strip() if pd.notna(raw_id) and str(raw_id).strip() else None
        description = str(row.get(desc_col)) if pd.notna(row.get(desc_col)) else ""

        return Transaction(
            id=txn_id or f"{self.id_prefix}-{idx:05d}",
            date=txn_date,
            description=description,
            amount=abs(amount),
            kind=kind,
        )

    def _parse_kind(self, value: str) -> Optional[TransactionKind]:
        label = value.strip().lower()
        if label in self._income_labels:
            return TransactionKind.INCOME
        if label in self._expense_labels:
            return TransactionKind.EXPENSE
        return None

    def _parse_date(self, date_value) -> Optional[date]:
        """
        Parse a date value from the CSV.

        Args:
            date_value: Date value (string or datetime)

        Returns:
            Python date object or None
        """
        if date_value is None or pd.isna(date_value):
            return None

        if isinstance(date_value, datetime):
            return date_value.date()
        if isinstance(date_value, date):
            return date_value

        try:
            return datetime.strptime(str(date_value).strip(), self.csv_config.date_format).date()
        except ValueError:
            # Try pandas parser as fallback
            try:
                parsed = pd.to_datetime(date_value)
            except (ValueError, TypeError):
                return None
            return None if pd.isna(parsed) else parsed.date()

    def _parse_amount(self, amount_value) -> Optional[Decimal]:
        """
        Parse an amount value from the CSV.

        Args:
            amount_value: Amount value (string, float, or None)

        Returns:
            Finite Decimal amount or None
        """
        if amount_value is None or pd.isna(amount_value) or amount_value == "":
            return None

        try:
            # Remove any currency symbols and thousands separators
            if isinstance(amount_value, str):
                amount_value = amount_value.replace("$", "").replace(",", "").strip()
            amount = Decimal(str(amount_value))
        except (InvalidOperation, ValueError):
            return None

        return amount if amount.is_finite() else None
