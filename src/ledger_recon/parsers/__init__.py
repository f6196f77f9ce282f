"""Transaction file parsers."""

from .csv_parser import TransactionCsvParser

__all__ = ["TransactionCsvParser"]
