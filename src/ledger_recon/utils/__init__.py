"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    TransactionParseError,
    ConfigurationError,
    MatchStateError,
    DuplicateClaimError,
    ReportGenerationError,
)
from .logging_config import setup_logging, get_logger

__all__ = [
    "ReconciliationError",
    "TransactionParseError",
    "ConfigurationError",
    "MatchStateError",
    "DuplicateClaimError",
    "ReportGenerationError",
    "setup_logging",
    "get_logger",
]
