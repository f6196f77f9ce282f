"""Custom exceptions for the reconciliation application."""


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class TransactionParseError(ReconciliationError):
    """Error reading a transaction file."""

    pass


class ConfigurationError(ReconciliationError):
    """Error in configuration."""

    pass


class MatchStateError(ReconciliationError):
    """Illegal status change on a reconciliation match."""

    pass


class DuplicateClaimError(ReconciliationError):
    """A transaction is already claimed by another stored match."""

    pass


class ReportGenerationError(ReconciliationError):
    """Error generating Excel report."""

    pass
