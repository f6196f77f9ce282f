"""Report output and human-readable formatting."""

from .excel_generator import ExcelReportGenerator, default_report_path
from .formatting import (
    format_amount,
    format_reason,
    format_reasons,
    describe_candidate,
    describe_match,
)

__all__ = [
    "ExcelReportGenerator",
    "default_report_path",
    "format_amount",
    "format_reason",
    "format_reasons",
    "describe_candidate",
    "describe_match",
]
