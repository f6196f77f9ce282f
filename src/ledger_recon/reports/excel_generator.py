"""
Excel report generator for reconciliation results.
Creates multi-sheet workbooks with formatted output.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Optional
import logging

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..config import ReconConfig, SheetConfig
from ..models.reconciliation import (
    ReconciliationMatch,
    ReconciliationResult,
    ReconciliationSummary,
)
from ..models.transaction import Transaction
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
DIFFERENCE_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
UNMATCHED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

TRANSACTION_HEADERS = ["ID", "Date", "Description", "Kind", "Amount", "Signed Amount"]


class ExcelReportGenerator:
    """Generates Excel reconciliation reports with multiple sheets."""

    def __init__(self, config: ReconConfig):
        """
        Initialize the report generator.

        Args:
            config: Application configuration
        """
        self.config = config
        self.sheet_config = config.output.sheets

    def generate_report(
        self,
        summary: ReconciliationSummary,
        result: ReconciliationResult,
        internal_transactions: list[Transaction],
        external_transactions: list[Transaction],
        output_path: Path,
    ) -> Path:
        """
        Generate the complete reconciliation report.

        Args:
            summary: Reconciliation summary
            result: Reconciliation result
            internal_transactions: All ledger transactions (for match detail rows)
            external_transactions: All statement transactions
            output_path: Path for output file

        Returns:
            Path to generated report

        Raises:
            ReportGenerationError: If the workbook cannot be written
        """
        logger.info(f"Generating Excel report: {output_path}")

        # Ids are only unique within one side
        internal_lookup = {t.id: t for t in internal_transactions}
        external_lookup = {t.id: t for t in external_transactions}

        wb = Workbook()

        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)

        sheets = self.sheet_config
        if sheets.summary.enabled:
            self._create_summary_sheet(wb, sheets.summary, summary)
        if sheets.matches.enabled:
            self._create_matches_sheet(
                wb, sheets.matches, result.matches, internal_lookup, external_lookup
            )
        if sheets.unmatched_internal.enabled:
            self._create_transactions_sheet(
                wb, sheets.unmatched_internal, result.unmatched_internal
            )
        if sheets.unmatched_external.enabled:
            self._create_transactions_sheet(
                wb, sheets.unmatched_external, result.unmatched_external
            )
        if sheets.differences.enabled:
            self._create_differences_sheet(
                wb, sheets.differences, [m for m in result.matches if m.difference > 0]
            )
        if sheets.audit_trail.enabled:
            self._create_audit_trail_sheet(wb, sheets.audit_trail, summary, result.matches)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)
        except OSError as e:
            raise ReportGenerationError(f"Failed to write report {output_path}: {e}") from e

        logger.info(f"Report saved: {output_path}")
        return output_path

    def _create_summary_sheet(
        self, wb: Workbook, sheet: SheetConfig, summary: ReconciliationSummary
    ) -> None:
        """Create the summary sheet with key metrics."""
        ws = wb.create_sheet(sheet.name)

        ws["A1"] = "Ledger Reconciliation Summary"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        period = (
            f"{summary.period_start} to {summary.period_end}"
            if summary.period_start
            else "-"
        )
        sections: list[tuple[str, list[tuple[str, Any]]]] = [
            (
                "Sources",
                [
                    ("Internal Ledger:", summary.internal_source or "-"),
                    ("External Statement:", summary.external_source or "-"),
                    (
                        "Reconciliation Date:",
                        summary.reconciliation_date.strftime("%Y-%m-%d %H:%M:%S"),
                    ),
                    ("Statement Period:", period),
                ],
            ),
            (
                "Transaction Counts",
                [
                    ("Internal Transactions:", summary.total_internal_transactions),
                    ("External Transactions:", summary.total_external_transactions),
                    ("Matches:", summary.match_count),
                    ("Unmatched Internal:", summary.unmatched_internal_count),
                    ("Unmatched External:", summary.unmatched_external_count),
                    ("Matches With Difference:", summary.difference_count),
                    ("Total Difference:", float(summary.total_difference)),
                ],
            ),
            (
                "Match Rates",
                [
                    ("Internal Match Rate:", f"{summary.match_rate_internal:.1f}%"),
                    ("External Match Rate:", f"{summary.match_rate_external:.1f}%"),
                ],
            ),
            ("Matches by Rule", list(summary.matches_by_rule.items())),
        ]

        row = 3
        for title, rows in sections:
            ws[f"A{row}"] = title
            ws[f"A{row}"].font = Font(bold=True)
            row += 1
            for label, value in rows:
                ws[f"A{row}"] = label
                ws[f"B{row}"] = value
                row += 1
            row += 1

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 40

    def _create_matches_sheet(
        self,
        wb: Workbook,
        sheet: SheetConfig,
        matches: list[ReconciliationMatch],
        internal_lookup: dict[str, Transaction],
        external_lookup: dict[str, Transaction],
    ) -> None:
        """Create the matches sheet, one row per matched internal transaction."""
        ws = wb.create_sheet(sheet.name)

        headers = [
            "Match ID",
            "Rule",
            "Status",
            "External ID",
            "External Date",
            "External Amount",
            "External Description",
            "Internal ID",
            "Internal Date",
            "Internal Amount",
            "Internal Description",
            "Difference",
            "Confidence",
            "Rule Info",
        ]
        self._write_headers(ws, headers)

        row_num = 2
        for match in matches:
            external = external_lookup.get(match.external_ids[0]) if match.external_ids else None
            fill = DIFFERENCE_FILL if match.difference > 0 else MATCH_FILL

            for internal_id in match.internal_ids:
                internal = internal_lookup.get(internal_id)
                row_data = [
                    match.id,
                    match.rule.value,
                    match.status.value,
                    external.id if external else "",
                    external.date if external else "",
                    float(external.signed_amount) if external else "",
                    external.description if external else "",
                    internal_id,
                    internal.date if internal else "",
                    float(internal.signed_amount) if internal else "",
                    internal.description if internal else "",
                    float(match.difference),
                    match.confidence,
                    match.rule_info,
                ]
                self._write_row(ws, row_num, row_data, fill)
                row_num += 1

        self._auto_fit_columns(ws)

    def _create_transactions_sheet(
        self, wb: Workbook, sheet: SheetConfig, transactions: list[Transaction]
    ) -> None:
        """Create a sheet listing unmatched transactions."""
        ws = wb.create_sheet(sheet.name)
        self._write_headers(ws, TRANSACTION_HEADERS)

        for row_num, txn in enumerate(transactions, start=2):
            row_data = [
                txn.id,
                txn.date,
                txn.description,
                txn.kind.value,
                float(txn.amount),
                float(txn.signed_amount),
            ]
            self._write_row(ws, row_num, row_data, UNMATCHED_FILL)

        self._auto_fit_columns(ws)

    def _create_differences_sheet(
        self, wb: Workbook, sheet: SheetConfig, matches: list[ReconciliationMatch]
    ) -> None:
        """Create the sheet of matches accepted with a non-zero difference."""
        ws = wb.create_sheet(sheet.name)

        headers = ["Match ID", "Rule", "External IDs", "Internal IDs", "Total Amount", "Difference"]
        self._write_headers(ws, headers)

        for row_num, match in enumerate(matches, start=2):
            row_data = [
                match.id,
                match.rule.value,
                ", ".join(match.external_ids),
                ", ".join(match.internal_ids),
                float(match.total_amount),
                float(match.difference),
            ]
            self._write_row(ws, row_num, row_data, DIFFERENCE_FILL)

        self._auto_fit_columns(ws)

    def _create_audit_trail_sheet(
        self,
        wb: Workbook,
        sheet: SheetConfig,
        summary: ReconciliationSummary,
        matches: list[ReconciliationMatch],
    ) -> None:
        """Create the audit trail sheet."""
        ws = wb.create_sheet(sheet.name)

        ws["A1"] = "Reconciliation Audit Trail"
        ws["A1"].font = Font(size=14, bold=True)

        audit_info = [
            ("Generated At:", datetime.now().strftime("%Y-%m-%d %H:%M:%S")),
            ("Config File:", summary.config_file_used or "Default"),
            ("Processing Time:", f"{summary.processing_time_seconds:.2f} seconds"),
        ]

        row = 3
        for label, value in audit_info:
            ws[f"A{row}"] = label
            ws[f"B{row}"] = value
            row += 1

        row += 1
        ws[f"A{row}"] = "Match Log"
        ws[f"A{row}"].font = Font(bold=True)
        row += 1

        headers = ["Timestamp", "Match ID", "External IDs", "Internal IDs", "Rule", "Confidence"]
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
        row += 1

        for match in matches:
            log_data = [
                match.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                match.id,
                ", ".join(match.external_ids),
                ", ".join(match.internal_ids),
                match.rule_info,
                match.confidence,
            ]
            for col, value in enumerate(log_data, start=1):
                ws.cell(row=row, column=col, value=value)
            row += 1

        self._auto_fit_columns(ws)

    def _write_headers(self, ws: Worksheet, headers: list[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER

    def _write_row(
        self, ws: Worksheet, row_num: int, values: list[Any], fill: Optional[PatternFill]
    ) -> None:
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=row_num, column=col, value=value)
            cell.border = THIN_BORDER
            if fill is not None:
                cell.fill = fill

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            column = column_cells[0].column_letter
            max_length = max(
                (len(str(cell.value)) for cell in column_cells if cell.value is not None),
                default=0,
            )
            ws.column_dimensions[column].width = min(max_length + 2, 50)


def default_report_path(config: ReconConfig, now: Optional[datetime] = None) -> Path:
    """Build the report file name from the configured template."""
    now = now or datetime.now()
    template = config.output.excel.filename_template
    return Path(template.format(date=now.strftime("%Y%m%d"), time=now.strftime("%H%M%S")))
