"""
Export service for vault data.

Provides functionality to export vault transactions to XLSX and CSV formats.
"""

import csv
import io
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence, cast

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from cofre.models import Category, Transaction, TransactionKind, Vault


class ExportFormat(str, Enum):
    """Supported export formats."""

    CSV = "csv"
    XLSX = "xlsx"


HEADERS = [
    "Code",
    "Date",
    "Kind",
    "Amount",
    "Category",
    "Description",
    "Committed",
]


class ExportService:
    """Service for exporting vault transactions to various formats."""

    def export_to_csv(
        self,
        vault: Vault,
        categories: Sequence[Category],
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> io.BytesIO:
        """
        Export vault transactions to CSV format.

        Args:
            vault: Vault to export
            categories: Categories used to resolve category names
            month: Optional budget month filter (requires ``year``)
            year: Optional budget year filter

        Returns:
            BytesIO buffer containing the CSV data
        """
        names = _category_names(categories)
        text_buffer = io.StringIO()
        writer = csv.writer(text_buffer)
        writer.writerow(HEADERS)

        for t in self._get_transactions(vault, month, year):
            writer.writerow(
                [
                    t.code,
                    t.date.strftime("%Y-%m-%d"),
                    t.kind.value,
                    f"{t.amount:.2f}",
                    names.get(t.category_id or "", ""),
                    t.description or "",
                    "yes" if t.is_committed else "no",
                ]
            )

        buffer = io.BytesIO()
        buffer.write(text_buffer.getvalue().encode("utf-8-sig"))  # BOM for Excel
        buffer.seek(0)
        return buffer

    def export_to_xlsx(
        self,
        vault: Vault,
        categories: Sequence[Category],
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> io.BytesIO:
        """
        Export vault transactions to XLSX format with formatting.

        Returns:
            BytesIO buffer containing the XLSX data
        """
        names = _category_names(categories)
        transactions = self._get_transactions(vault, month, year)

        wb = Workbook()
        ws = cast(Worksheet, wb.active)
        ws.title = "Transactions"

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        income_fill = PatternFill(
            start_color="C6EFCE", end_color="C6EFCE", fill_type="solid"
        )
        expense_fill = PatternFill(
            start_color="FFC7CE", end_color="FFC7CE", fill_type="solid"
        )

        for col, header in enumerate(HEADERS, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")

        for row_idx, t in enumerate(transactions, 2):
            ws.cell(row=row_idx, column=1, value=t.code)
            ws.cell(row=row_idx, column=2, value=t.date.strftime("%Y-%m-%d"))
            ws.cell(row=row_idx, column=3, value=t.kind.value)
            ws.cell(row=row_idx, column=4, value=t.amount).number_format = "#,##0.00"
            ws.cell(row=row_idx, column=5, value=names.get(t.category_id or "", ""))
            ws.cell(row=row_idx, column=6, value=t.description or "")
            ws.cell(row=row_idx, column=7, value="yes" if t.is_committed else "no")

            fill = income_fill if t.kind == TransactionKind.INCOME else expense_fill
            for col in range(1, len(HEADERS) + 1):
                ws.cell(row=row_idx, column=col).fill = fill

        column_widths = [8, 12, 10, 14, 22, 40, 10]
        for col, width in enumerate(column_widths, 1):
            ws.column_dimensions[get_column_letter(col)].width = width

        ws.freeze_panes = "A2"

        self._add_summary_sheet(wb, vault, month, year)

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        return buffer

    def _add_summary_sheet(
        self,
        wb: Workbook,
        vault: Vault,
        month: Optional[int],
        year: Optional[int],
    ):
        """Add balance, totals and budget utilization."""
        ws = wb.create_sheet(title="Summary")

        header_font = Font(bold=True)
        title_font = Font(bold=True, size=14)

        ws.cell(row=1, column=1, value="Vault Summary").font = title_font
        ws.cell(
            row=2,
            column=1,
            value=f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        )

        rows = [
            ("Balance", vault.get_balance()),
            ("Income (period)", vault.total_income_in_period(month, year)),
            ("Expenses (period)", vault.total_spent_in_period(month, year)),
            ("Total budgeted", vault.total_budgeted_amount()),
        ]
        for offset, (label, value) in enumerate(rows, 4):
            ws.cell(row=offset, column=1, value=label).font = header_font
            ws.cell(row=offset, column=3, value=value).number_format = "#,##0.00"

        start = 4 + len(rows) + 1
        for col, header in enumerate(["Budget", "Spent", "Amount", "Used %"], 1):
            ws.cell(row=start, column=col, value=header).font = header_font

        for row, summary in enumerate(vault.get_budgets_summary(month, year), start + 1):
            ws.cell(row=row, column=1, value=summary.category.name)
            ws.cell(row=row, column=2, value=summary.spent).number_format = "#,##0.00"
            ws.cell(row=row, column=3, value=summary.amount).number_format = "#,##0.00"
            ws.cell(row=row, column=4, value=summary.percentage_used).number_format = "0.0"

        ws.column_dimensions["A"].width = 22
        ws.column_dimensions["B"].width = 14
        ws.column_dimensions["C"].width = 14
        ws.column_dimensions["D"].width = 10

    def _get_transactions(
        self,
        vault: Vault,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> list[Transaction]:
        """Transactions ordered by date, optionally limited to one budget period."""
        transactions = list(vault.transactions.values())
        if month and year:
            transactions = [
                t for t in transactions
                if vault.is_date_in_budget_period(t.date, month, year)
            ]
        return sorted(transactions, key=lambda t: t.date)

    def get_filename(
        self,
        format: ExportFormat,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> str:
        """Generate a filename for the export."""
        date_str = datetime.now().strftime("%Y%m%d")
        period = f"_{year:04d}-{month:02d}" if month and year else ""
        return f"cofre_{date_str}{period}.{format.value}"


def _category_names(categories: Sequence[Category]) -> dict[str, str]:
    return {c.id: c.name for c in categories}
