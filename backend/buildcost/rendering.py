"""
Configuration export documents.

The service hands a finished `ConfigurationDocument` to a renderer and
streams back whatever bytes it produces.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from io import BytesIO
from typing import List, Optional, Protocol

from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.workbook import Workbook

from buildcost.config import settings
from buildcost.pricing import PricedLineItem


@dataclass(frozen=True)
class ConfigurationDocument:
    """Everything a renderer needs; no further lookups required."""

    configuration_id: int
    name: str
    created_at: datetime
    total_price: Decimal
    notes: Optional[str] = None
    line_items: List[PricedLineItem] = field(default_factory=list)


class DocumentRenderer(Protocol):
    media_type: str
    extension: str

    def render(self, document: ConfigurationDocument) -> bytes:
        ...


def export_filename(document: ConfigurationDocument, extension: str) -> str:
    # Header values must stay ASCII
    safe_name = re.sub(r"[^\w\- ]", "_", document.name, flags=re.ASCII).strip() or "configuration"
    return f"configuration-{safe_name}.{extension}"


class XlsxConfigurationRenderer:
    """Renders a configuration as a one-sheet Excel workbook."""

    media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    extension = "xlsx"

    HEADERS = ["#", "Component", "Category", "Merchant", "Unit price"]

    def __init__(self, currency_symbol: Optional[str] = None) -> None:
        self.currency_symbol = currency_symbol or settings.CURRENCY_SYMBOL

    def render(self, document: ConfigurationDocument) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = "Configuration"

        ws["A1"] = "PC Configuration"
        ws["A1"].font = Font(bold=True, size=16)
        ws["A2"] = f"Name: {document.name}"
        ws["A3"] = f"Created: {document.created_at.strftime('%Y-%m-%d')}"
        ws["A4"] = f"Total price: {document.total_price}{self.currency_symbol}"
        ws["A4"].font = Font(bold=True)
        if document.notes:
            ws["A5"] = f"Notes: {document.notes}"

        header_row = 7
        rows = [self.HEADERS] + [
            [
                position,
                item.component_title,
                item.category_name,
                item.merchant_name,
                float(item.unit_price),
            ]
            for position, item in enumerate(document.line_items, start=1)
        ]
        for offset, values in enumerate(rows):
            for column, value in enumerate(values, start=1):
                ws.cell(row=header_row + offset, column=column, value=value)

        self._format(ws, header_row, len(document.line_items))

        output = BytesIO()
        wb.save(output)
        return output.getvalue()

    def _format(self, ws, header_row: int, item_count: int) -> None:
        header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        header_font = Font(bold=True, color="FFFFFF", size=11)
        border = Border(
            left=Side(style="thin"), right=Side(style="thin"),
            top=Side(style="thin"), bottom=Side(style="thin"),
        )
        center_align = Alignment(horizontal="center", vertical="center", wrap_text=True)

        for cell in ws[header_row]:
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = center_align
            cell.border = border

        for row in ws.iter_rows(
            min_row=header_row + 1, max_row=header_row + item_count, max_col=len(self.HEADERS)
        ):
            for cell in row:
                cell.border = border
            row[-1].number_format = "#,##0.00"

        for column, width in zip("ABCDE", (6, 45, 16, 24, 14)):
            ws.column_dimensions[column].width = width
