"""
XLSX Renderer

Unlike the CSV, the spreadsheet stores native values: real date cells
and numeric amount cells. Only the number format makes them look
localized, so formulas over the sheet keep working.
"""

import io

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from fintrack.export.context import ExportContext
from fintrack.export.formatting import (
    COLUMNS,
    LocaleConventions,
    build_rows,
    currency_symbol,
    headers,
)


COLUMN_WIDTHS = {
    "id": 34,
    "date": 12,
    "description": 40,
    "category": 22,
    "type": 12,
    "method": 18,
    "amount": 16,
    "recurring": 12,
}

HEADER_FILL = PatternFill(start_color="0075EB", end_color="0075EB", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")


def currency_number_format(currency: str, conv: LocaleConventions) -> str:
    """Excel format code with the currency symbol on the locale's side."""
    symbol = currency_symbol(currency)
    if conv.symbol_after_amount:
        return f'#,##0.00 "{symbol}";-#,##0.00 "{symbol}"'
    return f'"{symbol}"#,##0.00;-"{symbol}"#,##0.00'


def _plain_text(value: str) -> str:
    """Drop control characters a worksheet cannot hold."""
    return ILLEGAL_CHARACTERS_RE.sub("", value)


def render_xlsx(context: ExportContext) -> bytes:
    conv = context.locale
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = conv.texts["sheet"]

    sheet.append(headers(COLUMNS, conv))
    for cell in sheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")

    amount_format = currency_number_format(context.currency, conv)
    date_column = COLUMNS.index("date") + 1
    amount_column = COLUMNS.index("amount") + 1

    for row in build_rows(context.transactions, context.categories, conv):
        values = []
        for column in COLUMNS:
            if column == "date":
                values.append(row.date)
            elif column == "amount":
                values.append(row.amount)
            else:
                values.append(_plain_text(row.text(column, conv)))
        sheet.append(values)

        current = sheet.max_row
        for cell in sheet[current]:
            if isinstance(cell.value, str):
                # Free text is never a formula, even when it starts with "="
                cell.data_type = "s"
        sheet.cell(row=current, column=date_column).number_format = conv.excel_date_format
        sheet.cell(row=current, column=amount_column).number_format = amount_format

    for index, column in enumerate(COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = COLUMN_WIDTHS[column]
    sheet.freeze_panes = "A2"

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
