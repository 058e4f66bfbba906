"""
CSV Renderer

Spreadsheet tools pick the field delimiter from the user's locale:
where the decimal separator is a comma, fields are separated by ';'.
Amounts are written signed, without grouping, so "-1234,50" opens as a
number in a pt-PT Excel and as text nowhere.

The file is UTF-8 with a byte order mark, which is what makes Excel
read accented descriptions correctly.
"""

import csv
import io
from typing import Union

from fintrack.export.context import ExportContext
from fintrack.export.formatting import (
    COLUMNS,
    ExportRow,
    LocaleConventions,
    build_rows,
    get_locale,
    headers,
    parse_amount,
    parse_date,
    parse_type_label,
)


ENCODING = "utf-8-sig"


def render_csv(context: ExportContext) -> bytes:
    """One header row, then one row per transaction in input order."""
    conv = context.locale
    buffer = io.StringIO(newline="")
    writer = csv.writer(
        buffer,
        delimiter=conv.csv_delimiter,
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\r\n",
    )

    writer.writerow(headers(COLUMNS, conv))
    for row in build_rows(context.transactions, context.categories, conv):
        writer.writerow([row.text(column, conv, grouping=False) for column in COLUMNS])

    return buffer.getvalue().encode(ENCODING)


def parse_csv(
    content: Union[bytes, str],
    locale: Union[str, LocaleConventions, None] = None,
) -> list[ExportRow]:
    """
    Read a file written by render_csv back into rows.

    Raises:
        ValueError: If the header doesn't match or a field can't be parsed
    """
    conv = locale if isinstance(locale, LocaleConventions) else get_locale(locale)
    text = content.decode(ENCODING) if isinstance(content, bytes) else content
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=conv.csv_delimiter)
    header = next(reader, None)
    if header != headers(COLUMNS, conv):
        raise ValueError(f"Unexpected CSV header: {header!r}")

    rows = []
    for line_number, fields in enumerate(reader, start=2):
        if not fields:
            continue
        if len(fields) != len(COLUMNS):
            raise ValueError(
                f"Line {line_number}: expected {len(COLUMNS)} fields, got {len(fields)}"
            )
        values = dict(zip(COLUMNS, fields))
        transaction_type = parse_type_label(values["type"], conv)
        rows.append(ExportRow(
            id=values["id"],
            date=parse_date(values["date"], conv),
            description=values["description"],
            category=values["category"],
            type=transaction_type,
            type_label=values["type"],
            method=values["method"],
            amount=parse_amount(values["amount"], conv),
            is_recurring=values["recurring"] == conv.texts["yes"],
        ))
    return rows
