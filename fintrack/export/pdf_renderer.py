"""
PDF Statement Renderer

Layout, top to bottom:
1. Title block: product name, "STATEMENT", period, issue date, user
2. Financial summary: income (green), expenses (red), balance
   (blue when not negative, red otherwise)
3. Transaction table with the header row repeated on every page
4. Footer on every page: "Page N" and the product line

reportlab's platypus flows the table across pages on its own; the
footer is drawn by the page callbacks.
"""

import io
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from fintrack.export.context import ExportContext
from fintrack.export.formatting import (
    DOCUMENT_COLUMNS,
    build_rows,
    format_currency,
    format_date,
    headers,
    period_label,
)


BRAND = colors.HexColor("#0075EB")
INCOME_COLOR = colors.HexColor("#059669")
EXPENSE_COLOR = colors.HexColor("#EF4444")
MUTED = colors.HexColor("#6B7280")

COLUMN_WIDTHS = [22 * mm, 58 * mm, 32 * mm, 20 * mm, 24 * mm, 24 * mm]


def table_rows(context: ExportContext) -> list[list[str]]:
    """Header plus body text of the transaction table, as printed."""
    conv = context.locale
    rows = [headers(DOCUMENT_COLUMNS, conv)]
    for row in build_rows(context.transactions, context.categories, conv):
        rows.append([row.text(column, conv) for column in DOCUMENT_COLUMNS])
    return rows


def summary_rows(context: ExportContext) -> list[tuple[str, str, colors.Color]]:
    """(label, formatted amount, color) for the summary block."""
    conv = context.locale
    totals = context.totals
    balance_color = BRAND if totals.balance >= 0 else EXPENSE_COLOR
    return [
        (conv.texts["income_total"],
         format_currency(totals.income, context.currency, conv), INCOME_COLOR),
        (conv.texts["expense_total"],
         format_currency(totals.expenses, context.currency, conv), EXPENSE_COLOR),
        (conv.texts["balance"],
         format_currency(totals.balance, context.currency, conv), balance_color),
    ]


def _styles():
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "Title", parent=base["Title"], textColor=BRAND, alignment=0, spaceAfter=2,
        ),
        "subtitle": ParagraphStyle(
            "Subtitle", parent=base["Heading2"], textColor=colors.black, spaceAfter=6,
        ),
        "meta": ParagraphStyle(
            "Meta", parent=base["Normal"], textColor=MUTED, fontSize=9, leading=12,
        ),
        "section": ParagraphStyle(
            "Section", parent=base["Heading3"], spaceBefore=10, spaceAfter=4,
        ),
        "cell": ParagraphStyle(
            "Cell", parent=base["Normal"], fontSize=8, leading=10,
        ),
    }


def _footer(context: ExportContext):
    conv = context.locale
    footer_text = conv.texts["footer"].format(product=context.product_name)

    def draw(canvas, doc):
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(MUTED)
        canvas.drawString(doc.leftMargin, 10 * mm, footer_text)
        canvas.drawRightString(
            A4[0] - doc.rightMargin,
            10 * mm,
            f"{conv.texts['page']} {canvas.getPageNumber()}",
        )
        canvas.restoreState()

    return draw


def render_pdf(context: ExportContext) -> bytes:
    conv = context.locale
    styles = _styles()
    profile = context.profile

    story = [
        Paragraph(escape(context.product_name), styles["title"]),
        Paragraph(escape(conv.texts["statement"]), styles["subtitle"]),
        Paragraph(
            f"{escape(conv.texts['period'])}: {escape(period_label(context.period, conv))}",
            styles["meta"],
        ),
        Paragraph(
            f"{escape(conv.texts['issued'])}: {format_date(context.issued_on, conv)}",
            styles["meta"],
        ),
    ]
    if profile.name:
        story.append(Paragraph(
            f"{escape(conv.texts['user'])}: {escape(profile.name)}", styles["meta"],
        ))
    if profile.job:
        story.append(Paragraph(
            f"{escape(conv.texts['job'])}: {escape(profile.job)}", styles["meta"],
        ))

    # Summary block
    story.append(Paragraph(escape(conv.texts["summary"]), styles["section"]))
    summary = summary_rows(context)
    summary_table = Table(
        [[label, amount] for label, amount, _ in summary],
        colWidths=[60 * mm, 40 * mm],
        hAlign="LEFT",
    )
    summary_style = [
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica-Bold"),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("LINEBELOW", (0, -1), (-1, -1), 0.5, MUTED),
    ]
    for index, (_, _, color) in enumerate(summary):
        summary_style.append(("TEXTCOLOR", (1, index), (1, index), color))
    summary_table.setStyle(TableStyle(summary_style))
    story.extend([summary_table, Spacer(1, 8 * mm)])

    # Transactions
    rows = table_rows(context)
    description_index = DOCUMENT_COLUMNS.index("description")
    body = [rows[0]]
    for values in rows[1:]:
        cells = list(values)
        cells[description_index] = Paragraph(escape(values[description_index]), styles["cell"])
        body.append(cells)

    amount_index = DOCUMENT_COLUMNS.index("amount")
    table = Table(body, colWidths=COLUMN_WIDTHS, repeatRows=1)
    table_style = [
        ("BACKGROUND", (0, 0), (-1, 0), BRAND),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ALIGN", (amount_index, 0), (amount_index, -1), "RIGHT"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F9FAFB")]),
        ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.HexColor("#E5E7EB")),
    ]
    for index, row in enumerate(
        build_rows(context.transactions, context.categories, conv), start=1,
    ):
        color = INCOME_COLOR if row.amount >= 0 else EXPENSE_COLOR
        table_style.append(("TEXTCOLOR", (amount_index, index), (amount_index, index), color))
    table.setStyle(TableStyle(table_style))
    story.append(table)

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=20 * mm,
        title=f"{context.product_name} {conv.texts['statement']}",
        author=profile.name or context.product_name,
    )
    footer = _footer(context)
    doc.build(story, onFirstPage=footer, onLaterPages=footer)
    return buffer.getvalue()
