"""Tests for formatting, the three renderers and the export pipeline."""

import io
import re
from datetime import date, datetime
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from conftest import TODAY, make_transaction
from fintrack.errors import ExportError
from fintrack.export.context import ExportContext
from fintrack.export.csv_renderer import parse_csv, render_csv
from fintrack.export.formatting import (
    artifact_filename,
    build_rows,
    format_amount,
    format_currency,
    parse_amount,
    period_label,
)
from fintrack.export.pdf_renderer import render_pdf, summary_rows, table_rows
from fintrack.export.pipeline import ExportFormat, ExportPipeline
from fintrack.export.xlsx_renderer import render_xlsx
from fintrack.models.audit import AuditEventType
from fintrack.models.ledger import (
    Period,
    TransactionType,
    UserProfile,
    default_categories,
)


def context_for(transactions, locale="pt-PT", **extra):
    return ExportContext(
        transactions=transactions,
        categories=default_categories(),
        profile=UserProfile(name="alice", job="Engineer", locale=locale),
        issued_on=TODAY,
        **extra,
    )


@pytest.fixture
def tricky():
    """Descriptions that need quoting in any CSV dialect."""
    return [
        make_transaction("1234.50", description='Rent; "October"', category_id="1", tx_id="a"),
        make_transaction("0.10", description="Coffee, two\nlines", category_id="gone", tx_id="b"),
        make_transaction(2500, TransactionType.INCOME, description="Salário",
                         category_id="income-cat", is_recurring=True, tx_id="c"),
    ]


class TestFormatting:
    """Tests for the shared number/date/label formatting."""

    def test_format_amount_locales(self):
        assert format_amount(Decimal("1704.5"), "pt-PT") == "1.704,50"
        assert format_amount(Decimal("1704.5"), "en-US") == "1,704.50"
        assert format_amount(Decimal("1704.5"), "de-DE", grouping=False) == "1704,50"
        assert format_amount(Decimal("-3"), "en-GB", signed=True) == "-3.00"
        assert format_amount(Decimal("3"), "en-GB", signed=True) == "+3.00"

    def test_half_up_rounding(self):
        assert format_amount(Decimal("0.005"), "en-US") == "0.01"

    def test_parse_amount_inverts_format(self):
        for locale in ("pt-PT", "en-US", "fr-FR"):
            text = format_amount(Decimal("-98765.43"), locale)
            assert parse_amount(text, locale) == Decimal("-98765.43")

    def test_format_currency(self):
        assert format_currency(Decimal("45.5"), "EUR", "pt-PT") == "45,50 €"
        assert format_currency(Decimal("-45.5"), "USD", "en-US") == "-$45.50"

    def test_hidden_balance_masks_display(self):
        assert format_currency(Decimal("45.5"), "EUR", "pt-PT", hidden=True) == "••••"

    def test_period_label(self):
        assert period_label(Period(year=2026, month=10), "pt-PT") == "outubro de 2026"
        assert period_label(Period(year=2026), "en-US") == "2026"
        assert period_label(None, "en-US") == "All time"

    def test_artifact_filename(self):
        assert artifact_filename("Finance-Tracker", "Statement", date(2026, 10, 19), "pdf") == (
            "Finance-Tracker-Statement_2026-10-19.pdf"
        )

    def test_build_rows(self, tricky):
        rows = build_rows(tricky, default_categories(), "pt-PT")
        assert [r.id for r in rows] == ["a", "b", "c"]
        assert rows[0].amount == Decimal("-1234.50")
        assert rows[1].category == "Geral"
        assert rows[2].type_label == "Receita"
        assert rows[2].text("recurring", "pt-PT") == "Sim"


class TestCsvRenderer:
    """Tests for the CSV export."""

    def test_pt_pt_dialect(self, tricky):
        content = render_csv(context_for(tricky, "pt-PT"))
        assert content.startswith(b"\xef\xbb\xbf")
        text = content.decode("utf-8-sig")
        header = text.split("\r\n")[0]
        assert header == "ID;Data;Descrição;Categoria;Tipo;Método;Valor;Recorrente"
        assert "19/10/2026" in text
        assert ";-1234,50;" in text
        assert '"Rent; ""October"""' in text

    def test_en_us_dialect(self, tricky):
        text = render_csv(context_for(tricky, "en-US")).decode("utf-8-sig")
        assert text.startswith("ID,Date,Description,Category,Type,Method,Amount,Recurring")
        assert ",-1234.50," in text
        assert "10/19/2026" in text

    def test_round_trip(self, tricky):
        """Test that parsing the CSV gives back exactly what went in."""
        for locale in ("pt-PT", "en-US", "fr-FR", "de-DE"):
            context = context_for(tricky, locale)
            parsed = parse_csv(render_csv(context), locale)
            assert parsed == build_rows(tricky, context.categories, locale)

    def test_row_order_is_input_order(self):
        transactions = [
            make_transaction(1, day=date(2026, 1, 1), tx_id="x"),
            make_transaction(2, day=date(2026, 12, 1), tx_id="y"),
        ]
        parsed = parse_csv(render_csv(context_for(transactions)), "pt-PT")
        assert [r.id for r in parsed] == ["x", "y"]

    def test_empty_input_renders_header_only(self):
        text = render_csv(context_for([])).decode("utf-8-sig")
        assert text.count("\r\n") == 1

    def test_parse_rejects_foreign_header(self):
        with pytest.raises(ValueError):
            parse_csv("a;b;c\r\n1;2;3\r\n", "pt-PT")


class TestXlsxRenderer:
    """Tests for the spreadsheet export."""

    def test_native_cells(self, tricky):
        content = render_xlsx(context_for(tricky, "pt-PT"))
        sheet = load_workbook(io.BytesIO(content)).active

        assert sheet.title == "Movimentos"
        assert sheet["B1"].value == "Data"
        assert sheet["B1"].font.bold is True
        assert sheet.freeze_panes == "A2"
        assert sheet.max_row == 4

        assert isinstance(sheet["B2"].value, datetime)
        assert sheet["B2"].value.date() == TODAY
        assert sheet["G2"].value == pytest.approx(-1234.50)
        assert "€" in sheet["G2"].number_format
        assert sheet["D3"].value == "Geral"

    def test_empty_input(self):
        sheet = load_workbook(io.BytesIO(render_xlsx(context_for([])))).active
        assert sheet.max_row == 1

    def test_formula_like_text_stays_text(self):
        """Test that a description starting with '=' is exported as written."""
        transactions = [
            make_transaction(5, description="=1+1", tx_id="f1"),
            make_transaction(6, description='=HYPERLINK("http://x","y")', tx_id="f2"),
        ]
        sheet = load_workbook(io.BytesIO(render_xlsx(context_for(transactions)))).active
        assert sheet["C2"].value == "=1+1"
        assert sheet["C2"].data_type == "s"
        assert sheet["C3"].value == '=HYPERLINK("http://x","y")'
        assert sheet["C3"].data_type == "s"

    def test_control_characters_are_dropped(self):
        transactions = [make_transaction(5, description="bell\x07 tab\tend")]
        sheet = load_workbook(io.BytesIO(render_xlsx(context_for(transactions)))).active
        assert sheet["C2"].value == "bell tab\tend"


class TestPdfRenderer:
    """Tests for the PDF statement."""

    def test_renders_pdf(self, tricky):
        content = render_pdf(context_for(tricky, period=Period(year=2026, month=10)))
        assert content.startswith(b"%PDF")
        assert content.rstrip().endswith(b"%%EOF")

    def test_long_ledger_spans_pages(self):
        transactions = [make_transaction(i + 1, tx_id=f"t{i}") for i in range(150)]
        content = render_pdf(context_for(transactions))
        assert len(re.findall(rb"/Type\s*/Page(?!s)", content)) >= 2

    def test_empty_input_does_not_crash(self):
        assert render_pdf(context_for([])).startswith(b"%PDF")

    def test_summary_colors(self):
        negative = context_for([make_transaction(10)])
        labels = [label for label, _, _ in summary_rows(negative)]
        assert labels == ["Total Receitas", "Total Despesas", "Saldo Líquido"]
        assert summary_rows(negative)[2][1] == "-10,00 €"
        assert summary_rows(negative)[2][2] == summary_rows(negative)[1][2]


class TestCrossRendererAgreement:
    """The same transactions must show the same amounts in every format."""

    def test_amounts_agree_to_the_cent(self, tricky):
        context = context_for(tricky, "pt-PT")

        csv_amounts = [r.amount for r in parse_csv(render_csv(context), "pt-PT")]

        sheet = load_workbook(io.BytesIO(render_xlsx(context))).active
        xlsx_amounts = [
            Decimal(str(sheet.cell(row=r, column=7).value)).quantize(Decimal("0.01"))
            for r in range(2, sheet.max_row + 1)
        ]

        pdf_amount_column = table_rows(context)[0].index("Valor")
        pdf_amounts = [
            parse_amount(row[pdf_amount_column], "pt-PT")
            for row in table_rows(context)[1:]
        ]

        assert csv_amounts == xlsx_amounts == pdf_amounts
        assert csv_amounts == [Decimal("-1234.50"), Decimal("-0.10"), Decimal("2500.00")]


class TestExportPipeline:
    """Tests for refusal, naming, failure wrapping and atomic saving."""

    def test_empty_export_refused_for_every_format(self, audit_logger, audit_storage, tmp_path):
        pipeline = ExportPipeline(audit_logger, namespace="fintrack_data_alice")
        for export_format in ExportFormat:
            with pytest.raises(ExportError):
                pipeline.export(context_for([]), export_format)
        assert list(tmp_path.iterdir()) == []
        assert all(e.event_type == AuditEventType.EXPORT_REFUSED for e in audit_storage.events)

    def test_artifact_naming(self, tricky):
        pipeline = ExportPipeline()
        pdf = pipeline.export(context_for(tricky), ExportFormat.PDF)
        csv_artifact = pipeline.export(context_for(tricky), "csv")
        assert pdf.filename == "Finance-Tracker-Statement_2026-10-19.pdf"
        assert pdf.mime_type == "application/pdf"
        assert csv_artifact.filename == "Finance-Tracker-Transactions_2026-10-19.csv"
        assert csv_artifact.row_count == 3

    def test_renderer_failure_is_wrapped(self, tricky, tmp_path, audit_logger, audit_storage):
        def broken(context):
            raise RuntimeError("font missing")

        pipeline = ExportPipeline(audit_logger, renderers={ExportFormat.PDF: broken})
        with pytest.raises(ExportError) as exc_info:
            pipeline.export(context_for(tricky), ExportFormat.PDF)
        assert "font missing" in str(exc_info.value)
        assert audit_storage.events[-1].event_type == AuditEventType.EXPORT_FAILED

    def test_save_writes_atomically(self, tricky, tmp_path):
        pipeline = ExportPipeline()
        artifact = pipeline.export(context_for(tricky), ExportFormat.XLSX)
        path = pipeline.save(artifact, tmp_path / "exports")
        assert path.name == "Finance-Tracker-Transactions_2026-10-19.xlsx"
        assert path.read_bytes() == artifact.content
        assert [p.name for p in path.parent.iterdir()] == [path.name]

    def test_generated_event_shares_correlation_id(self, tricky, audit_logger, audit_storage):
        pipeline = ExportPipeline(audit_logger)
        pipeline.export(context_for(tricky), ExportFormat.CSV)
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.EXPORT_GENERATED
        assert event.correlation_id is not None
        assert event.details == {"format": "csv", "row_count": 3}
