"""
Shared Formatting for Exports and Display

DESIGN DECISION: Every renderer (CSV, XLSX, PDF) and every display helper
formats numbers, dates and labels through this one module. The CSV, the
spreadsheet and the PDF of the same transactions therefore agree to the
cent, and on what each column means.

Locale support is a small table of conventions rather than a full CLDR
implementation: decimal and grouping separators, the CSV field delimiter
spreadsheet tools expect for that locale, a date pattern, and the handful
of labels the exports print.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from fintrack.models.ledger import (
    UNCATEGORIZED,
    Category,
    Period,
    Transaction,
    TransactionType,
)


CENT = Decimal("0.01")
HIDDEN_AMOUNT = "••••"

# Column keys shared by every renderer, in output order
COLUMNS = ["id", "date", "description", "category", "type", "method", "amount", "recurring"]
# The paginated document drops the bookkeeping columns
DOCUMENT_COLUMNS = ["date", "description", "category", "type", "method", "amount"]


class LocaleConventions(BaseModel):
    """Number, date and label conventions for one locale."""
    model_config = ConfigDict(frozen=True)

    code: str
    decimal_sep: str
    thousands_sep: str
    csv_delimiter: str
    date_format: str
    # Excel number format codes matching date_format
    excel_date_format: str
    symbol_after_amount: bool
    month_names: tuple[str, ...]
    weekday_abbr: tuple[str, ...]  # Monday first
    period_template: str
    headers: dict[str, str]
    type_labels: dict[str, str]
    texts: dict[str, str]


_EN_HEADERS = {
    "id": "ID", "date": "Date", "description": "Description", "category": "Category",
    "type": "Type", "method": "Method", "amount": "Amount", "recurring": "Recurring",
}
_EN_TEXTS = {
    "statement": "STATEMENT",
    "period": "Period",
    "issued": "Issued on",
    "user": "User",
    "job": "Occupation",
    "summary": "FINANCIAL SUMMARY",
    "income_total": "Total income",
    "expense_total": "Total expenses",
    "balance": "Net balance",
    "page": "Page",
    "footer": "Generated automatically by {product}",
    "yes": "Yes",
    "no": "No",
    "uncategorized": "Uncategorized",
    "all_time": "All time",
    "sheet": "Transactions",
}
_EN_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_EN_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_EN_TYPES = {"INCOME": "Income", "EXPENSE": "Expense"}


LOCALES: dict[str, LocaleConventions] = {
    "pt-PT": LocaleConventions(
        code="pt-PT",
        decimal_sep=",",
        thousands_sep=".",
        csv_delimiter=";",
        date_format="%d/%m/%Y",
        excel_date_format="DD/MM/YYYY",
        symbol_after_amount=True,
        month_names=(
            "janeiro", "fevereiro", "março", "abril", "maio", "junho",
            "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
        ),
        weekday_abbr=("seg", "ter", "qua", "qui", "sex", "sáb", "dom"),
        period_template="{month} de {year}",
        headers={
            "id": "ID", "date": "Data", "description": "Descrição", "category": "Categoria",
            "type": "Tipo", "method": "Método", "amount": "Valor", "recurring": "Recorrente",
        },
        type_labels={"INCOME": "Receita", "EXPENSE": "Despesa"},
        texts={
            "statement": "EXTRATO DE MOVIMENTOS",
            "period": "Período",
            "issued": "Emitido em",
            "user": "Utilizador",
            "job": "Profissão",
            "summary": "RESUMO FINANCEIRO",
            "income_total": "Total Receitas",
            "expense_total": "Total Despesas",
            "balance": "Saldo Líquido",
            "page": "Página",
            "footer": "Gerado automaticamente pelo {product}",
            "yes": "Sim",
            "no": "Não",
            "uncategorized": "Geral",
            "all_time": "Todo o período",
            "sheet": "Movimentos",
        },
    ),
    "en-US": LocaleConventions(
        code="en-US",
        decimal_sep=".",
        thousands_sep=",",
        csv_delimiter=",",
        date_format="%m/%d/%Y",
        excel_date_format="MM/DD/YYYY",
        symbol_after_amount=False,
        month_names=_EN_MONTHS,
        weekday_abbr=_EN_WEEKDAYS,
        period_template="{month} {year}",
        headers=_EN_HEADERS,
        type_labels=_EN_TYPES,
        texts=_EN_TEXTS,
    ),
    "en-GB": LocaleConventions(
        code="en-GB",
        decimal_sep=".",
        thousands_sep=",",
        csv_delimiter=",",
        date_format="%d/%m/%Y",
        excel_date_format="DD/MM/YYYY",
        symbol_after_amount=False,
        month_names=_EN_MONTHS,
        weekday_abbr=_EN_WEEKDAYS,
        period_template="{month} {year}",
        headers=_EN_HEADERS,
        type_labels=_EN_TYPES,
        texts=_EN_TEXTS,
    ),
    "de-DE": LocaleConventions(
        code="de-DE",
        decimal_sep=",",
        thousands_sep=".",
        csv_delimiter=";",
        date_format="%d.%m.%Y",
        excel_date_format="DD.MM.YYYY",
        symbol_after_amount=True,
        month_names=(
            "Januar", "Februar", "März", "April", "Mai", "Juni",
            "Juli", "August", "September", "Oktober", "November", "Dezember",
        ),
        weekday_abbr=("Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"),
        period_template="{month} {year}",
        headers={
            "id": "ID", "date": "Datum", "description": "Beschreibung", "category": "Kategorie",
            "type": "Art", "method": "Zahlungsart", "amount": "Betrag", "recurring": "Wiederkehrend",
        },
        type_labels={"INCOME": "Einnahme", "EXPENSE": "Ausgabe"},
        texts={
            **_EN_TEXTS,
            "statement": "KONTOAUSZUG",
            "period": "Zeitraum",
            "issued": "Erstellt am",
            "user": "Benutzer",
            "job": "Beruf",
            "summary": "FINANZÜBERSICHT",
            "income_total": "Einnahmen gesamt",
            "expense_total": "Ausgaben gesamt",
            "balance": "Saldo",
            "page": "Seite",
            "footer": "Automatisch erstellt von {product}",
            "yes": "Ja",
            "no": "Nein",
            "uncategorized": "Allgemein",
            "all_time": "Gesamter Zeitraum",
            "sheet": "Buchungen",
        },
    ),
    "fr-FR": LocaleConventions(
        code="fr-FR",
        decimal_sep=",",
        thousands_sep=" ",
        csv_delimiter=";",
        date_format="%d/%m/%Y",
        excel_date_format="DD/MM/YYYY",
        symbol_after_amount=True,
        month_names=(
            "janvier", "février", "mars", "avril", "mai", "juin",
            "juillet", "août", "septembre", "octobre", "novembre", "décembre",
        ),
        weekday_abbr=("lun", "mar", "mer", "jeu", "ven", "sam", "dim"),
        period_template="{month} {year}",
        headers={
            "id": "ID", "date": "Date", "description": "Libellé", "category": "Catégorie",
            "type": "Type", "method": "Moyen", "amount": "Montant", "recurring": "Récurrent",
        },
        type_labels={"INCOME": "Revenu", "EXPENSE": "Dépense"},
        texts={
            **_EN_TEXTS,
            "statement": "RELEVÉ DE COMPTE",
            "period": "Période",
            "issued": "Émis le",
            "user": "Utilisateur",
            "job": "Profession",
            "summary": "RÉSUMÉ FINANCIER",
            "income_total": "Total des revenus",
            "expense_total": "Total des dépenses",
            "balance": "Solde net",
            "page": "Page",
            "footer": "Généré automatiquement par {product}",
            "yes": "Oui",
            "no": "Non",
            "uncategorized": "Général",
            "all_time": "Toute la période",
            "sheet": "Opérations",
        },
    ),
}

SUPPORTED_LOCALES = tuple(LOCALES)
FALLBACK_LOCALE = "en-US"

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
    "BRL": "R$",
    "CHF": "CHF",
    "JPY": "¥",
}


def get_locale(code: Optional[str]) -> LocaleConventions:
    """
    Conventions for a locale code.

    Unknown regions fall back to another region of the same language,
    then to en-US.
    """
    if code in LOCALES:
        return LOCALES[code]
    if code:
        language = code.split("-")[0].lower()
        for known, conventions in LOCALES.items():
            if known.split("-")[0] == language:
                return conventions
    return LOCALES[FALLBACK_LOCALE]


def _conventions(locale: Union[str, LocaleConventions, None]) -> LocaleConventions:
    if isinstance(locale, LocaleConventions):
        return locale
    return get_locale(locale)


# =============================================================================
# NUMBERS
# =============================================================================

def quantize(value: Union[Decimal, int, str]) -> Decimal:
    """Round to cents, half up. The one rounding rule every renderer uses."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(
    value: Union[Decimal, int],
    locale: Union[str, LocaleConventions, None] = None,
    grouping: bool = True,
    signed: bool = False,
) -> str:
    """
    Format a money amount with the locale's separators.

    >>> format_amount(Decimal("1704.5"), "pt-PT")
    '1.704,50'
    """
    conv = _conventions(locale)
    amount = quantize(value)
    raw = f"{abs(amount):,.2f}" if grouping else f"{abs(amount):.2f}"
    # Swap through a placeholder so "," and "." don't clobber each other
    text = (
        raw.replace(",", "\x00")
        .replace(".", conv.decimal_sep)
        .replace("\x00", conv.thousands_sep)
    )
    if amount < 0:
        return f"-{text}"
    if signed:
        return f"+{text}"
    return text


def parse_amount(text: str, locale: Union[str, LocaleConventions, None] = None) -> Decimal:
    """
    Inverse of format_amount (with or without grouping).

    Raises:
        ValueError: If the text is not an amount in this locale
    """
    conv = _conventions(locale)
    cleaned = text.strip().replace(conv.thousands_sep, "").replace(" ", "")
    cleaned = cleaned.replace(conv.decimal_sep, ".")
    try:
        return Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Not an amount in {conv.code}: {text!r}") from e


def currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())


def format_currency(
    value: Union[Decimal, int],
    currency: str = "EUR",
    locale: Union[str, LocaleConventions, None] = None,
    hidden: bool = False,
    signed: bool = False,
) -> str:
    """
    Format an amount with its currency symbol.

    When `hidden` is set (the profile's hide-balance flag) the amount is
    replaced by a mask. Only the display is redacted.
    """
    if hidden:
        return HIDDEN_AMOUNT
    conv = _conventions(locale)
    symbol = currency_symbol(currency)
    number = format_amount(value, conv, signed=signed)
    if conv.symbol_after_amount:
        return f"{number} {symbol}"
    if number[0] in "+-":
        return f"{number[0]}{symbol}{number[1:]}"
    return f"{symbol}{number}"


def signed_amount(transaction: Transaction) -> Decimal:
    return quantize(transaction.signed_amount)


# =============================================================================
# DATES AND LABELS
# =============================================================================

def format_date(value: date, locale: Union[str, LocaleConventions, None] = None) -> str:
    return value.strftime(_conventions(locale).date_format)


def parse_date(text: str, locale: Union[str, LocaleConventions, None] = None) -> date:
    return datetime.strptime(text.strip(), _conventions(locale).date_format).date()


def weekday_label(value: date, locale: Union[str, LocaleConventions, None] = None) -> str:
    return _conventions(locale).weekday_abbr[value.weekday()]


def month_name(month: int, locale: Union[str, LocaleConventions, None] = None) -> str:
    return _conventions(locale).month_names[month - 1]


def period_label(
    period: Optional[Period],
    locale: Union[str, LocaleConventions, None] = None,
) -> str:
    """'outubro de 2026', 'October 2026', '2026', or the all-time label."""
    conv = _conventions(locale)
    if period is None:
        return conv.texts["all_time"]
    if period.month is None:
        return str(period.year)
    return conv.period_template.format(
        month=month_name(period.month, conv),
        year=period.year,
    )


def type_label(
    transaction_type: TransactionType,
    locale: Union[str, LocaleConventions, None] = None,
) -> str:
    return _conventions(locale).type_labels[transaction_type.value]


def parse_type_label(
    label: str,
    locale: Union[str, LocaleConventions, None] = None,
) -> TransactionType:
    """Map a localized type label (or the raw enum value) back to the type."""
    conv = _conventions(locale)
    for value, text in conv.type_labels.items():
        if label.strip() in (text, value):
            return TransactionType(value)
    raise ValueError(f"Unknown transaction type label: {label!r}")


def headers(
    columns: list[str],
    locale: Union[str, LocaleConventions, None] = None,
) -> list[str]:
    conv = _conventions(locale)
    return [conv.headers[c] for c in columns]


def artifact_filename(product_name: str, kind: str, issued_on: date, extension: str) -> str:
    """
    <product-name>-<artifact-kind>_<ISO-date>.<ext>

    >>> artifact_filename("Finance-Tracker", "Statement", date(2026, 10, 19), "pdf")
    'Finance-Tracker-Statement_2026-10-19.pdf'
    """
    return f"{product_name}-{kind}_{issued_on.isoformat()}.{extension}"


# =============================================================================
# ROWS
# =============================================================================

class ExportRow(BaseModel):
    """
    One transaction, resolved and ready for any renderer.

    Native values (date, Decimal) are kept alongside the locale-formatted
    text so the spreadsheet can store real numbers while the CSV and PDF
    print text. Both come from the same quantized amount.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    date: date
    description: str
    category: str
    type: TransactionType
    type_label: str
    method: str
    amount: Decimal  # signed, quantized to cents
    is_recurring: bool

    def text(self, column: str, locale: Union[str, LocaleConventions, None] = None,
             grouping: bool = True) -> str:
        conv = _conventions(locale)
        if column == "date":
            return format_date(self.date, conv)
        if column == "amount":
            return format_amount(self.amount, conv, grouping=grouping, signed=True)
        if column == "type":
            return self.type_label
        if column == "recurring":
            return conv.texts["yes"] if self.is_recurring else conv.texts["no"]
        return str(getattr(self, column))


def category_lookup(categories: list[Category]) -> dict[str, Category]:
    return {c.id: c for c in categories}


def category_name(
    category_id: Optional[str],
    lookup: dict[str, Category],
    locale: Union[str, LocaleConventions, None] = None,
) -> str:
    category = lookup.get(category_id) if category_id else None
    if category is None or category.id == UNCATEGORIZED.id:
        return _conventions(locale).texts["uncategorized"]
    return category.name


def build_rows(
    transactions: list[Transaction],
    categories: list[Category],
    locale: Union[str, LocaleConventions, None] = None,
) -> list[ExportRow]:
    """Resolve every transaction into an ExportRow, preserving input order."""
    conv = _conventions(locale)
    lookup = category_lookup(categories)
    return [
        ExportRow(
            id=t.id,
            date=t.date,
            description=t.description,
            category=category_name(t.category_id, lookup, conv),
            type=t.type,
            type_label=type_label(t.type, conv),
            method=t.method,
            amount=signed_amount(t),
            is_recurring=t.is_recurring,
        )
        for t in transactions
    ]
