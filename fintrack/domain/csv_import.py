"""CSV transaction import - row normalization and income/expense detection"""

import io
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

import pandas as pd

from fintrack.domain.categorizer import categorize_transaction
from fintrack.domain.exceptions import InvalidTransactionDataError
from fintrack.domain.models import Transaction
from fintrack.utils.date_utils import to_naive_utc, utc_now

INCOME_KEYWORDS = (
    "salary", "income", "bonus", "payment received", "deposit", "refund",
    "transfer in", "received", "credit",
)
EXPENSE_KEYWORDS = (
    "payment", "purchase", "withdrawal", "transfer out", "expense", "debit",
    "charge", "fee", "paid",
)
CREDIT_COLUMN_HINTS = ("credit", "received", "deposit")
DEBIT_COLUMN_HINTS = ("debit", "withdrawal", "paid", "expense")

Row = Dict[str, str]


def parse_transaction_csv(csv_text: str) -> List[Row]:
    """
    Read an uploaded transactions CSV into row dicts of strings.

    Raises:
        InvalidTransactionDataError: If the text is not parseable CSV
    """
    try:
        frame = pd.read_csv(io.StringIO(csv_text), dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise InvalidTransactionDataError(f"Unreadable CSV file: {e}") from e

    frame.columns = [str(column).strip() for column in frame.columns]
    return frame.to_dict("records")


def _as_number(value: str) -> float:
    try:
        return float(value or 0)
    except ValueError:
        return 0.0


def detect_transaction_type(row: Row) -> str:
    """
    Decide whether a CSV row is income or expense.

    Order of evidence: explicit `type` column, credit/debit-style columns
    holding a positive value, then income/expense keywords in the merchant
    or description. Anything else (negative amounts included) is expense.
    """
    explicit = (row.get("type") or "").strip().lower()
    if explicit in ("income", "expense"):
        return explicit

    for column, value in row.items():
        column_lower = column.lower()
        if any(hint in column_lower for hint in CREDIT_COLUMN_HINTS) and _as_number(value) > 0:
            return "income"
        if any(hint in column_lower for hint in DEBIT_COLUMN_HINTS) and _as_number(value) > 0:
            return "expense"

    text = (row.get("merchant") or row.get("description") or "").lower()
    matches_income = any(keyword in text for keyword in INCOME_KEYWORDS)
    matches_expense = any(keyword in text for keyword in EXPENSE_KEYWORDS)
    if matches_income and not matches_expense:
        return "income"
    if matches_expense and not matches_income:
        return "expense"

    return "expense"


def parse_row_amount(row: Row) -> Decimal:
    """
    Non-negative amount from the `amount` column; a missing amount is 0.

    Raises:
        InvalidTransactionDataError: If the amount is present but not a number
    """
    raw = (row.get("amount") or "").strip().replace(",", "") or "0"
    try:
        amount = Decimal(raw)
    except InvalidOperation as e:
        raise InvalidTransactionDataError(f"Invalid amount '{raw}' in CSV row") from e
    if not amount.is_finite():
        raise InvalidTransactionDataError(f"Invalid amount '{raw}' in CSV row")
    return abs(amount).quantize(Decimal("0.01"))


def parse_row_date(row: Row, default: datetime) -> datetime:
    raw = (row.get("date") or "").strip()
    if not raw:
        return default
    parsed = pd.to_datetime(raw, errors="coerce")
    if pd.isna(parsed):
        return default
    return to_naive_utc(parsed.to_pydatetime())


def build_transaction(user_id: str, row: Row, now: Optional[datetime] = None) -> Transaction:
    """Turn one CSV row into an unsaved Transaction, categorized by merchant"""
    if now is None:
        now = utc_now()

    merchant = (row.get("merchant") or row.get("description") or "Unknown").strip() or "Unknown"
    amount = parse_row_amount(row)

    return Transaction(
        user_id=user_id,
        date=parse_row_date(row, now),
        amount=amount,
        merchant=merchant,
        category=categorize_transaction(merchant, float(amount)),
        type=detect_transaction_type(row),
        description=row.get("description") or None,
        location=row.get("location") or None,
        account_id=row.get("accountId") or row.get("account_id") or None,
    )
