"""Financial health scoring - composite 0-100 score from recent transactions"""

from datetime import datetime
from typing import List, Optional
from fintrack.domain.models import Transaction, HealthScoreComponents
from fintrack.utils.date_utils import round_half_up, subtract_months, utc_now

NEUTRAL_SCORE = 50
WINDOW_MONTHS = 3
LIQUIDITY_TARGET_MONTHS = 6
DEBT_KEYWORDS = ("loan", "debt", "credit")

WEIGHTS = {
    "income_stability": 0.20,
    "expense_ratio": 0.25,
    "savings_rate": 0.25,
    "debt_ratio": 0.15,
    "liquidity": 0.15,
}


def _is_debt_payment(txn: Transaction) -> bool:
    category = txn.category.lower()
    return any(keyword in category for keyword in DEBT_KEYWORDS)


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def calculate_financial_health(
    transactions: List[Transaction],
    monthly_income: Optional[float] = 0,
    now: Optional[datetime] = None,
) -> HealthScoreComponents:
    """
    Calculate the composite health score over the trailing 3 calendar months.

    Scoring weights:
    - 20%: Income stability (3+ income transactions in the window is stable)
    - 25%: Expense ratio (expenses against three months of stated income)
    - 25%: Savings rate (share of received income not spent)
    - 15%: Debt ratio (loan/debt/credit payments against stated income)
    - 15%: Liquidity (savings as months of expenses, 6 months = 100)

    No transactions or no stated income gives a neutral 50 everywhere.
    """
    if not transactions or not monthly_income:
        return HealthScoreComponents(
            score=NEUTRAL_SCORE,
            income_stability=NEUTRAL_SCORE,
            expense_ratio=NEUTRAL_SCORE,
            savings_rate=NEUTRAL_SCORE,
            debt_ratio=NEUTRAL_SCORE,
            liquidity=NEUTRAL_SCORE,
        )

    if now is None:
        now = utc_now()

    monthly_income = float(monthly_income)
    window_start = subtract_months(now, WINDOW_MONTHS)
    recent = [t for t in transactions if t.date >= window_start]

    income_txns = [t for t in recent if t.type == "income"]
    income_stability = 85.0 if len(income_txns) >= 3 else float(min(len(income_txns) * 20, 100))

    expenses = sum(float(t.amount) for t in recent if t.type == "expense")
    expense_ratio = max(0.0, 100 - (expenses / (monthly_income * WINDOW_MONTHS)) * 100)

    income = sum(float(t.amount) for t in income_txns)
    savings_amount = income - expenses
    savings_rate_value = savings_amount / income if income > 0 else 0.0
    savings_rate = _clamp(savings_rate_value * 100)

    debt_payments = sum(float(t.amount) for t in recent if _is_debt_payment(t))
    debt_ratio = max(0.0, 100 - (debt_payments / (monthly_income * WINDOW_MONTHS)) * 100)

    monthly_expenses = expenses / WINDOW_MONTHS
    if savings_amount > 0 and monthly_expenses > 0:
        liquidity_months = savings_amount / monthly_expenses
        liquidity = min(100.0, (liquidity_months / LIQUIDITY_TARGET_MONTHS) * 100)
    else:
        liquidity = 0.0

    weighted = (
        income_stability * WEIGHTS["income_stability"]
        + expense_ratio * WEIGHTS["expense_ratio"]
        + savings_rate * WEIGHTS["savings_rate"]
        + debt_ratio * WEIGHTS["debt_ratio"]
        + liquidity * WEIGHTS["liquidity"]
    )

    return HealthScoreComponents(
        score=int(_clamp(round_half_up(weighted))),
        income_stability=round_half_up(income_stability),
        expense_ratio=round_half_up(expense_ratio),
        savings_rate=round_half_up(savings_rate),
        debt_ratio=round_half_up(debt_ratio),
        liquidity=round_half_up(liquidity),
    )
