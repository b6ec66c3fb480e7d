"""Fraud rule engine - heuristic checks applied to each incoming transaction"""

from datetime import datetime
from typing import List, NamedTuple, Optional
from fintrack.domain.models import Transaction, FraudCheckResult
from fintrack.utils.date_utils import hours_between, utc_now

LARGE_AMOUNT = 50_000
EXTREME_AMOUNT = 100_000
FIRST_TIME_MERCHANT_AMOUNT = 10_000

VELOCITY_WINDOW_HOURS = 24
VELOCITY_MIN_COUNT = 20
RAPID_WINDOW_HOURS = 5 / 60
RAPID_MIN_COUNT = 10
DUPLICATE_WINDOW_HOURS = 1
DUPLICATE_AMOUNT_TOLERANCE = 0.01

FRAUD_THRESHOLD = 85


class TriggeredRule(NamedTuple):
    reason: str
    score: int


def _within_hours(txn: Transaction, now: datetime, hours: float) -> bool:
    return hours_between(txn.date, now) <= hours


def evaluate_rules(
    candidate: Transaction,
    history: List[Transaction],
    now: datetime,
) -> List[TriggeredRule]:
    """
    Run every rule independently and return the ones that fired, in rule order.

    Time windows are measured back from `now` (submission time), not from
    the candidate's own date, so a backdated import is judged by how fast it
    is being submitted.
    """
    amount = float(candidate.amount)
    merchant = candidate.merchant.lower()
    risks: List[TriggeredRule] = []

    # Rule 1: large amount
    if amount > LARGE_AMOUNT:
        risks.append(TriggeredRule("Unusually large transaction amount", 55))

    # Rule 2: very large amount (rule 1 fires as well)
    if amount > EXTREME_AMOUNT:
        risks.append(TriggeredRule("Extremely large transaction amount", 85))

    # Rule 3: velocity over a day
    last_day = [t for t in history if _within_hours(t, now, VELOCITY_WINDOW_HOURS)]
    if len(last_day) >= VELOCITY_MIN_COUNT:
        risks.append(TriggeredRule("High transaction velocity (20+ transactions in 24 hours)", 70))

    # Rule 4: burst of transactions
    last_minutes = [t for t in history if _within_hours(t, now, RAPID_WINDOW_HOURS)]
    if len(last_minutes) >= RAPID_MIN_COUNT:
        risks.append(TriggeredRule("Multiple rapid transactions (10+ in 5 minutes)", 80))

    # Rule 5: never-seen merchant with a large amount
    same_merchant = [t for t in history if t.merchant.lower() == merchant]
    if not same_merchant and amount > FIRST_TIME_MERCHANT_AMOUNT:
        risks.append(TriggeredRule("First-time merchant with large amount", 40))

    # Rule 6: same merchant and amount within the last hour
    duplicates = [
        t
        for t in same_merchant
        if _within_hours(t, now, DUPLICATE_WINDOW_HOURS)
        and abs(float(t.amount) - amount) < DUPLICATE_AMOUNT_TOLERANCE
    ]
    if duplicates:
        risks.append(TriggeredRule("Potential duplicate transaction", 90))

    return risks


def detect_fraud(
    candidate: Transaction,
    history: List[Transaction],
    now: Optional[datetime] = None,
) -> FraudCheckResult:
    """
    Score a not-yet-persisted transaction against the user's existing ones.

    Requirements:
    - Risk score is the maximum of the triggered rule scores, not a sum
    - Fraudulent iff the risk score reaches FRAUD_THRESHOLD (85)
    - Reason names the first rule that produced the maximum score, only when fraudulent
    """
    if now is None:
        now = utc_now()

    risks = evaluate_rules(candidate, history, now)
    if not risks:
        return FraudCheckResult(is_fraudulent=False, risk_score=0)

    top = max(risks, key=lambda r: r.score)  # max() keeps the first on ties
    is_fraudulent = top.score >= FRAUD_THRESHOLD

    return FraudCheckResult(
        is_fraudulent=is_fraudulent,
        risk_score=top.score,
        reason=top.reason if is_fraudulent else None,
    )
