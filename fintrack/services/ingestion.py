"""Transaction ingestion: categorize, fraud-score, persist, refresh health score"""

from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from fintrack.domain.categorizer import DEFAULT_CATEGORY, categorize_transaction
from fintrack.domain.fraud_rules import detect_fraud
from fintrack.domain.health import calculate_financial_health
from fintrack.domain.models import FraudCheckResult, Transaction
from fintrack.infrastructure.database.models import FinancialHealthRecord, TransactionRecord
from fintrack.infrastructure.database.repositories import (
    FinancialHealthRepository,
    TransactionRepository,
    UserRepository,
    to_domain_transaction,
)
from fintrack.infrastructure.observability.metrics import record_fraud_check


def ingest_transaction(
    db: Session,
    candidate: Transaction,
    history: List[Transaction],
    now: Optional[datetime] = None,
) -> Tuple[TransactionRecord, FraudCheckResult]:
    """
    Score a new transaction against the user's history and persist it.

    The candidate is categorized first when it has no category (or "Other"),
    and carries the fraud flag and reason only when judged fraudulent.
    """
    if not candidate.category or candidate.category == DEFAULT_CATEGORY:
        candidate.category = categorize_transaction(candidate.merchant, float(candidate.amount))

    fraud_check = detect_fraud(candidate, history, now)
    record_fraud_check(fraud_check.is_fraudulent, fraud_check.risk_score)

    if fraud_check.is_fraudulent:
        candidate.is_fraudulent = True
        candidate.fraud_reason = fraud_check.reason

    record = TransactionRepository(db).create_transaction(candidate)
    return record, fraud_check


def ingest_batch(
    db: Session,
    user_id: str,
    candidates: List[Transaction],
    now: Optional[datetime] = None,
) -> List[Tuple[TransactionRecord, FraudCheckResult]]:
    """Ingest rows in order; each row is scored against everything before it"""
    history = TransactionRepository(db).list_domain_transactions(user_id)
    results = []
    for candidate in candidates:
        record, fraud_check = ingest_transaction(db, candidate, history, now)
        history.append(to_domain_transaction(record))
        results.append((record, fraud_check))
    return results


def recalculate_financial_health(
    db: Session,
    user_id: str,
    now: Optional[datetime] = None,
) -> Optional[FinancialHealthRecord]:
    """Recompute and overwrite the user's health score; None for unknown users"""
    user = UserRepository(db).get_user(user_id)
    if user is None:
        return None

    transactions = TransactionRepository(db).list_domain_transactions(user_id)
    components = calculate_financial_health(
        transactions,
        float(user.monthly_income or 0),
        now,
    )
    return FinancialHealthRepository(db).upsert_financial_health(user_id, components)
