"""Financial health and spending analytics endpoints"""

from typing import Dict, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from fintrack.api.v1.schemas import CategorySpending, DashboardResponse, FinancialHealthResponse
from fintrack.infrastructure.database.repositories import (
    BudgetRepository,
    FinancialHealthRepository,
    GoalRepository,
    TransactionRepository,
)
from fintrack.infrastructure.database.session import get_db
from fintrack.utils.date_utils import utc_now

router = APIRouter()


@router.get("/financial-health/{user_id}", response_model=FinancialHealthResponse)
def get_financial_health(user_id: str, db: Session = Depends(get_db)):
    """Latest stored health score; recalculated whenever transactions change"""
    health = FinancialHealthRepository(db).get_financial_health(user_id)
    if health is None:
        raise HTTPException(status_code=404, detail="Financial health not calculated yet")
    return FinancialHealthResponse.model_validate(health)


@router.get("/analytics/dashboard/{user_id}", response_model=DashboardResponse)
def get_dashboard(user_id: str, db: Session = Depends(get_db)):
    """
    Current calendar month summary.

    Returns:
        Spend/income/savings for this month plus all-time fraud alert count
    """
    transactions = TransactionRepository(db).list_domain_transactions(user_id)
    budgets = BudgetRepository(db).get_budgets_by_user(user_id)
    goals = GoalRepository(db).get_goals_by_user(user_id)
    health = FinancialHealthRepository(db).get_financial_health(user_id)

    month_start = utc_now().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    this_month = [t for t in transactions if t.date >= month_start]

    total_spend = sum(float(t.amount) for t in this_month if t.type == "expense")
    total_income = sum(float(t.amount) for t in this_month if t.type == "income")

    return DashboardResponse(
        total_spend=total_spend,
        total_income=total_income,
        savings=total_income - total_spend,
        fraud_alerts=sum(1 for t in transactions if t.is_fraudulent),
        active_goals=sum(1 for g in goals if g.status == "active"),
        budget_count=len(budgets),
        health_score=health.score if health else 0,
        transaction_count=len(this_month),
    )


@router.get("/analytics/spending-by-category/{user_id}", response_model=List[CategorySpending])
def get_spending_by_category(user_id: str, db: Session = Depends(get_db)):
    """All-time expense totals per category, largest first"""
    totals: Dict[str, float] = {}
    for txn in TransactionRepository(db).list_domain_transactions(user_id):
        if txn.type == "expense":
            totals[txn.category] = totals.get(txn.category, 0.0) + float(txn.amount)

    return [
        CategorySpending(category=category, amount=amount)
        for category, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True)
    ]
