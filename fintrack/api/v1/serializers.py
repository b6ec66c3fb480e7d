"""ORM/domain to response schema conversion; amounts are returned as strings"""

from typing import List
from fintrack.api.v1.schemas import BudgetResponse, GoalResponse, TransactionResponse, UserResponse
from fintrack.domain.models import Transaction
from fintrack.infrastructure.database.models import Budget, Goal, TransactionRecord, User
from fintrack.infrastructure.database.repositories import to_domain_transaction


def serialize_transaction(transaction: Transaction | TransactionRecord) -> TransactionResponse:
    if isinstance(transaction, TransactionRecord):
        transaction = to_domain_transaction(transaction)
    return TransactionResponse(
        id=str(transaction.id),
        user_id=transaction.user_id,
        date=transaction.date,
        amount=str(transaction.amount),
        merchant=transaction.merchant,
        category=transaction.category,
        type=transaction.type,
        description=transaction.description,
        location=transaction.location,
        account_id=transaction.account_id,
        is_fraudulent=transaction.is_fraudulent,
        fraud_reason=transaction.fraud_reason,
        created_at=transaction.created_at,
    )


def serialize_transactions(transactions: List[Transaction | TransactionRecord]) -> List[TransactionResponse]:
    return [serialize_transaction(t) for t in transactions]


def serialize_user(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        monthly_income=str(user.monthly_income) if user.monthly_income is not None else None,
    )


def serialize_budget(budget: Budget) -> BudgetResponse:
    return BudgetResponse(
        id=str(budget.id),
        user_id=budget.user_id,
        category=budget.category,
        amount=str(budget.amount),
        period=budget.period,
        status=budget.status,
    )


def serialize_goal(goal: Goal) -> GoalResponse:
    return GoalResponse(
        id=str(goal.id),
        user_id=goal.user_id,
        name=goal.name,
        target_amount=str(goal.target_amount),
        current_amount=str(goal.current_amount),
        deadline=goal.deadline,
        type=goal.type,
        status=goal.status,
    )
