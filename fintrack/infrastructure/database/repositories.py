"""Data access layer for finance entities"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from fintrack.infrastructure.database.models import (
    Budget,
    FinancialHealthRecord,
    Goal,
    TransactionRecord,
    User,
)
from fintrack.domain.models import HealthScoreComponents, Transaction
from fintrack.utils.date_utils import utc_now


def to_domain_transaction(record: TransactionRecord) -> Transaction:
    """Map a stored row onto the domain dataclass used by the scoring code"""
    return Transaction(
        id=str(record.id),
        user_id=record.user_id,
        date=record.date,
        amount=Decimal(record.amount),
        merchant=record.merchant,
        category=record.category,
        type=record.type,
        description=record.description,
        location=record.location,
        account_id=record.account_id,
        is_fraudulent=record.is_fraudulent,
        fraud_reason=record.fraud_reason,
        created_at=record.created_at,
    )


def _parse_uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class UserRepository:
    """Repository for users"""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def create_user(
        self,
        user_id: str,
        username: str,
        email: str,
        monthly_income: Optional[Decimal] = None,
    ) -> User:
        user = User(id=user_id, username=username, email=email, monthly_income=monthly_income)
        self.db.add(user)
        self.db.flush()
        return user

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_or_create_demo_user(self, user_id: str) -> User:
        """
        Transactions may arrive for users that never registered.

        The demo username and email default to the user id; when a registered
        user already holds either, a numbered demo_ variant is used instead.
        """
        user = self.get_user(user_id)
        if user is not None:
            return user

        username = user_id
        email = f"{user_id}@demo.local"
        suffix = 0
        while self.get_user_by_username(username) or self.get_user_by_email(email):
            suffix += 1
            username = f"demo_{user_id}_{suffix}"
            email = f"demo_{user_id}_{suffix}@demo.local"

        return self.create_user(user_id, username=username, email=email)

    def update_user(self, user: User, updates: Dict[str, Any]) -> User:
        for key, value in updates.items():
            setattr(user, key, value)
        self.db.flush()
        return user


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def create_transaction(self, transaction: Transaction) -> TransactionRecord:
        """Persist a scored transaction"""
        record = TransactionRecord(
            user_id=transaction.user_id,
            date=transaction.date,
            amount=transaction.amount,
            merchant=transaction.merchant,
            category=transaction.category,
            type=transaction.type,
            description=transaction.description,
            location=transaction.location,
            account_id=transaction.account_id,
            is_fraudulent=transaction.is_fraudulent,
            fraud_reason=transaction.fraud_reason,
        )
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return record

    def get_transaction(self, transaction_id: str) -> Optional[TransactionRecord]:
        txn_uuid = _parse_uuid(transaction_id)
        if txn_uuid is None:
            return None
        return self.db.get(TransactionRecord, txn_uuid)

    def get_transactions_by_user(self, user_id: str) -> List[TransactionRecord]:
        """All of a user's transactions, newest first"""
        return (
            self.db.query(TransactionRecord)
            .filter(TransactionRecord.user_id == user_id)
            .order_by(TransactionRecord.date.desc())
            .all()
        )

    def get_transactions_by_date_range(
        self, user_id: str, start: datetime, end: datetime
    ) -> List[TransactionRecord]:
        return (
            self.db.query(TransactionRecord)
            .filter(
                TransactionRecord.user_id == user_id,
                TransactionRecord.date >= start,
                TransactionRecord.date <= end,
            )
            .order_by(TransactionRecord.date.desc())
            .all()
        )

    def list_domain_transactions(self, user_id: str) -> List[Transaction]:
        return [to_domain_transaction(r) for r in self.get_transactions_by_user(user_id)]

    def update_transaction(self, record: TransactionRecord, updates: Dict[str, Any]) -> TransactionRecord:
        for key, value in updates.items():
            setattr(record, key, value)
        self.db.flush()
        return record

    def delete_transaction(self, record: TransactionRecord) -> None:
        self.db.delete(record)
        self.db.flush()


class BudgetRepository:
    """Repository for budgets (soft delete)"""

    def __init__(self, db: Session):
        self.db = db

    def create_budget(self, user_id: str, category: str, amount: Decimal, period: str) -> Budget:
        budget = Budget(user_id=user_id, category=category, amount=amount, period=period)
        self.db.add(budget)
        self.db.flush()
        return budget

    def get_budget(self, budget_id: str) -> Optional[Budget]:
        budget_uuid = _parse_uuid(budget_id)
        if budget_uuid is None:
            return None
        budget = self.db.get(Budget, budget_uuid)
        if budget is None or budget.status == "deleted":
            return None
        return budget

    def get_budgets_by_user(self, user_id: str) -> List[Budget]:
        return (
            self.db.query(Budget)
            .filter(Budget.user_id == user_id, Budget.status != "deleted")
            .order_by(Budget.created_at.desc())
            .all()
        )

    def update_budget(self, budget: Budget, updates: Dict[str, Any]) -> Budget:
        for key, value in updates.items():
            setattr(budget, key, value)
        self.db.flush()
        return budget

    def delete_budget(self, budget: Budget) -> None:
        budget.status = "deleted"
        budget.deleted_at = utc_now()
        self.db.flush()


class GoalRepository:
    """Repository for savings goals (soft delete)"""

    def __init__(self, db: Session):
        self.db = db

    def create_goal(
        self,
        user_id: str,
        name: str,
        target_amount: Decimal,
        goal_type: str,
        deadline: Optional[datetime] = None,
    ) -> Goal:
        goal = Goal(
            user_id=user_id,
            name=name,
            target_amount=target_amount,
            current_amount=Decimal("0"),
            type=goal_type,
            deadline=deadline,
        )
        self.db.add(goal)
        self.db.flush()
        return goal

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        goal_uuid = _parse_uuid(goal_id)
        if goal_uuid is None:
            return None
        goal = self.db.get(Goal, goal_uuid)
        if goal is None or goal.status == "deleted":
            return None
        return goal

    def get_goals_by_user(self, user_id: str) -> List[Goal]:
        return (
            self.db.query(Goal)
            .filter(Goal.user_id == user_id, Goal.status != "deleted")
            .order_by(Goal.created_at.desc())
            .all()
        )

    def update_goal(self, goal: Goal, updates: Dict[str, Any]) -> Goal:
        for key, value in updates.items():
            setattr(goal, key, value)
        self.db.flush()
        return goal

    def delete_goal(self, goal: Goal) -> None:
        goal.status = "deleted"
        self.db.flush()


class FinancialHealthRepository:
    """Repository for the single live health record per user"""

    def __init__(self, db: Session):
        self.db = db

    def get_financial_health(self, user_id: str) -> Optional[FinancialHealthRecord]:
        return self.db.get(FinancialHealthRecord, user_id)

    def upsert_financial_health(
        self, user_id: str, components: HealthScoreComponents
    ) -> FinancialHealthRecord:
        """Overwrite the user's previous score; no history is kept"""
        record = self.get_financial_health(user_id)
        if record is None:
            record = FinancialHealthRecord(user_id=user_id)
            self.db.add(record)

        record.score = components.score
        record.income_stability = components.income_stability
        record.expense_ratio = components.expense_ratio
        record.savings_rate = components.savings_rate
        record.debt_ratio = components.debt_ratio
        record.liquidity = components.liquidity
        record.calculated_at = utc_now()

        self.db.flush()
        return record
