"""SQLAlchemy ORM models for users, transactions, budgets, goals and health scores"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class User(Base):
    """Account owner; monthly_income feeds the health score"""

    __tablename__ = "users"

    id = Column(Text, primary_key=True)
    username = Column(Text, nullable=False, unique=True)
    email = Column(Text, nullable=False, unique=True)
    monthly_income = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class TransactionRecord(Base):
    """Stored transaction; amount is non-negative, direction is carried by type"""

    __tablename__ = "transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    date = Column(DateTime, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    merchant = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    type = Column(String(16), nullable=False)  # income | expense | transfer
    description = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    account_id = Column(Text, nullable=True)
    is_fraudulent = Column(Boolean, nullable=False, default=False)
    fraud_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Budget(Base):
    """Spending limit per category; soft-deleted via status"""

    __tablename__ = "budgets"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    category = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    period = Column(String(16), nullable=False)  # weekly | monthly | yearly
    status = Column(String(16), nullable=False, default="active")  # active | deleted
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class Goal(Base):
    """Savings goal"""

    __tablename__ = "goals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    target_amount = Column(Numeric(12, 2), nullable=False)
    current_amount = Column(Numeric(12, 2), nullable=False, default=0)
    deadline = Column(DateTime, nullable=True)
    type = Column(String(32), nullable=False)  # emergency_fund | vacation | investment | debt_payoff
    status = Column(String(16), nullable=False, default="active")  # active | completed | cancelled | deleted
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class FinancialHealthRecord(Base):
    """Latest health score per user; overwritten on every recalculation"""

    __tablename__ = "financial_health"

    user_id = Column(Text, primary_key=True)
    score = Column(Integer, nullable=False)
    income_stability = Column(Integer, nullable=False)
    expense_ratio = Column(Integer, nullable=False)
    savings_rate = Column(Integer, nullable=False)
    debt_ratio = Column(Integer, nullable=False)
    liquidity = Column(Integer, nullable=False)
    calculated_at = Column(DateTime, nullable=False)
