"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

TransactionType = Literal["income", "expense", "transfer"]
BudgetPeriod = Literal["weekly", "monthly", "yearly"]
GoalType = Literal["emergency_fund", "vacation", "investment", "debt_payoff"]
GoalStatus = Literal["active", "completed", "cancelled"]


# Users

class UserCreate(BaseModel):
    """Request body for POST /v1/users"""

    id: str = Field(..., min_length=1, description="User identifier")
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    monthly_income: Optional[Decimal] = Field(None, ge=0)


class UserUpdate(BaseModel):
    """Request body for PATCH /v1/users/{user_id}"""

    username: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=3)
    monthly_income: Optional[Decimal] = Field(None, ge=0)


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    monthly_income: Optional[str] = None


# Transactions

class TransactionCreate(BaseModel):
    """Request body for POST /v1/transactions"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    date: datetime
    amount: Decimal = Field(..., ge=0, description="Non-negative amount; direction comes from type")
    merchant: str = Field(..., min_length=1)
    category: Optional[str] = Field(None, description="Auto-categorized when missing or 'Other'")
    type: TransactionType = "expense"
    description: Optional[str] = None
    location: Optional[str] = None
    account_id: Optional[str] = None


class TransactionUpdate(BaseModel):
    """Request body for PATCH /v1/transactions/{transaction_id}"""

    date: Optional[datetime] = None
    amount: Optional[Decimal] = Field(None, ge=0)
    merchant: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    type: Optional[TransactionType] = None
    description: Optional[str] = None
    location: Optional[str] = None
    account_id: Optional[str] = None
    is_fraudulent: Optional[bool] = None
    fraud_reason: Optional[str] = None


class TransactionResponse(BaseModel):
    id: str
    user_id: str
    date: datetime
    amount: str
    merchant: str
    category: str
    type: str
    description: Optional[str] = None
    location: Optional[str] = None
    account_id: Optional[str] = None
    is_fraudulent: bool
    fraud_reason: Optional[str] = None
    created_at: Optional[datetime] = None


class FraudCheckSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_fraudulent: bool
    risk_score: int
    reason: Optional[str] = None


class TransactionCreateResponse(BaseModel):
    """Response for POST /v1/transactions"""

    transaction: TransactionResponse
    fraud_check: FraudCheckSchema


class TransactionUploadResponse(BaseModel):
    """Response for POST /v1/transactions/upload"""

    count: int
    transactions: List[TransactionResponse]
    fraud_count: int
    fraudulent: List[TransactionResponse]


# Budgets and goals

class BudgetCreate(BaseModel):
    user_id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    period: BudgetPeriod = "monthly"


class BudgetUpdate(BaseModel):
    category: Optional[str] = Field(None, min_length=1)
    amount: Optional[Decimal] = Field(None, ge=0)
    period: Optional[BudgetPeriod] = None


class BudgetResponse(BaseModel):
    id: str
    user_id: str
    category: str
    amount: str
    period: str
    status: str


class GoalCreate(BaseModel):
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    target_amount: Decimal = Field(..., gt=0)
    type: GoalType
    deadline: Optional[datetime] = None


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    target_amount: Optional[Decimal] = Field(None, gt=0)
    current_amount: Optional[Decimal] = Field(None, ge=0)
    deadline: Optional[datetime] = None
    status: Optional[GoalStatus] = None


class GoalResponse(BaseModel):
    id: str
    user_id: str
    name: str
    target_amount: str
    current_amount: str
    deadline: Optional[datetime] = None
    type: str
    status: str


# Health and analytics

class FinancialHealthResponse(BaseModel):
    """Response for GET /v1/financial-health/{user_id}"""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    score: int
    income_stability: int
    expense_ratio: int
    savings_rate: int
    debt_ratio: int
    liquidity: int
    calculated_at: datetime


class DashboardResponse(BaseModel):
    """Current-month summary for GET /v1/analytics/dashboard/{user_id}"""

    total_spend: float
    total_income: float
    savings: float
    fraud_alerts: int
    active_goals: int
    budget_count: int
    health_score: int
    transaction_count: int


class CategorySpending(BaseModel):
    category: str
    amount: float


# Fraud analysis

class FraudPatternSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    pattern: str
    frequency: int
    risk_level: str
    affected_transactions: int


class LargestTransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    amount: float
    merchant: str


class DebitCreditAnalysisSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_debits: float
    total_credits: float
    debit_count: int
    credit_count: int
    largest_debit: LargestTransactionSchema
    largest_credit: LargestTransactionSchema
    debit_categories: Dict[str, float]
    credit_categories: Dict[str, float]


class FraudAnalysisResponse(BaseModel):
    """Response for GET /v1/fraud-analysis/{user_id}"""

    model_config = ConfigDict(from_attributes=True)

    summary: str
    fraud_patterns: List[FraudPatternSchema]
    debit_credit_analysis: DebitCreditAnalysisSchema
    risk_assessment: str
    recommendations: List[str]
    overall_fraud_risk: float
    source: str


# Datasets and system status

class FraudPatternSummarySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    pattern: str
    frequency: int
    associated_fraud_rate: float


class MerchantFraudStatSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    count: int
    fraud_count: int


class AmountStatsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    min: float
    max: float
    average: float
    median: float


class DatasetStatsResponse(BaseModel):
    """Response for POST /v1/datasets/analyze"""

    model_config = ConfigDict(from_attributes=True)

    total_transactions: int
    fraud_count: int
    fraud_percentage: float
    fraud_patterns: List[FraudPatternSummarySchema]
    top_merchants: List[MerchantFraudStatSchema]
    amount_stats: AmountStatsSchema
    category_distribution: Dict[str, int]


class DatasetInfo(BaseModel):
    total_transactions_analyzed: int
    patterns_learned: int
    fraud_percentage: str
    last_updated: datetime
    high_risk_merchants: int
    common_fraud_indicators: int


class SystemStatusResponse(BaseModel):
    """Response for GET /v1/system/status"""

    llm_configured: bool
    dataset_trained: bool
    dataset_info: Optional[DatasetInfo] = None
    message: str
