"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

TRANSACTION_TYPES = ("income", "expense", "transfer")
RISK_LEVELS = ("low", "medium", "high", "critical")


@dataclass
class Transaction:
    """A user's transaction; amount is non-negative, direction lives in `type`"""

    user_id: str
    date: datetime
    amount: Decimal
    merchant: str
    category: str
    type: str  # "income", "expense" or "transfer"
    description: Optional[str] = None
    location: Optional[str] = None
    account_id: Optional[str] = None
    is_fraudulent: bool = False
    fraud_reason: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class FraudCheckResult:
    """Outcome of running the fraud rules against one candidate transaction"""

    is_fraudulent: bool
    risk_score: int
    reason: Optional[str] = None


@dataclass
class HealthScoreComponents:
    """Composite financial health score and its five 0-100 components"""

    score: int
    income_stability: int
    expense_ratio: int
    savings_rate: int
    debt_ratio: int
    liquidity: int


@dataclass
class PretrainedFraudPattern:
    """A pattern key mined from the bulk dataset with its fraud risk"""

    pattern: str
    frequency: int
    fraud_risk_score: int
    description: str


@dataclass
class DatasetPatterns:
    """Snapshot of fraud patterns mined from the bulk dataset at startup"""

    patterns: List[PretrainedFraudPattern]
    total_transactions_analyzed: int
    fraud_percentage: float
    last_updated: datetime
    high_risk_merchants: List[str]
    common_fraud_indicators: List[str]


@dataclass
class FraudPatternSummary:
    pattern: str
    frequency: int
    associated_fraud_rate: float


@dataclass
class MerchantFraudStat:
    name: str
    count: int
    fraud_count: int


@dataclass
class AmountStats:
    min: float
    max: float
    average: float
    median: float


@dataclass
class DatasetStats:
    """Full-dataset statistics returned to whoever uploads a dataset for analysis"""

    total_transactions: int
    fraud_count: int
    fraud_percentage: float
    fraud_patterns: List[FraudPatternSummary]
    top_merchants: List[MerchantFraudStat]
    amount_stats: AmountStats
    category_distribution: Dict[str, int]


@dataclass
class FraudPattern:
    """A named fraud pattern in a user-facing analysis report"""

    pattern: str
    frequency: int
    risk_level: str  # one of RISK_LEVELS
    affected_transactions: int


@dataclass
class LargestTransaction:
    amount: float
    merchant: str


@dataclass
class DebitCreditAnalysis:
    """Breakdown of expense ("debit") versus income ("credit") transactions"""

    total_debits: float
    total_credits: float
    debit_count: int
    credit_count: int
    largest_debit: LargestTransaction
    largest_credit: LargestTransaction
    debit_categories: Dict[str, float] = field(default_factory=dict)
    credit_categories: Dict[str, float] = field(default_factory=dict)


@dataclass
class LLMFraudAnalysisResult:
    """Fraud analysis report, produced by the LLM or by the rule-based fallback"""

    summary: str
    fraud_patterns: List[FraudPattern]
    debit_credit_analysis: DebitCreditAnalysis
    risk_assessment: str
    recommendations: List[str]
    overall_fraud_risk: float  # 0-100
    source: str = "rule_based"  # "llm" or "rule_based"
