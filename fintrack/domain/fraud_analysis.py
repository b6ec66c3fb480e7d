"""Fraud analysis report - LLM-assisted with a deterministic rule-based fallback"""

import json
import logging
import re
from collections import OrderedDict
from datetime import datetime
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fintrack.domain.models import (
    RISK_LEVELS,
    DatasetPatterns,
    DebitCreditAnalysis,
    FraudPattern,
    LargestTransaction,
    LLMFraudAnalysisResult,
    Transaction,
)
from fintrack.infrastructure.clients.gemini import GeminiClient
from fintrack.utils.date_utils import hours_between, round_half_up, utc_now

RISK_WEIGHTS = {"critical": 100, "high": 70, "medium": 50, "low": 20}
PATTERN_WEIGHT = 0.40
FLAGGED_WEIGHT = 0.35
IMBALANCE_WEIGHT = 0.25

MAX_DATASET_PATTERNS = 5
VELOCITY_THRESHOLD = 15
LARGE_AMOUNT = 50_000
PROMPT_TRANSACTION_LIMIT = 50

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class TextGenerator(Protocol):
    async def generate_text(self, prompt: str) -> str: ...


class LLMPatternPayload(BaseModel):
    """One pattern entry as returned by the LLM; every field is optional"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    pattern: str = "Unspecified pattern"
    risk_level: str = Field(default="medium", alias="riskLevel")
    frequency: int = 1

    @field_validator("risk_level", mode="before")
    @classmethod
    def normalize_risk_level(cls, value):
        level = str(value or "").strip().lower()
        return level if level in RISK_LEVELS else "medium"

    @field_validator("frequency", mode="before")
    @classmethod
    def default_frequency(cls, value):
        return int(float(value or 1))


class LLMFraudResponse(BaseModel):
    """JSON object the LLM is asked to produce, with defaults for missing fields"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    summary: str = "Fraud analysis completed"
    patterns: List[LLMPatternPayload] = Field(default_factory=list)
    risk_score: float = Field(default=0, alias="riskScore")
    risk_assessment: str = Field(default="Analysis in progress", alias="riskAssessment")
    recommendations: List[str] = Field(default_factory=list)

    @field_validator("risk_score", mode="before")
    @classmethod
    def clamp_risk_score(cls, value):
        return max(0.0, min(100.0, float(value or 0)))


def extract_json_object(text: str) -> dict:
    """
    Pull the outermost JSON object out of a model reply, ignoring markdown fences.

    Raises:
        ValueError: If the reply holds no JSON object or it does not parse
    """
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise ValueError("LLM response did not contain a JSON object")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise ValueError("LLM response JSON is not an object")
    return parsed


def parse_llm_response(text: str) -> LLMFraudResponse:
    """Raises ValueError (including pydantic.ValidationError) on unusable output"""
    return LLMFraudResponse.model_validate(extract_json_object(text))


def calculate_debit_credit_analysis(transactions: List[Transaction]) -> DebitCreditAnalysis:
    """
    Aggregate expense ("debit") and income ("credit") transactions.

    Transfers are counted on neither side. The largest transaction on each
    side is the first one reaching the maximum amount.
    """
    debit_categories: Dict[str, float] = {}
    credit_categories: Dict[str, float] = {}
    total_debits = total_credits = 0.0
    debit_count = credit_count = 0
    largest_debit: Optional[LargestTransaction] = None
    largest_credit: Optional[LargestTransaction] = None

    for txn in transactions:
        amount = abs(float(txn.amount))
        if txn.type == "expense":
            debit_count += 1
            total_debits += amount
            debit_categories[txn.category] = debit_categories.get(txn.category, 0.0) + amount
            if largest_debit is None or amount > largest_debit.amount:
                largest_debit = LargestTransaction(amount=amount, merchant=txn.merchant)
        elif txn.type == "income":
            credit_count += 1
            total_credits += amount
            credit_categories[txn.category] = credit_categories.get(txn.category, 0.0) + amount
            if largest_credit is None or amount > largest_credit.amount:
                largest_credit = LargestTransaction(amount=amount, merchant=txn.merchant)

    return DebitCreditAnalysis(
        total_debits=round(total_debits, 2),
        total_credits=round(total_credits, 2),
        debit_count=debit_count,
        credit_count=credit_count,
        largest_debit=largest_debit or LargestTransaction(amount=0.0, merchant="N/A"),
        largest_credit=largest_credit or LargestTransaction(amount=0.0, merchant="N/A"),
        debit_categories=debit_categories,
        credit_categories=credit_categories,
    )


def score_to_risk_level(score: float) -> str:
    if score > 70:
        return "critical"
    if score > 50:
        return "high"
    if score > 30:
        return "medium"
    return "low"


def detect_fraud_patterns(
    transactions: List[Transaction],
    dataset_patterns: Optional[DatasetPatterns] = None,
    now: Optional[datetime] = None,
) -> List[FraudPattern]:
    """Rule-based pattern detection over a user's whole transaction list"""
    if now is None:
        now = utc_now()

    patterns: List[FraudPattern] = []

    if dataset_patterns and dataset_patterns.patterns:
        for mined in dataset_patterns.patterns[:MAX_DATASET_PATTERNS]:
            patterns.append(
                FraudPattern(
                    pattern=f"[Dataset Pattern] {mined.description}",
                    frequency=mined.frequency,
                    risk_level=score_to_risk_level(mined.fraud_risk_score),
                    affected_transactions=round_half_up(mined.frequency * (mined.fraud_risk_score / 100)),
                )
            )

        risky_names = [m.lower() for m in dataset_patterns.high_risk_merchants]
        if risky_names:
            matching = [
                t for t in transactions if any(name in t.merchant.lower() for name in risky_names)
            ]
            if matching:
                patterns.append(
                    FraudPattern(
                        pattern="Transactions from high-risk merchants (dataset)",
                        frequency=len(matching),
                        risk_level="high",
                        affected_transactions=len(matching),
                    )
                )

    last_day = [t for t in transactions if hours_between(t.date, now) <= 24]
    if len(last_day) > VELOCITY_THRESHOLD:
        patterns.append(
            FraudPattern(
                pattern="High transaction velocity (15+ transactions in 24 hours)",
                frequency=len(last_day),
                risk_level="high",
                affected_transactions=len(last_day),
            )
        )

    large = [t for t in transactions if abs(float(t.amount)) > LARGE_AMOUNT]
    if large:
        patterns.append(
            FraudPattern(
                pattern=f"Large transactions detected (50,000+): {len(large)} transactions",
                frequency=len(large),
                risk_level="high" if len(large) > 3 else "medium",
                affected_transactions=len(large),
            )
        )

    # Same merchant with amounts that round to the same hundred
    groups: "OrderedDict[str, List[Transaction]]" = OrderedDict()
    for txn in transactions:
        key = f"{txn.merchant}_{round_half_up(float(txn.amount) / 100) * 100}"
        groups.setdefault(key, []).append(txn)

    for group in groups.values():
        if len(group) > 2:
            patterns.append(
                FraudPattern(
                    pattern=f"Repeated similar transactions: {group[0].merchant}",
                    frequency=len(group),
                    risk_level="high" if len(group) > 5 else "medium",
                    affected_transactions=len(group),
                )
            )

    flagged = [t for t in transactions if t.is_fraudulent]
    if flagged:
        patterns.append(
            FraudPattern(
                pattern="Flagged transactions detected by fraud detector",
                frequency=len(flagged),
                risk_level="critical",
                affected_transactions=len(flagged),
            )
        )

    return patterns


def rule_based_analysis(
    transactions: List[Transaction],
    debit_credit: DebitCreditAnalysis,
    dataset_patterns: Optional[DatasetPatterns] = None,
    now: Optional[datetime] = None,
) -> LLMFraudAnalysisResult:
    """
    Deterministic report used when no LLM is configured or the LLM call fails.

    Overall risk blend:
    - 40%: Average risk-level weight of detected patterns
    - 35%: Percentage of transactions already flagged as fraudulent
    - 25%: Debit/credit imbalance as a percentage of their sum
    """
    patterns = detect_fraud_patterns(transactions, dataset_patterns, now)
    flagged_count = sum(1 for t in transactions if t.is_fraudulent)

    pattern_risk = (
        sum(RISK_WEIGHTS[p.risk_level] for p in patterns) / len(patterns) if patterns else 0.0
    )

    total_amount = debit_credit.total_debits + debit_credit.total_credits
    imbalance = (
        abs(debit_credit.total_debits - debit_credit.total_credits) / total_amount * 100
        if total_amount > 0
        else 0.0
    )

    flagged_percentage = flagged_count / len(transactions) * 100 if transactions else 0.0

    overall = min(
        100.0,
        pattern_risk * PATTERN_WEIGHT
        + flagged_percentage * FLAGGED_WEIGHT
        + min(imbalance, 100.0) * IMBALANCE_WEIGHT,
    )

    if overall >= 70:
        verdict = "Multiple critical issues detected. Immediate review recommended."
    elif overall >= 50:
        verdict = "Several suspicious patterns identified. Enhanced monitoring advised."
    else:
        verdict = "No critical issues found."

    recommendations = [
        "Monitor unusual merchant patterns regularly",
        "Enable transaction alerts for high-value transactions",
        "Review and verify one-time merchants",
        "Contact bank if suspicious transactions found"
        if flagged_count > 0
        else "Maintain current security practices",
        "Keep transaction records for audit purposes",
    ]
    if overall >= 70:
        recommendations.append("Consider updating account security and payment methods")

    return LLMFraudAnalysisResult(
        summary=(
            f"Analyzed {len(transactions)} transactions. Detected {flagged_count} flagged "
            f"transactions and {len(patterns)} fraud patterns."
        ),
        fraud_patterns=patterns,
        debit_credit_analysis=debit_credit,
        risk_assessment=f"Your account has a {overall:.1f}% fraud risk score. {verdict}",
        recommendations=recommendations,
        overall_fraud_risk=round(overall, 1),
        source="rule_based",
    )


def build_analysis_prompt(transactions: List[Transaction], debit_credit: DebitCreditAnalysis) -> str:
    summary = [
        {
            "merchant": t.merchant,
            "amount": float(t.amount),
            "category": t.category,
            "type": t.type,
            "date": t.date.date().isoformat(),
            "isFraudulent": t.is_fraudulent,
        }
        for t in transactions[:PROMPT_TRANSACTION_LIMIT]
    ]

    return f"""Analyze this financial transaction dataset for fraud patterns and provide insights:

TRANSACTION SUMMARY (showing first {len(summary)} of {len(transactions)}):
{json.dumps(summary, indent=2)}

DEBIT/CREDIT ANALYSIS:
- Total Debits: {debit_credit.total_debits:.2f} ({debit_credit.debit_count} transactions)
- Total Credits: {debit_credit.total_credits:.2f} ({debit_credit.credit_count} transactions)
- Largest Debit: {debit_credit.largest_debit.amount:.2f} ({debit_credit.largest_debit.merchant})
- Largest Credit: {debit_credit.largest_credit.amount:.2f} ({debit_credit.largest_credit.merchant})

Please provide:
1. Summary of fraud risk assessment
2. Top 5 fraud patterns identified
3. Risk level for each pattern (low/medium/high/critical)
4. Overall fraud risk score (0-100)
5. Specific recommendations to prevent fraud

Format your response as JSON with this structure:
{{
  "summary": "brief overview",
  "patterns": [
    {{"pattern": "description", "riskLevel": "high", "frequency": 5}}
  ],
  "riskScore": 45,
  "riskAssessment": "one paragraph assessment",
  "recommendations": ["recommendation 1", "recommendation 2"]
}}"""


def _result_from_llm(response: LLMFraudResponse, debit_credit: DebitCreditAnalysis) -> LLMFraudAnalysisResult:
    return LLMFraudAnalysisResult(
        summary=response.summary,
        fraud_patterns=[
            FraudPattern(
                pattern=p.pattern,
                frequency=p.frequency,
                risk_level=p.risk_level,
                affected_transactions=p.frequency,
            )
            for p in response.patterns
        ],
        debit_credit_analysis=debit_credit,
        risk_assessment=response.risk_assessment,
        recommendations=response.recommendations,
        overall_fraud_risk=response.risk_score,
        source="llm",
    )


async def analyze_fraud_with_llm(
    transactions: List[Transaction],
    api_key: Optional[str] = None,
    dataset_patterns: Optional[DatasetPatterns] = None,
    now: Optional[datetime] = None,
    client: Optional[TextGenerator] = None,
) -> LLMFraudAnalysisResult:
    """
    Produce a fraud analysis report for a user's transactions.

    Flow:
    1. Compute the debit/credit breakdown (always, no network)
    2. Without an API key, return the rule-based report
    3. Otherwise ask the LLM and map its JSON answer onto the report
    4. On any LLM failure (network, timeout, HTTP, parse, validation),
       return the rule-based report instead of raising
    """
    debit_credit = calculate_debit_credit_analysis(transactions)

    if not api_key:
        return rule_based_analysis(transactions, debit_credit, dataset_patterns, now)

    if client is None:
        client = GeminiClient(api_key=api_key)

    try:
        text = await client.generate_text(build_analysis_prompt(transactions, debit_credit))
        return _result_from_llm(parse_llm_response(text), debit_credit)
    except Exception as e:
        logging.warning(f"LLM fraud analysis failed, using rule-based fallback: {e}")
        return rule_based_analysis(transactions, debit_credit, dataset_patterns, now)
