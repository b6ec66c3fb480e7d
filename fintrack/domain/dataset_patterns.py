"""Fraud pattern mining over a bulk labeled transaction dataset (IEEE-CIS style CSV)"""

import io
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from fintrack.domain.exceptions import DatasetProcessingError
from fintrack.domain.models import (
    AmountStats,
    DatasetPatterns,
    DatasetStats,
    FraudPatternSummary,
    MerchantFraudStat,
    PretrainedFraudPattern,
)
from fintrack.utils.date_utils import round_half_up, utc_now

MAX_RECORDS = 50_000
TOP_PATTERNS = 15
TOP_STATS_PATTERNS = 10
TOP_MERCHANTS = 10
MAX_HIGH_RISK_MERCHANTS = 10
HIGH_RISK_MERCHANT_RATE = 0.05
COMMON_INDICATOR_SCORE = 40

PATTERN_DESCRIPTIONS = {
    "payment_S": "Shopping transaction",
    "payment_W": "Withdrawal transaction",
    "payment_C": "Cash transaction",
    "device_desktop": "Desktop device",
    "device_mobile": "Mobile device",
    "amount_100k+": "Very high transaction amount (100k+)",
    "amount_50k-100k": "High transaction amount (50k-100k)",
    "amount_10k-50k": "Medium-high transaction amount (10k-50k)",
    "amount_under_100": "Very low transaction amount",
    "time_early_morning": "Early morning transaction (12am-6am)",
    "time_evening": "Evening transaction (6pm-12am)",
    "time_afternoon": "Afternoon transaction (12pm-6pm)",
}

Record = Dict[str, Any]


@dataclass
class _Tally:
    count: int = 0
    fraud_count: int = 0

    def add(self, is_fraud: bool) -> None:
        self.count += 1
        if is_fraud:
            self.fraud_count += 1

    @property
    def fraud_rate_percent(self) -> float:
        return (self.fraud_count / self.count) * 100 if self.count else 0.0


def read_dataset_records(csv_text: str, max_records: int = MAX_RECORDS) -> List[Record]:
    """
    Parse dataset CSV text into row dicts, keeping only the first max_records rows.

    Every cell is read as a string; blank cells become "".

    Raises:
        DatasetProcessingError: If the text is not parseable CSV
    """
    try:
        frame = pd.read_csv(
            io.StringIO(csv_text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            nrows=max_records,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise DatasetProcessingError(f"Failed to process dataset: {e}") from e

    frame.columns = [str(column).strip() for column in frame.columns]
    return frame.to_dict("records")


def _field(record: Record, *names: str) -> str:
    """First non-blank value among the given columns, or "" """
    for name in names:
        value = record.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def parse_amount(record: Record) -> float:
    raw = _field(record, "TransactionAmt", "Amount") or "0"
    try:
        return float(raw)
    except ValueError:
        return 0.0


def is_fraud_label(record: Record) -> bool:
    return _field(record, "isFraud").lower() in ("1", "true", "1.0")


def merchant_name(record: Record) -> str:
    merchant = _field(record, "Merchant")
    if merchant:
        return merchant
    return f"Merchant_{_field(record, 'MerchantID') or 'Unknown'}"


def transaction_hour(record: Record) -> Optional[int]:
    raw = _field(record, "TransactionTime")
    if not raw:
        return None
    timestamp = pd.to_datetime(raw, errors="coerce")
    if pd.isna(timestamp):
        return None
    return int(timestamp.hour)


def extract_pattern_keys(record: Record) -> List[str]:
    """Pattern keys used by the startup pattern table"""
    keys = []

    payment_type = _field(record, "PaymentType", "ProductCD")
    if payment_type:
        keys.append(f"payment_{payment_type}")

    device = _field(record, "DeviceType")
    if device:
        keys.append(f"device_{device}")

    amount = parse_amount(record)
    if amount > 100_000:
        keys.append("amount_100k+")
    elif amount > 50_000:
        keys.append("amount_50k-100k")
    elif amount > 10_000:
        keys.append("amount_10k-50k")
    elif amount < 100:
        keys.append("amount_under_100")

    hour = transaction_hour(record)
    if hour is not None:
        if 0 <= hour < 6:
            keys.append("time_early_morning")
        elif 18 <= hour < 24:
            keys.append("time_evening")
        elif 12 <= hour < 18:
            keys.append("time_afternoon")

    country = _field(record, "Country")
    if country:
        keys.append(f"country_{country}")

    browser = _field(record, "Browser")
    if browser:
        keys.append(f"browser_{browser}")

    return keys


def extract_stats_pattern_keys(record: Record) -> List[str]:
    """Pattern keys used by the full-dataset statistics report"""
    keys = []

    payment_type = _field(record, "PaymentType", "ProductCD")
    if payment_type:
        keys.append(f"payment_type_{payment_type}")

    device = _field(record, "DeviceType")
    if device:
        keys.append(f"device_{device}")

    amount = parse_amount(record)
    if amount > 100_000:
        keys.append("high_amount_100k+")
    elif amount > 50_000:
        keys.append("high_amount_50k")
    elif amount > 10_000:
        keys.append("medium_amount_10k")
    elif amount < 100:
        keys.append("low_amount_under_100")

    hour = transaction_hour(record)
    if hour is not None:
        if 0 <= hour < 6:
            keys.append("time_early_morning")
        elif 18 <= hour < 24:
            keys.append("time_evening")

    browser = _field(record, "Browser")
    if browser:
        keys.append(f"browser_{browser}")

    country = _field(record, "Country")
    if country:
        keys.append(f"country_{country}")

    return keys


def describe_pattern(pattern: str) -> str:
    return PATTERN_DESCRIPTIONS.get(pattern, pattern)


def estimate_category(record: Record) -> str:
    """Rough spending category from merchant text, then from the product code"""
    merchant = _field(record, "Merchant", "MerchantID").lower()
    product_code = _field(record, "ProductCD").lower()

    if "gas" in merchant or "fuel" in merchant:
        return "Fuel"
    if "grocery" in merchant or "supermarket" in merchant:
        return "Groceries"
    if "restaurant" in merchant or "cafe" in merchant:
        return "Food & Dining"
    if "hotel" in merchant or "travel" in merchant:
        return "Travel"
    if "shopping" in merchant or "retail" in merchant:
        return "Shopping"
    if "health" in merchant or "pharmacy" in merchant:
        return "Healthcare"
    if "entertainment" in merchant or "movie" in merchant:
        return "Entertainment"

    if product_code == "s":
        return "Shopping"
    if product_code == "w":
        return "Withdrawal"
    if product_code == "c":
        return "Cash"

    return "Other"


def _tally_patterns(records: Iterable[Record], extract) -> Dict[str, _Tally]:
    tallies: Dict[str, _Tally] = {}
    for record in records:
        is_fraud = is_fraud_label(record)
        for key in extract(record):
            tallies.setdefault(key, _Tally()).add(is_fraud)
    return tallies


def mine_dataset_patterns(
    csv_text: str,
    max_records: int = MAX_RECORDS,
    now: Optional[datetime] = None,
) -> DatasetPatterns:
    """
    Build the startup pattern table from raw dataset CSV.

    Requirements:
    - Only the first max_records rows are considered (truncation, not sampling)
    - Pattern risk score = min(100, round(fraud rate % x 2)), top 15 by score
    - Common fraud indicators are patterns scoring above 40
    - A merchant is high-risk when more than 5% of its rows are fraudulent

    Raises:
        DatasetProcessingError: If the CSV cannot be parsed
    """
    records = read_dataset_records(csv_text, max_records)

    total_fraud = 0
    merchants: Dict[str, _Tally] = {}
    for record in records:
        is_fraud = is_fraud_label(record)
        if is_fraud:
            total_fraud += 1
        merchants.setdefault(merchant_name(record), _Tally()).add(is_fraud)

    tallies = _tally_patterns(records, extract_pattern_keys)

    patterns = [
        PretrainedFraudPattern(
            pattern=key,
            frequency=tally.count,
            fraud_risk_score=min(100, round_half_up(tally.fraud_rate_percent * 2)),
            description=describe_pattern(key),
        )
        for key, tally in tallies.items()
        if tally.fraud_count > 0
    ]
    patterns = sorted(patterns, key=lambda p: p.fraud_risk_score, reverse=True)[:TOP_PATTERNS]

    high_risk_merchants = [
        name
        for name, tally in merchants.items()
        if tally.fraud_count / tally.count > HIGH_RISK_MERCHANT_RATE
    ]

    return DatasetPatterns(
        patterns=patterns,
        total_transactions_analyzed=len(records),
        fraud_percentage=(total_fraud / len(records)) * 100 if records else 0.0,
        last_updated=now or utc_now(),
        high_risk_merchants=high_risk_merchants[:MAX_HIGH_RISK_MERCHANTS],
        common_fraud_indicators=[
            p.pattern for p in patterns if p.fraud_risk_score > COMMON_INDICATOR_SCORE
        ],
    )


def process_ieee_dataset(csv_text: str, max_records: int = MAX_RECORDS) -> DatasetStats:
    """
    Compute full-dataset statistics for an uploaded fraud dataset.

    Unlike the startup table, patterns here are ranked by raw fraud rate
    percentage and only the top 10 are kept.

    Raises:
        DatasetProcessingError: If the CSV cannot be parsed or has no rows
    """
    records = read_dataset_records(csv_text, max_records)
    if not records:
        raise DatasetProcessingError("Failed to process dataset: no transaction rows found")

    fraud_count = 0
    amounts: List[float] = []
    merchants: Dict[str, _Tally] = {}
    categories: Dict[str, int] = {}

    for record in records:
        is_fraud = is_fraud_label(record)
        if is_fraud:
            fraud_count += 1
        amounts.append(parse_amount(record))
        merchants.setdefault(merchant_name(record), _Tally()).add(is_fraud)

        category = estimate_category(record)
        categories[category] = categories.get(category, 0) + 1

    tallies = _tally_patterns(records, extract_stats_pattern_keys)

    fraud_patterns = sorted(
        (
            FraudPatternSummary(
                pattern=key,
                frequency=tally.count,
                associated_fraud_rate=tally.fraud_rate_percent,
            )
            for key, tally in tallies.items()
            if tally.fraud_count > 0
        ),
        key=lambda p: p.associated_fraud_rate,
        reverse=True,
    )[:TOP_STATS_PATTERNS]

    top_merchants = sorted(
        (
            MerchantFraudStat(name=name, count=tally.count, fraud_count=tally.fraud_count)
            for name, tally in merchants.items()
            if tally.fraud_count > 0
        ),
        key=lambda m: m.fraud_count,
        reverse=True,
    )[:TOP_MERCHANTS]

    sorted_amounts = sorted(amounts)
    average = sum(sorted_amounts) / len(sorted_amounts)

    return DatasetStats(
        total_transactions=len(records),
        fraud_count=fraud_count,
        fraud_percentage=(fraud_count / len(records)) * 100,
        fraud_patterns=fraud_patterns,
        top_merchants=top_merchants,
        amount_stats=AmountStats(
            min=sorted_amounts[0],
            max=sorted_amounts[-1],
            average=round(average, 2),
            median=round(sorted_amounts[len(sorted_amounts) // 2], 2),
        ),
        category_distribution=categories,
    )
