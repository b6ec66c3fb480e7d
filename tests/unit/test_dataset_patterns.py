"""Unit tests for dataset pattern mining and dataset statistics"""

import pytest
from datetime import datetime
from fintrack.domain.dataset_patterns import (
    describe_pattern,
    estimate_category,
    extract_pattern_keys,
    extract_stats_pattern_keys,
    is_fraud_label,
    merchant_name,
    mine_dataset_patterns,
    parse_amount,
    process_ieee_dataset,
)
from fintrack.domain.exceptions import DatasetProcessingError

HEADER = "TransactionID,isFraud,TransactionAmt,ProductCD,DeviceType,Merchant"


def build_dataset_csv() -> str:
    """
    100 rows, fraud first:
    - 10 fraudulent withdrawals of 120,000 on mobile at Shady Shop
    - 90 legitimate 45.00 shopping rows at Corner Store, 30 of them on mobile
    """
    rows = [HEADER]
    for i in range(10):
        rows.append(f"{i},1,120000,W,mobile,Shady Shop")
    for i in range(10, 100):
        device = "mobile" if i < 40 else "desktop"
        rows.append(f"{i},0,45.00,S,{device},Corner Store")
    return "\n".join(rows) + "\n"


def test_mine_dataset_patterns_scores_and_ranking():
    mined_at = datetime(2024, 6, 1)
    patterns = mine_dataset_patterns(build_dataset_csv(), now=mined_at)

    assert patterns.total_transactions_analyzed == 100
    assert patterns.fraud_percentage == pytest.approx(10.0)
    assert patterns.last_updated == mined_at

    scores = {p.pattern: p.fraud_risk_score for p in patterns.patterns}
    # Patterns with no fraud at all are dropped
    assert scores == {"payment_W": 100, "amount_100k+": 100, "device_mobile": 50}
    assert patterns.patterns[-1].pattern == "device_mobile"

    mobile = next(p for p in patterns.patterns if p.pattern == "device_mobile")
    assert mobile.frequency == 40
    assert mobile.description == "Mobile device"

    assert set(patterns.common_fraud_indicators) == {"payment_W", "amount_100k+", "device_mobile"}
    assert patterns.high_risk_merchants == ["Shady Shop"]


def test_mine_dataset_patterns_truncates_to_max_records():
    patterns = mine_dataset_patterns(build_dataset_csv(), max_records=50)

    assert patterns.total_transactions_analyzed == 50
    assert patterns.fraud_percentage == pytest.approx(20.0)


def test_mine_dataset_patterns_one_in_ten_scores_twenty():
    rows = ["TransactionID,isFraud,TransactionAmt,ProductCD,Merchant"]
    for i in range(10):
        rows.append(f"{i},{1 if i == 0 else 0},500,W,Shop {i}")
    patterns = mine_dataset_patterns("\n".join(rows) + "\n")

    assert [(p.pattern, p.frequency, p.fraud_risk_score) for p in patterns.patterns] == [("payment_W", 10, 20)]
    assert patterns.fraud_percentage == pytest.approx(10.0)


def test_mine_dataset_patterns_keeps_top_fifteen():
    rows = [HEADER + ",Country"]
    for i in range(40):
        rows.append(f"{i},1,500,W,mobile,Shop {i},C{i}")
    patterns = mine_dataset_patterns("\n".join(rows))

    assert len(patterns.patterns) == 15
    assert len(patterns.high_risk_merchants) == 10


def test_mine_dataset_patterns_empty_dataset():
    patterns = mine_dataset_patterns(HEADER + "\n")

    assert patterns.total_transactions_analyzed == 0
    assert patterns.fraud_percentage == 0
    assert patterns.patterns == []


def test_process_ieee_dataset_statistics():
    stats = process_ieee_dataset(build_dataset_csv())

    assert stats.total_transactions == 100
    assert stats.fraud_count == 10
    assert stats.fraud_percentage == pytest.approx(10.0)

    rates = {p.pattern: p.associated_fraud_rate for p in stats.fraud_patterns}
    assert rates["payment_type_W"] == pytest.approx(100.0)
    assert rates["high_amount_100k+"] == pytest.approx(100.0)
    assert rates["device_mobile"] == pytest.approx(25.0)

    assert len(stats.top_merchants) == 1
    assert stats.top_merchants[0].name == "Shady Shop"
    assert stats.top_merchants[0].fraud_count == 10

    assert stats.amount_stats.min == 45.0
    assert stats.amount_stats.max == 120000.0
    assert stats.amount_stats.average == pytest.approx(12040.5)
    assert stats.amount_stats.median == 45.0

    assert stats.category_distribution == {"Withdrawal": 10, "Shopping": 90}


def test_process_ieee_dataset_rejects_empty_input():
    with pytest.raises(DatasetProcessingError):
        process_ieee_dataset(HEADER + "\n")

    with pytest.raises(DatasetProcessingError):
        process_ieee_dataset("")


def test_pattern_keys_for_startup_table():
    record = {
        "PaymentType": "C",
        "DeviceType": "desktop",
        "TransactionAmt": "75000",
        "TransactionTime": "2024-01-01 03:15:00",
        "Country": "US",
        "Browser": "chrome",
    }
    assert extract_pattern_keys(record) == [
        "payment_C",
        "device_desktop",
        "amount_50k-100k",
        "time_early_morning",
        "country_US",
        "browser_chrome",
    ]


def test_pattern_keys_for_statistics_report():
    record = {
        "ProductCD": "W",
        "TransactionAmt": "75000",
        "TransactionTime": "2024-01-01 03:15:00",
        "Country": "US",
        "Browser": "chrome",
    }
    assert extract_stats_pattern_keys(record) == [
        "payment_type_W",
        "high_amount_50k",
        "time_early_morning",
        "browser_chrome",
        "country_US",
    ]


def test_afternoon_bucket_only_in_startup_keys():
    record = {"TransactionAmt": "500", "TransactionTime": "2024-01-01 14:00:00"}

    assert extract_pattern_keys(record) == ["time_afternoon"]
    assert extract_stats_pattern_keys(record) == []


def test_record_field_helpers():
    assert parse_amount({"Amount": "12.5"}) == 12.5
    assert parse_amount({"TransactionAmt": "not-a-number"}) == 0.0
    assert is_fraud_label({"isFraud": "1.0"}) is True
    assert is_fraud_label({"isFraud": "0"}) is False
    assert merchant_name({"MerchantID": "42"}) == "Merchant_42"
    assert merchant_name({}) == "Merchant_Unknown"
    assert describe_pattern("country_US") == "country_US"


def test_estimate_category():
    assert estimate_category({"Merchant": "Shell Gas Station"}) == "Fuel"
    assert estimate_category({"Merchant": "Acme", "ProductCD": "C"}) == "Cash"
    assert estimate_category({"Merchant": "Acme"}) == "Other"
