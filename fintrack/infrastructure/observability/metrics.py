"""Prometheus metrics for monitoring fraud flags, analysis sources, and LLM health"""

from prometheus_client import Counter, Histogram, Gauge

# Fraud rule engine metrics
fraud_check_counter = Counter(
    "fintrack_fraud_check_total",
    "Total transactions scored by the fraud rules",
    ["outcome"],  # flagged | clear
)

fraud_risk_score_histogram = Histogram(
    "fintrack_fraud_risk_score",
    "Distribution of fraud rule risk scores",
    buckets=[0, 40, 55, 70, 80, 85, 90, 100],
)

# Fraud analysis report metrics
fraud_analysis_counter = Counter(
    "fintrack_fraud_analysis_total",
    "Fraud analysis reports produced",
    ["source"],  # llm | rule_based
)

llm_failure_counter = Counter(
    "fintrack_llm_failures_total",
    "LLM fraud analysis calls that fell back to rule-based analysis",
)

# Dataset cache
dataset_patterns_gauge = Gauge(
    "fintrack_dataset_patterns_loaded",
    "Number of fraud patterns held in the dataset cache",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_fraud_check(is_fraudulent: bool, risk_score: int) -> None:
    """Record fraud check metrics for monitoring flag rates and score spread"""
    outcome = "flagged" if is_fraudulent else "clear"
    fraud_check_counter.labels(outcome=outcome).inc()
    fraud_risk_score_histogram.observe(risk_score)


def record_fraud_analysis(source: str, llm_attempted: bool) -> None:
    """Count the report source; an attempted LLM call that ended rule-based is a failure"""
    fraud_analysis_counter.labels(source=source).inc()
    if llm_attempted and source != "llm":
        llm_failure_counter.inc()
