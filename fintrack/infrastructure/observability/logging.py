"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from fintrack.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_fraud_check(
    request_id: str,
    user_id: str,
    is_fraudulent: bool,
    risk_score: int,
    reason: str | None,
) -> None:
    """Log structured fraud check outcome for analysis"""
    logging.info(
        "Fraud check completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "fraud_check",
            "fraud_outcome": "flagged" if is_fraudulent else "clear",
            "risk_score": risk_score,
            "reason": reason,
        },
    )


def log_fraud_analysis(
    request_id: str,
    user_id: str,
    source: str,
    overall_fraud_risk: float,
    duration_ms: float,
) -> None:
    """Log which path produced a fraud analysis report and how long it took"""
    logging.info(
        "Fraud analysis completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "fraud_analysis",
            "source": source,
            "overall_fraud_risk": overall_fraud_risk,
            "duration_ms": duration_ms,
        },
    )
