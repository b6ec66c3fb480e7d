"""Fraud analysis report, dataset analysis and system status endpoints"""

import time
import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from fintrack.api.dependencies import get_dataset_store, get_llm_api_key, get_llm_client, get_request_id
from fintrack.api.v1.schemas import (
    DatasetInfo,
    DatasetStatsResponse,
    FraudAnalysisResponse,
    SystemStatusResponse,
)
from fintrack.config import settings
from fintrack.domain.dataset_patterns import process_ieee_dataset
from fintrack.domain.exceptions import DatasetProcessingError
from fintrack.domain.fraud_analysis import analyze_fraud_with_llm
from fintrack.infrastructure.clients.gemini import GeminiClient
from fintrack.infrastructure.database.repositories import TransactionRepository
from fintrack.infrastructure.database.session import get_db
from fintrack.infrastructure.datasets.loader import DatasetPatternStore
from fintrack.infrastructure.observability.logging import log_fraud_analysis
from fintrack.infrastructure.observability.metrics import record_fraud_analysis

router = APIRouter()


@router.get("/fraud-analysis/{user_id}", response_model=FraudAnalysisResponse)
async def get_fraud_analysis(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    store: DatasetPatternStore = Depends(get_dataset_store),
    api_key: Optional[str] = Depends(get_llm_api_key),
    llm_client: Optional[GeminiClient] = Depends(get_llm_client),
):
    """
    Fraud analysis report over all of a user's transactions.

    Uses the LLM when a key is configured; any LLM failure, and the
    no-key case, yields the rule-based report. This endpoint never fails
    because of the external API.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    transactions = TransactionRepository(db).list_domain_transactions(user_id)
    result = await analyze_fraud_with_llm(
        transactions,
        api_key=api_key,
        dataset_patterns=store.get(),
        client=llm_client,
    )

    duration_ms = (time.time() - start_time) * 1000
    record_fraud_analysis(result.source, llm_attempted=bool(api_key))
    log_fraud_analysis(request_id, user_id, result.source, result.overall_fraud_risk, duration_ms)

    return FraudAnalysisResponse.model_validate(result)


@router.post("/datasets/analyze", response_model=DatasetStatsResponse)
def analyze_dataset(request: Request, file: UploadFile = File(...)):
    """
    Statistics over an uploaded labeled fraud dataset (first 50,000 rows).

    Does not touch the startup pattern cache.
    """
    request_id = get_request_id(request)
    content = file.file.read().decode("utf-8", errors="replace")

    try:
        stats = process_ieee_dataset(content, max_records=settings.dataset_max_records)
    except DatasetProcessingError as e:
        logging.warning(f"Dataset analysis failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    return DatasetStatsResponse.model_validate(stats)


@router.get("/system/status", response_model=SystemStatusResponse)
def get_system_status(
    store: DatasetPatternStore = Depends(get_dataset_store),
    api_key: Optional[str] = Depends(get_llm_api_key),
):
    """Whether the LLM is configured and what the dataset cache holds"""
    patterns = store.get()
    llm_state = "active" if api_key else "inactive"

    if patterns is None:
        return SystemStatusResponse(
            llm_configured=bool(api_key),
            dataset_trained=False,
            message=f"System ready: LLM {llm_state}, no pretrained dataset loaded",
        )

    return SystemStatusResponse(
        llm_configured=bool(api_key),
        dataset_trained=True,
        dataset_info=DatasetInfo(
            total_transactions_analyzed=patterns.total_transactions_analyzed,
            patterns_learned=len(patterns.patterns),
            fraud_percentage=f"{patterns.fraud_percentage:.2f}%",
            last_updated=patterns.last_updated,
            high_risk_merchants=len(patterns.high_risk_merchants),
            common_fraud_indicators=len(patterns.common_fraud_indicators),
        ),
        message=(
            f"System ready: LLM {llm_state}, dataset loaded with "
            f"{patterns.total_transactions_analyzed} transactions analyzed"
        ),
    )
