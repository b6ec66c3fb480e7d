"""Transaction endpoints: manual entry, CSV import, listing, update and delete"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, Response, UploadFile
from sqlalchemy.orm import Session

from fintrack.api.dependencies import get_request_id
from fintrack.api.v1.schemas import (
    FraudCheckSchema,
    TransactionCreate,
    TransactionCreateResponse,
    TransactionResponse,
    TransactionUpdate,
    TransactionUploadResponse,
)
from fintrack.api.v1.serializers import serialize_transaction, serialize_transactions
from fintrack.domain.csv_import import build_transaction, parse_transaction_csv
from fintrack.domain.exceptions import InvalidTransactionDataError
from fintrack.domain.models import Transaction
from fintrack.infrastructure.database.repositories import TransactionRepository, UserRepository
from fintrack.infrastructure.database.session import get_db
from fintrack.infrastructure.observability.logging import log_fraud_check
from fintrack.services.ingestion import ingest_batch, ingest_transaction, recalculate_financial_health
from fintrack.utils.date_utils import to_naive_utc, utc_now

router = APIRouter()

NULLABLE_FIELDS = {"description", "location", "account_id", "fraud_reason"}


@router.get("/transactions/{user_id}", response_model=List[TransactionResponse])
def list_transactions(
    user_id: str,
    start_date: Optional[datetime] = Query(None, description="Inclusive range start"),
    end_date: Optional[datetime] = Query(None, description="Inclusive range end"),
    db: Session = Depends(get_db),
):
    """List a user's transactions, newest first, optionally within a date range"""
    repo = TransactionRepository(db)
    if start_date and end_date:
        records = repo.get_transactions_by_date_range(
            user_id, to_naive_utc(start_date), to_naive_utc(end_date)
        )
    else:
        records = repo.get_transactions_by_user(user_id)
    return serialize_transactions(records)


@router.post("/transactions", response_model=TransactionCreateResponse, status_code=201)
def create_transaction(
    request_body: TransactionCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Record a single transaction.

    Flow:
    1. Create a demo user if the user id is unknown
    2. Auto-categorize when no category (or "Other") was given
    3. Run the fraud rules against the user's existing transactions
    4. Persist, flagged with the fraud reason when fraudulent
    5. Recalculate the user's financial health score
    """
    request_id = get_request_id(request)

    try:
        UserRepository(db).get_or_create_demo_user(request_body.user_id)

        candidate = Transaction(
            user_id=request_body.user_id,
            date=to_naive_utc(request_body.date),
            amount=request_body.amount.quantize(Decimal("0.01")),
            merchant=request_body.merchant,
            category=request_body.category or "",
            type=request_body.type,
            description=request_body.description,
            location=request_body.location,
            account_id=request_body.account_id,
        )

        history = TransactionRepository(db).list_domain_transactions(request_body.user_id)
        record, fraud_check = ingest_transaction(db, candidate, history)
        recalculate_financial_health(db, request_body.user_id)
        db.commit()

        log_fraud_check(
            request_id,
            request_body.user_id,
            fraud_check.is_fraudulent,
            fraud_check.risk_score,
            fraud_check.reason,
        )

        return TransactionCreateResponse(
            transaction=serialize_transaction(record),
            fraud_check=FraudCheckSchema.model_validate(fraud_check),
        )

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/transactions/upload", response_model=TransactionUploadResponse, status_code=201)
def upload_transactions(
    request: Request,
    user_id: str = Form(..., min_length=1),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    """
    Import transactions from a CSV file.

    Each row is categorized, typed (income/expense) and fraud-scored in file
    order, so later rows see earlier ones as history.
    """
    request_id = get_request_id(request)

    try:
        csv_text = file.file.read().decode("utf-8", errors="replace")
        rows = parse_transaction_csv(csv_text)

        now = utc_now()
        candidates = [build_transaction(user_id, row, now) for row in rows]

        UserRepository(db).get_or_create_demo_user(user_id)
        results = ingest_batch(db, user_id, candidates, now)
        recalculate_financial_health(db, user_id)
        db.commit()

    except InvalidTransactionDataError as e:
        db.rollback()
        logging.warning(f"Rejected CSV upload: {e}", extra={"request_id": request_id, "user_id": user_id})
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    for _, fraud_check in results:
        log_fraud_check(request_id, user_id, fraud_check.is_fraudulent, fraud_check.risk_score, fraud_check.reason)

    created = [record for record, _ in results]
    flagged = [record for record, fraud_check in results if fraud_check.is_fraudulent]

    return TransactionUploadResponse(
        count=len(created),
        transactions=serialize_transactions(created),
        fraud_count=len(flagged),
        fraudulent=serialize_transactions(flagged),
    )


@router.patch("/transactions/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    request_body: TransactionUpdate,
    db: Session = Depends(get_db),
):
    """Apply a partial update and refresh the owner's health score"""
    repo = TransactionRepository(db)
    record = repo.get_transaction(transaction_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Transaction not found")

    updates = {
        key: value
        for key, value in request_body.model_dump(exclude_unset=True).items()
        if value is not None or key in NULLABLE_FIELDS
    }
    if "date" in updates:
        updates["date"] = to_naive_utc(updates["date"])
    if "amount" in updates:
        updates["amount"] = updates["amount"].quantize(Decimal("0.01"))

    record = repo.update_transaction(record, updates)
    recalculate_financial_health(db, record.user_id)
    db.commit()

    return serialize_transaction(record)


@router.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: str, db: Session = Depends(get_db)):
    repo = TransactionRepository(db)
    record = repo.get_transaction(transaction_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Transaction not found")

    user_id = record.user_id
    repo.delete_transaction(record)
    recalculate_financial_health(db, user_id)
    db.commit()

    return Response(status_code=204)
