"""Budget endpoints (soft delete)"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from fintrack.api.v1.schemas import BudgetCreate, BudgetResponse, BudgetUpdate
from fintrack.api.v1.serializers import serialize_budget
from fintrack.infrastructure.database.repositories import BudgetRepository
from fintrack.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/budgets/{user_id}", response_model=List[BudgetResponse])
def list_budgets(user_id: str, db: Session = Depends(get_db)):
    return [serialize_budget(b) for b in BudgetRepository(db).get_budgets_by_user(user_id)]


@router.post("/budgets", response_model=BudgetResponse, status_code=201)
def create_budget(request_body: BudgetCreate, db: Session = Depends(get_db)):
    budget = BudgetRepository(db).create_budget(
        user_id=request_body.user_id,
        category=request_body.category,
        amount=request_body.amount,
        period=request_body.period,
    )
    db.commit()
    return serialize_budget(budget)


@router.patch("/budgets/{budget_id}", response_model=BudgetResponse)
def update_budget(budget_id: str, request_body: BudgetUpdate, db: Session = Depends(get_db)):
    repo = BudgetRepository(db)
    budget = repo.get_budget(budget_id)
    if budget is None:
        raise HTTPException(status_code=404, detail="Budget not found")

    budget = repo.update_budget(budget, request_body.model_dump(exclude_unset=True, exclude_none=True))
    db.commit()
    return serialize_budget(budget)


@router.delete("/budgets/{budget_id}", status_code=204)
def delete_budget(budget_id: str, db: Session = Depends(get_db)):
    repo = BudgetRepository(db)
    budget = repo.get_budget(budget_id)
    if budget is None:
        raise HTTPException(status_code=404, detail="Budget not found")

    repo.delete_budget(budget)
    db.commit()
    return Response(status_code=204)
