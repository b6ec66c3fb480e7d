"""User endpoints; monthly income drives the financial health score"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from fintrack.api.v1.schemas import UserCreate, UserResponse, UserUpdate
from fintrack.api.v1.serializers import serialize_user
from fintrack.infrastructure.database.repositories import UserRepository
from fintrack.infrastructure.database.session import get_db
from fintrack.services.ingestion import recalculate_financial_health

router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request_body: UserCreate, db: Session = Depends(get_db)):
    repo = UserRepository(db)
    if repo.get_user(request_body.id) is not None:
        raise HTTPException(status_code=409, detail="User already exists")
    if repo.get_user_by_username(request_body.username) is not None:
        raise HTTPException(status_code=409, detail="Username already taken")
    if repo.get_user_by_email(request_body.email) is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    user = repo.create_user(
        request_body.id,
        username=request_body.username,
        email=request_body.email,
        monthly_income=request_body.monthly_income,
    )
    db.commit()
    return serialize_user(user)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: str, db: Session = Depends(get_db)):
    user = UserRepository(db).get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return serialize_user(user)


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(user_id: str, request_body: UserUpdate, db: Session = Depends(get_db)):
    """Update profile fields; a changed income re-scores financial health"""
    repo = UserRepository(db)
    user = repo.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    updates = request_body.model_dump(exclude_unset=True, exclude_none=True)
    user = repo.update_user(user, updates)
    if "monthly_income" in updates:
        recalculate_financial_health(db, user_id)
    db.commit()

    return serialize_user(user)
