"""Savings goal endpoints (soft delete)"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from fintrack.api.v1.schemas import GoalCreate, GoalResponse, GoalUpdate
from fintrack.api.v1.serializers import serialize_goal
from fintrack.infrastructure.database.repositories import GoalRepository
from fintrack.infrastructure.database.session import get_db
from fintrack.utils.date_utils import to_naive_utc

router = APIRouter()


@router.get("/goals/{user_id}", response_model=List[GoalResponse])
def list_goals(user_id: str, db: Session = Depends(get_db)):
    return [serialize_goal(g) for g in GoalRepository(db).get_goals_by_user(user_id)]


@router.post("/goals", response_model=GoalResponse, status_code=201)
def create_goal(request_body: GoalCreate, db: Session = Depends(get_db)):
    goal = GoalRepository(db).create_goal(
        user_id=request_body.user_id,
        name=request_body.name,
        target_amount=request_body.target_amount,
        goal_type=request_body.type,
        deadline=to_naive_utc(request_body.deadline) if request_body.deadline else None,
    )
    db.commit()
    return serialize_goal(goal)


@router.patch("/goals/{goal_id}", response_model=GoalResponse)
def update_goal(goal_id: str, request_body: GoalUpdate, db: Session = Depends(get_db)):
    repo = GoalRepository(db)
    goal = repo.get_goal(goal_id)
    if goal is None:
        raise HTTPException(status_code=404, detail="Goal not found")

    updates = request_body.model_dump(exclude_unset=True, exclude_none=True)
    if "deadline" in updates:
        updates["deadline"] = to_naive_utc(updates["deadline"])

    goal = repo.update_goal(goal, updates)
    db.commit()
    return serialize_goal(goal)


@router.delete("/goals/{goal_id}", status_code=204)
def delete_goal(goal_id: str, db: Session = Depends(get_db)):
    repo = GoalRepository(db)
    goal = repo.get_goal(goal_id)
    if goal is None:
        raise HTTPException(status_code=404, detail="Goal not found")

    repo.delete_goal(goal)
    db.commit()
    return Response(status_code=204)
