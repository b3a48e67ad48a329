from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from studyhub.database.db import get_db
from studyhub.router.api.logics.user_logic import (
    get_user_details_logic, list_users_logic, create_user_logic, update_user_logic,
)
from studyhub.router.api.logics.progress_logic import get_user_progress_logic
from studyhub.schema.user_schema import UserAccountOut, UserCreate, UserOut, UserProgressOut, UsersOut, UserUpdate

router = APIRouter()


@router.get("", response_model=UsersOut, status_code=status.HTTP_200_OK)
def list_users(db: Session = Depends(get_db)):
    """Public users ordered by study points (leaderboard)."""
    return list_users_logic(db)


@router.post("", response_model=UserAccountOut, status_code=status.HTTP_201_CREATED)
def create_user(user_in: UserCreate, db: Session = Depends(get_db)):
    return create_user_logic(db, user_in)


@router.get("/{user_id}", response_model=UserOut, status_code=status.HTTP_200_OK)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return get_user_details_logic(db, user_id)


@router.put("/{user_id}", response_model=UserAccountOut, status_code=status.HTTP_200_OK)
def update_user(user_id: int, user_in: UserUpdate, db: Session = Depends(get_db)):
    return update_user_logic(db, user_id, user_in)


@router.get("/{user_id}/progress", response_model=UserProgressOut, status_code=status.HTTP_200_OK)
def get_user_progress(user_id: int, db: Session = Depends(get_db)):
    """Get the user's study points and progress metrics."""
    return get_user_progress_logic(db, user_id)
