from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from studyhub.database.db import get_db
from studyhub.router.dependencies import get_optional_user_id
from studyhub.router.api.logics.lab_logic import (
    start_lab_attempt_logic, get_lab_attempt_logic, update_lab_attempt_logic,
    list_labs_logic, get_lab_logic, create_lab_logic, update_lab_logic, delete_lab_logic,
    list_lab_attempts_logic,
)
from studyhub.schema.lab_schema import (
    LabAttemptStart, LabAttemptOut, LabAttemptsOut, LabAttemptUpdate, LabCreate, LabOut, LabsOut, LabUpdate,
)

router = APIRouter()


################
### Attempts ###
################
@router.get("/attempts/{attempt_id}", response_model=LabAttemptOut, status_code=status.HTTP_200_OK)
def get_lab_attempt(attempt_id: int, db: Session = Depends(get_db)):
    return get_lab_attempt_logic(db, attempt_id)


@router.patch("/attempts/{attempt_id}", response_model=LabAttemptOut, status_code=status.HTTP_200_OK)
def update_lab_attempt(attempt_id: int, update: LabAttemptUpdate, db: Session = Depends(get_db)):
    """Update progress on a lab attempt (status, notes, screenshots, score...)."""
    return update_lab_attempt_logic(db, attempt_id, update)


############
### Labs ###
############
@router.get("", response_model=LabsOut, status_code=status.HTTP_200_OK)
def list_labs(
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    week: Optional[str] = None,
    user_id: Optional[int] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    return list_labs_logic(db, category, difficulty, week, user_id)


@router.post("", response_model=LabOut, status_code=status.HTTP_201_CREATED)
def create_lab(lab_in: LabCreate, db: Session = Depends(get_db)):
    return create_lab_logic(db, lab_in)


@router.get("/{lab_id}", response_model=LabOut, status_code=status.HTTP_200_OK)
def get_lab(lab_id: int, user_id: Optional[int] = Depends(get_optional_user_id), db: Session = Depends(get_db)):
    return get_lab_logic(db, lab_id, user_id)


@router.patch("/{lab_id}", response_model=LabOut, status_code=status.HTTP_200_OK)
def update_lab(lab_id: int, lab_in: LabUpdate, db: Session = Depends(get_db)):
    return update_lab_logic(db, lab_id, lab_in)


@router.delete("/{lab_id}", response_model=dict, status_code=status.HTTP_200_OK)
def delete_lab(lab_id: int, db: Session = Depends(get_db)):
    return delete_lab_logic(db, lab_id)


@router.get("/{lab_id}/attempts", response_model=LabAttemptsOut, status_code=status.HTTP_200_OK)
def list_lab_attempts(
    lab_id: int,
    user_id: Optional[int] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    return list_lab_attempts_logic(db, lab_id, user_id)


@router.post("/{lab_id}/attempts", response_model=LabAttemptOut, status_code=status.HTTP_201_CREATED)
def start_lab_attempt(lab_id: int, body: LabAttemptStart, response: Response, db: Session = Depends(get_db)):
    attempt, created = start_lab_attempt_logic(db, lab_id, body.user_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return attempt
