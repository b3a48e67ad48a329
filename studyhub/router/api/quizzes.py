from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from studyhub.database.db import get_db
from studyhub.router.dependencies import get_optional_user_id, get_scoring_policy
from studyhub.router.api.logics.quiz_logic import (
    get_quiz_logic, list_quizzes_logic, create_quiz_logic, update_quiz_logic, delete_quiz_logic,
)
from studyhub.router.api.logics.attempt_logic import (
    start_attempt_logic, submit_attempt_logic, get_attempt_logic, list_user_attempts_logic,
)
from studyhub.schema.quiz_schema import QuizCreate, QuizUpdate, QuizWithAnswersOut, QuizzesOut
from studyhub.schema.attempt_schema import (
    AttemptStart, AttemptStartOut, AttemptSubmission, AttemptResultOut, AttemptsOut,
)

router = APIRouter()


################
### Attempts ###
################
@router.post("/attempts/{attempt_id}/submit", response_model=AttemptResultOut, status_code=status.HTTP_200_OK)
def submit_attempt(
    attempt_id: int,
    submission: AttemptSubmission,
    db: Session = Depends(get_db),
    scoring_policy: str = Depends(get_scoring_policy),
):
    """Grade the submitted responses and complete the attempt."""
    return submit_attempt_logic(db, attempt_id, submission, scoring_policy)


@router.get("/attempts/{attempt_id}", response_model=AttemptResultOut, status_code=status.HTTP_200_OK)
def get_attempt(attempt_id: int, db: Session = Depends(get_db)):
    return get_attempt_logic(db, attempt_id)


###############
### Quizzes ###
###############
@router.get("", response_model=QuizzesOut, status_code=status.HTTP_200_OK)
def list_quizzes(
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    week: Optional[str] = None,
    public: bool = True,
    user_id: Optional[int] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """List active quizzes, optionally with the caller's latest attempt on each."""
    return list_quizzes_logic(db, category, difficulty, week, user_id, public_only=public)


@router.post("", response_model=QuizWithAnswersOut, status_code=status.HTTP_201_CREATED)
def create_quiz(quiz_in: QuizCreate, db: Session = Depends(get_db)):
    return create_quiz_logic(db, quiz_in)


@router.get("/{quiz_id}", status_code=status.HTTP_200_OK)
def get_quiz(
    quiz_id: int,
    show_answers: bool = Query(False),
    user_id: Optional[int] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """Get a quiz. The answer key is only included with show_answers=true.

    No response_model here: the returned projection decides which
    question fields exist in the payload.
    """
    return get_quiz_logic(db, quiz_id, show_answers, user_id)


@router.patch("/{quiz_id}", response_model=QuizWithAnswersOut, status_code=status.HTTP_200_OK)
def update_quiz(quiz_id: int, quiz_in: QuizUpdate, db: Session = Depends(get_db)):
    return update_quiz_logic(db, quiz_id, quiz_in)


@router.delete("/{quiz_id}", response_model=dict, status_code=status.HTTP_200_OK)
def delete_quiz(quiz_id: int, db: Session = Depends(get_db)):
    return delete_quiz_logic(db, quiz_id)


@router.post("/{quiz_id}/start", response_model=AttemptStartOut, status_code=status.HTTP_201_CREATED)
def start_attempt(quiz_id: int, body: AttemptStart, response: Response, db: Session = Depends(get_db)):
    """Start a new attempt, or resume the one still in progress (200)."""
    attempt, created = start_attempt_logic(db, quiz_id, body.user_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return attempt


@router.get("/{quiz_id}/attempts", response_model=AttemptsOut, status_code=status.HTTP_200_OK)
def list_user_attempts(
    quiz_id: int,
    user_id: Optional[int] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    return list_user_attempts_logic(db, quiz_id, user_id)
