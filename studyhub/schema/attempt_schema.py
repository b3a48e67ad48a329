from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class AttemptStart(BaseModel):
    user_id: Optional[int] = None


class AttemptQuiz(BaseModel):
    """Quiz fields that are safe to hand out with an attempt."""
    quiz_id: int
    title: str
    time_limit: Optional[int] = None
    passing_score: float
    randomize_questions: bool


class AttemptOut(BaseModel):
    attempt_id: int
    user_id: int
    quiz_id: int
    attempt_number: int
    status: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    total_questions: int
    correct_answers: int
    score: Optional[float] = None
    is_passed: Optional[bool] = None
    time_spent: Optional[int] = None


class AttemptStartOut(AttemptOut):
    quiz: AttemptQuiz


class AttemptsOut(BaseModel):
    attempts: List[AttemptOut]


##################
### Submission ###
##################
class ResponseIn(BaseModel):
    question_id: int
    answer: str


class AttemptSubmission(BaseModel):
    responses: List[ResponseIn] = Field(min_length=1)
    time_spent: Optional[int] = Field(default=None, ge=0)


class QuestionReview(BaseModel):
    question_id: int
    question_text: str
    correct_answer: str
    explanation: Optional[str] = None


class ResponseOut(BaseModel):
    response_id: int
    question_id: int
    user_answer: str
    is_correct: bool
    points_earned: int
    question: QuestionReview


class ResultQuiz(BaseModel):
    quiz_id: int
    title: str
    passing_score: float
    show_correct_answers: bool


class AttemptResultOut(AttemptOut):
    quiz: ResultQuiz
    responses: List[ResponseOut]
    show_answers: bool
    skipped_question_ids: List[int] = []
