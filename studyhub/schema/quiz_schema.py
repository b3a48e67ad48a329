from pydantic import BaseModel, Field
from typing import Optional, List, Any
from datetime import datetime


################
### Question ###
################
class QuestionPublic(BaseModel):
    """A question as shown while taking a quiz: no answer key."""
    question_id: int
    question_text: str
    question_type: str
    options: Optional[List[Any]] = None
    points: int
    order_index: int


class QuestionWithAnswer(QuestionPublic):
    correct_answer: str
    explanation: Optional[str] = None


class QuestionIn(BaseModel):
    question_text: str = Field(min_length=1)
    question_type: str = "multiple_choice"
    options: Optional[List[Any]] = None
    correct_answer: str
    explanation: Optional[str] = None
    points: int = Field(default=1, ge=0)


############
### Quiz ###
############
class AttemptSummary(BaseModel):
    attempt_id: int
    attempt_number: int
    status: str
    score: Optional[float] = None
    is_passed: Optional[bool] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    time_spent: Optional[int] = None


class QuizBase(BaseModel):
    quiz_id: int
    creator_id: Optional[int] = None
    title: str
    description: str
    category: str
    difficulty: str
    week_reference: Optional[str] = None
    time_limit: Optional[int] = None
    passing_score: float
    max_attempts: Optional[int] = None
    is_public: bool
    randomize_questions: bool
    show_correct_answers: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    total_points: int
    question_count: int


class QuizOut(QuizBase):
    attempt_count: int
    questions: List[QuestionPublic]
    attempts: List[AttemptSummary] = []


class QuizWithAnswersOut(QuizBase):
    attempt_count: int
    questions: List[QuestionWithAnswer]
    attempts: List[AttemptSummary] = []


class QuizListItem(QuizBase):
    user_attempt: Optional[AttemptSummary] = None


class QuizzesOut(BaseModel):
    quizzes: List[QuizListItem]


class QuizCreate(BaseModel):
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    week_reference: Optional[str] = None
    time_limit: Optional[int] = Field(default=None, ge=1)
    passing_score: Optional[float] = None
    max_attempts: Optional[int] = Field(default=None, ge=1)
    is_public: bool = True
    randomize_questions: bool = True
    show_correct_answers: bool = False
    created_by: Optional[int] = None
    questions: List[QuestionIn] = []


class QuizUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    week_reference: Optional[str] = None
    time_limit: Optional[int] = Field(default=None, ge=1)
    passing_score: Optional[float] = Field(default=None, ge=0, le=100)
    max_attempts: Optional[int] = Field(default=None, ge=1)
    is_public: Optional[bool] = None
    is_active: Optional[bool] = None
    randomize_questions: Optional[bool] = None
    show_correct_answers: Optional[bool] = None
