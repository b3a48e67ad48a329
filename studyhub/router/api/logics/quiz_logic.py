import random
from datetime import datetime
from typing import Dict, List, Optional, Union

from sqlalchemy.orm import Session, selectinload

from studyhub.exceptions import InvalidInputException, NotFoundException
from studyhub.log import get_logger
from studyhub.model.attempts import QuizAttempt
from studyhub.model.questions import Question
from studyhub.model.quizzes import Quiz
from studyhub.model.users import User
from studyhub.schema.quiz_schema import (
    AttemptSummary, QuestionPublic, QuestionWithAnswer,
    QuizCreate, QuizListItem, QuizOut, QuizUpdate, QuizWithAnswersOut, QuizzesOut,
)

log = get_logger(__name__)

DEFAULT_PASSING_SCORE = 70.0
# settings that may be cleared with an explicit null
NULLABLE_SETTINGS = {"week_reference", "time_limit", "max_attempts"}


def _public_question(q: Question) -> QuestionPublic:
    return QuestionPublic(
        question_id=q.question_id,
        question_text=q.question_text,
        question_type=q.question_type,
        options=q.options,
        points=q.points,
        order_index=q.order_index,
    )


def _question_with_answer(q: Question) -> QuestionWithAnswer:
    return QuestionWithAnswer(
        question_id=q.question_id,
        question_text=q.question_text,
        question_type=q.question_type,
        options=q.options,
        points=q.points,
        order_index=q.order_index,
        correct_answer=q.correct_answer,
        explanation=q.explanation,
    )


def _attempt_summary(a: QuizAttempt) -> AttemptSummary:
    return AttemptSummary(
        attempt_id=a.attempt_id,
        attempt_number=a.attempt_number,
        status=a.status,
        score=a.score,
        is_passed=a.is_passed,
        started_at=a.started_at,
        completed_at=a.completed_at,
        time_spent=a.time_spent,
    )


def _quiz_fields(quiz: Quiz) -> dict:
    return dict(
        quiz_id=quiz.quiz_id,
        creator_id=quiz.creator_id,
        title=quiz.title,
        description=quiz.description,
        category=quiz.category,
        difficulty=quiz.difficulty,
        week_reference=quiz.week_reference,
        time_limit=quiz.time_limit,
        passing_score=quiz.passing_score,
        max_attempts=quiz.max_attempts,
        is_public=quiz.is_public,
        randomize_questions=quiz.randomize_questions,
        show_correct_answers=quiz.show_correct_answers,
        created_at=quiz.created_at,
        updated_at=quiz.updated_at,
        total_points=sum(q.points for q in quiz.questions),
        question_count=len(quiz.questions),
    )


def get_quiz_logic(
    db: Session,
    quiz_id: int,
    show_answers: bool = False,
    user_id: Optional[int] = None,
) -> Union[QuizOut, QuizWithAnswersOut]:
    """
    Return a quiz with its questions.

    Without show_answers the questions carry no answer key at all, and if the
    quiz randomizes questions their order is reshuffled on every call.
    """
    quiz = db.query(Quiz).options(selectinload(Quiz.questions)).filter(Quiz.quiz_id == quiz_id).first()
    if not quiz:
        raise NotFoundException("Quiz not found")

    questions = list(quiz.questions)
    if quiz.randomize_questions and not show_answers:
        random.shuffle(questions)

    attempt_query = db.query(QuizAttempt).filter(QuizAttempt.quiz_id == quiz_id)
    attempt_count = attempt_query.count()
    attempts: List[AttemptSummary] = []
    if user_id is not None:
        attempts = [
            _attempt_summary(a)
            for a in attempt_query.filter(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.created_at.desc(), QuizAttempt.attempt_number.desc())
            .all()
        ]

    if show_answers:
        return QuizWithAnswersOut(
            **_quiz_fields(quiz),
            attempt_count=attempt_count,
            questions=[_question_with_answer(q) for q in questions],
            attempts=attempts,
        )
    return QuizOut(
        **_quiz_fields(quiz),
        attempt_count=attempt_count,
        questions=[_public_question(q) for q in questions],
        attempts=attempts,
    )


def list_quizzes_logic(
    db: Session,
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    week: Optional[str] = None,
    user_id: Optional[int] = None,
    public_only: bool = True,
) -> QuizzesOut:
    """Return active quizzes matching the filters, with the user's latest attempt."""
    query = db.query(Quiz).options(selectinload(Quiz.questions)).filter(Quiz.is_active.is_(True))
    if public_only:
        query = query.filter(Quiz.is_public.is_(True))
    if category:
        query = query.filter(Quiz.category == category)
    if difficulty:
        query = query.filter(Quiz.difficulty == difficulty)
    if week:
        query = query.filter(Quiz.week_reference == week)
    quizzes = query.order_by(Quiz.week_reference.asc(), Quiz.created_at.asc(), Quiz.quiz_id.asc()).all()

    latest: Dict[int, QuizAttempt] = {}
    if user_id is not None and quizzes:
        rows = (
            db.query(QuizAttempt)
            .filter(
                QuizAttempt.user_id == user_id,
                QuizAttempt.quiz_id.in_([q.quiz_id for q in quizzes]),
            )
            .order_by(QuizAttempt.attempt_number.asc())
            .all()
        )
        for a in rows:
            latest[a.quiz_id] = a

    return QuizzesOut(
        quizzes=[
            QuizListItem(
                **_quiz_fields(q),
                user_attempt=_attempt_summary(latest[q.quiz_id]) if q.quiz_id in latest else None,
            )
            for q in quizzes
        ]
    )


def _check_passing_score(passing_score: Optional[float]) -> None:
    if passing_score is not None and not 0 <= passing_score <= 100:
        raise InvalidInputException("Passing score must be between 0 and 100")


def create_quiz_logic(db: Session, quiz_in: QuizCreate) -> QuizWithAnswersOut:
    """Create a quiz together with its questions."""
    if not quiz_in.title.strip() or not quiz_in.questions:
        raise InvalidInputException("Title and at least one question are required")
    _check_passing_score(quiz_in.passing_score)
    if quiz_in.created_by is not None:
        if not db.query(User.user_id).filter(User.user_id == quiz_in.created_by).first():
            raise NotFoundException("User not found")

    quiz = Quiz(
        title=quiz_in.title.strip(),
        description=quiz_in.description or "",
        category=quiz_in.category or "general",
        difficulty=quiz_in.difficulty or "intermediate",
        week_reference=quiz_in.week_reference,
        time_limit=quiz_in.time_limit,
        passing_score=quiz_in.passing_score if quiz_in.passing_score is not None else DEFAULT_PASSING_SCORE,
        max_attempts=quiz_in.max_attempts,
        is_public=quiz_in.is_public,
        randomize_questions=quiz_in.randomize_questions,
        show_correct_answers=quiz_in.show_correct_answers,
        creator_id=quiz_in.created_by,
        questions=[
            Question(
                question_text=q.question_text,
                question_type=q.question_type or "multiple_choice",
                options=q.options,
                correct_answer=q.correct_answer,
                explanation=q.explanation,
                points=q.points,
                order_index=index,
            )
            for index, q in enumerate(quiz_in.questions)
        ],
    )
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    log.info("Created quiz %s with %s questions", quiz.quiz_id, len(quiz.questions))
    return get_quiz_logic(db, quiz.quiz_id, show_answers=True)


def update_quiz_logic(db: Session, quiz_id: int, quiz_in: QuizUpdate) -> QuizWithAnswersOut:
    """Update quiz settings. Questions are not editable."""
    quiz = db.query(Quiz).filter(Quiz.quiz_id == quiz_id).first()
    if not quiz:
        raise NotFoundException("Quiz not found")

    changes = quiz_in.model_dump(exclude_unset=True)
    if "title" in changes and not (changes["title"] or "").strip():
        raise InvalidInputException("Title cannot be empty")
    for key, value in changes.items():
        if value is None and key not in NULLABLE_SETTINGS:
            continue
        setattr(quiz, key, value)
    quiz.updated_at = datetime.now()
    db.commit()
    return get_quiz_logic(db, quiz_id, show_answers=True)


def delete_quiz_logic(db: Session, quiz_id: int) -> Dict[str, str]:
    quiz = db.query(Quiz).filter(Quiz.quiz_id == quiz_id).first()
    if not quiz:
        raise NotFoundException("Quiz not found")
    db.delete(quiz)
    db.commit()
    log.info("Deleted quiz %s", quiz_id)
    return {"message": "Quiz deleted successfully"}
