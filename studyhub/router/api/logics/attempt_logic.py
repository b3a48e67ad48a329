from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from studyhub.exceptions import (
    AlreadyCompletedException,
    ConflictException,
    InvalidInputException,
    LimitExceededException,
    NotFoundException,
    StoreFailureException,
)
from studyhub.log import get_logger
from studyhub.model.attempts import QuizAttempt
from studyhub.model.quizzes import Quiz
from studyhub.model.responses import QuizResponse
from studyhub.model.users import User
from studyhub.router.api.logics.grading_logic import STRICT, grade_responses, is_passing
from studyhub.router.api.logics.progress_logic import update_progress
from studyhub.schema.attempt_schema import (
    AttemptOut, AttemptStartOut, AttemptQuiz, AttemptsOut,
    AttemptSubmission, AttemptResultOut, ResultQuiz, ResponseOut, QuestionReview,
)

log = get_logger(__name__)


def _attempt_fields(attempt: QuizAttempt) -> dict:
    return dict(
        attempt_id=attempt.attempt_id,
        user_id=attempt.user_id,
        quiz_id=attempt.quiz_id,
        attempt_number=attempt.attempt_number,
        status=attempt.status,
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
        total_questions=attempt.total_questions,
        correct_answers=attempt.correct_answers,
        score=attempt.score,
        is_passed=attempt.is_passed,
        time_spent=attempt.time_spent,
    )


def _start_out(attempt: QuizAttempt, quiz: Quiz) -> AttemptStartOut:
    return AttemptStartOut(
        **_attempt_fields(attempt),
        quiz=AttemptQuiz(
            quiz_id=quiz.quiz_id,
            title=quiz.title,
            time_limit=quiz.time_limit,
            passing_score=quiz.passing_score,
            randomize_questions=quiz.randomize_questions,
        ),
    )


def _in_progress_attempt(db: Session, user_id: int, quiz_id: int) -> Optional[QuizAttempt]:
    return (
        db.query(QuizAttempt)
        .filter(
            QuizAttempt.user_id == user_id,
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.completed_at.is_(None),
        )
        .order_by(QuizAttempt.attempt_number.desc())
        .first()
    )


def start_attempt_logic(db: Session, quiz_id: int, user_id: Optional[int]) -> Tuple[AttemptStartOut, bool]:
    """
    Start a quiz attempt for a user.

    An attempt that is still in progress is handed back as is, even when the
    quiz's attempt limit has been reached.

    Returns:
        Tuple[AttemptStartOut, bool]: The attempt and whether it was created.
    """
    if user_id is None:
        raise InvalidInputException("User ID is required")

    quiz = db.query(Quiz).options(selectinload(Quiz.questions)).filter(Quiz.quiz_id == quiz_id).first()
    if not quiz:
        raise NotFoundException("Quiz not found")
    if not db.query(User.user_id).filter(User.user_id == user_id).first():
        raise NotFoundException("User not found")

    # 1. Resume
    current = _in_progress_attempt(db, user_id, quiz_id)
    if current:
        return _start_out(current, quiz), False

    # 2. Attempt limit
    prior = db.query(func.count(QuizAttempt.attempt_id), func.max(QuizAttempt.attempt_number)).filter(
        QuizAttempt.user_id == user_id,
        QuizAttempt.quiz_id == quiz_id,
    ).one()
    attempt_count, last_number = prior[0] or 0, prior[1] or 0
    if quiz.max_attempts is not None and attempt_count >= quiz.max_attempts:
        raise LimitExceededException(
            "Maximum number of attempts reached",
            details=f"{attempt_count} of {quiz.max_attempts} attempts used",
        )

    # 3. New attempt
    attempt = QuizAttempt(
        user_id=user_id,
        quiz_id=quiz_id,
        attempt_number=last_number + 1,
        started_at=datetime.now(),
        total_questions=len(quiz.questions),
    )
    db.add(attempt)
    try:
        db.commit()
    except IntegrityError as e:
        # another request took this attempt number first
        db.rollback()
        log.warning("Concurrent start for user %s on quiz %s: %s", user_id, quiz_id, e.orig)
        current = _in_progress_attempt(db, user_id, quiz_id)
        if current:
            return _start_out(current, quiz), False
        raise ConflictException("Quiz attempt could not be started, please retry") from e
    db.refresh(attempt)
    log.info("User %s started attempt %s (#%s) on quiz %s", user_id, attempt.attempt_id, attempt.attempt_number, quiz_id)
    return _start_out(attempt, quiz), True


def _result_out(attempt: QuizAttempt, skipped: Optional[List[int]] = None) -> AttemptResultOut:
    """Build the graded view of an attempt, hiding the key unless the quiz allows it."""
    quiz = attempt.quiz
    reveal = bool(quiz.show_correct_answers)
    responses = [
        ResponseOut(
            response_id=r.response_id,
            question_id=r.question_id,
            user_answer=r.user_answer,
            is_correct=r.is_correct,
            points_earned=r.points_earned,
            question=QuestionReview(
                question_id=r.question.question_id,
                question_text=r.question.question_text,
                correct_answer=r.question.correct_answer if reveal else "",
                explanation=r.question.explanation if reveal else None,
            ),
        )
        for r in attempt.responses
    ]
    return AttemptResultOut(
        **_attempt_fields(attempt),
        quiz=ResultQuiz(
            quiz_id=quiz.quiz_id,
            title=quiz.title,
            passing_score=quiz.passing_score,
            show_correct_answers=reveal,
        ),
        responses=responses,
        show_answers=reveal,
        skipped_question_ids=skipped or [],
    )


def _load_attempt(db: Session, attempt_id: int) -> Optional[QuizAttempt]:
    return (
        db.query(QuizAttempt)
        .options(
            selectinload(QuizAttempt.quiz).selectinload(Quiz.questions),
            selectinload(QuizAttempt.responses).selectinload(QuizResponse.question),
        )
        .filter(QuizAttempt.attempt_id == attempt_id)
        .first()
    )


def submit_attempt_logic(
    db: Session,
    attempt_id: int,
    submission: AttemptSubmission,
    scoring_policy: str = STRICT,
) -> AttemptResultOut:
    """
    Grade a submission and close the attempt.

    The attempt is closed with an UPDATE conditioned on completed_at still
    being NULL, in the same transaction that stores the responses, so two
    racing submissions cannot both be graded: the loser gets a Conflict and
    nothing of its grading is kept.
    """
    if not submission.responses:
        raise InvalidInputException("Responses array is required")

    attempt = _load_attempt(db, attempt_id)
    if not attempt:
        raise NotFoundException("Quiz attempt not found")
    if attempt.completed_at is not None:
        raise AlreadyCompletedException("Quiz attempt already completed")

    quiz = attempt.quiz
    result = grade_responses(quiz.questions, submission.responses, scoring_policy)
    passed = is_passing(result.score, quiz.passing_score)
    if result.skipped_question_ids:
        log.info("Attempt %s: ignored responses for unknown question ids %s", attempt_id, result.skipped_question_ids)

    try:
        closed = db.execute(
            update(QuizAttempt)
            .where(QuizAttempt.attempt_id == attempt_id, QuizAttempt.completed_at.is_(None))
            .values(
                completed_at=datetime.now(),
                score=result.score,
                correct_answers=result.correct_answers,
                time_spent=submission.time_spent,
                is_passed=passed,
            )
            .execution_options(synchronize_session=False)
        )
        if closed.rowcount == 0:
            db.rollback()
            raise ConflictException("Quiz attempt already completed", details="Completed by a concurrent submission")

        db.add_all([
            QuizResponse(
                attempt_id=attempt_id,
                question_id=g.question.question_id,
                user_answer=g.user_answer,
                is_correct=g.is_correct,
                points_earned=g.points_earned,
            )
            for g in result.graded
        ])
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error("Failed to store submission for attempt %s: %s", attempt_id, e)
        raise StoreFailureException("Failed to submit quiz", details=str(e)) from e

    db.expire(attempt)
    attempt = _load_attempt(db, attempt_id)
    log.info(
        "Attempt %s graded: %.2f%% (%s/%s points), passed=%s",
        attempt_id, result.score, result.earned_points, result.possible_points, passed,
    )

    if passed:
        try:
            update_progress(db, attempt.user_id, "quizzes", result.score)
        except Exception:
            # bookkeeping only, the submission itself has been stored
            db.rollback()
            log.exception("Error updating quiz progress for user %s", attempt.user_id)

    return _result_out(attempt, result.skipped_question_ids)


def get_attempt_logic(db: Session, attempt_id: int) -> AttemptResultOut:
    """Get one attempt with its graded responses."""
    attempt = _load_attempt(db, attempt_id)
    if not attempt:
        raise NotFoundException("Quiz attempt not found")
    return _result_out(attempt)


def list_user_attempts_logic(db: Session, quiz_id: int, user_id: Optional[int]) -> AttemptsOut:
    """All attempts of a user on a quiz, oldest first."""
    if user_id is None:
        raise InvalidInputException("User ID is required")
    if not db.query(Quiz.quiz_id).filter(Quiz.quiz_id == quiz_id).first():
        raise NotFoundException("Quiz not found")

    attempts = (
        db.query(QuizAttempt)
        .filter(QuizAttempt.quiz_id == quiz_id, QuizAttempt.user_id == user_id)
        .order_by(QuizAttempt.attempt_number.asc())
        .all()
    )
    return AttemptsOut(attempts=[AttemptOut(**_attempt_fields(a)) for a in attempts])
