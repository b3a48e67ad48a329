import math
from datetime import datetime
from typing import Dict, NamedTuple, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studyhub.exceptions import InvalidInputException, NotFoundException
from studyhub.log import get_logger
from studyhub.model.attempts import QuizAttempt
from studyhub.model.lab_attempts import LabAttempt, LAB_COMPLETED
from studyhub.model.user_progress import UserProgress
from studyhub.model.users import User
from studyhub.schema.user_schema import ProgressMetric, UserProgressOut

log = get_logger(__name__)

AVERAGE_SCORE = "average_score"


class ProgressRule(NamedTuple):
    counter_metric: str
    points_divisor: int


PROGRESS_RULES: Dict[str, ProgressRule] = {
    "quizzes": ProgressRule("completed_quizzes", 5),  # 20 points for 100%
    "labs": ProgressRule("completed_labs", 10),       # 10 points for 100%
}


def points_for_score(score: float, category: str) -> int:
    return int(math.floor(score / PROGRESS_RULES[category].points_divisor))


def _historical_average(db: Session, user_id: int, category: str) -> Optional[float]:
    """Average over every qualifying source row, recomputed from scratch."""
    if category == "quizzes":
        query = db.query(func.avg(QuizAttempt.score)).filter(
            QuizAttempt.user_id == user_id,
            QuizAttempt.is_passed.is_(True),
            QuizAttempt.score.isnot(None),
        )
    else:
        query = db.query(func.avg(LabAttempt.score)).filter(
            LabAttempt.user_id == user_id,
            LabAttempt.status == LAB_COMPLETED,
            LabAttempt.score.isnot(None),
        )
    average = query.scalar()
    return float(average) if average is not None else None


def _get_metric(db: Session, user_id: int, category: str, metric: str) -> Optional[UserProgress]:
    return db.query(UserProgress).filter(
        UserProgress.user_id == user_id,
        UserProgress.category == category,
        UserProgress.metric == metric,
    ).first()


def _increment_counter(db: Session, user_id: int, category: str) -> None:
    metric = PROGRESS_RULES[category].counter_metric
    now = datetime.now()
    row = _get_metric(db, user_id, category, metric)
    if row is None:
        db.add(UserProgress(user_id=user_id, category=category, metric=metric, value=1, last_updated=now))
    else:
        row.value = UserProgress.value + 1
        row.last_updated = now
    db.commit()


def _recompute_average(db: Session, user_id: int, category: str) -> None:
    average = _historical_average(db, user_id, category)
    if average is None:
        return
    now = datetime.now()
    row = _get_metric(db, user_id, category, AVERAGE_SCORE)
    if row is None:
        db.add(UserProgress(user_id=user_id, category=category, metric=AVERAGE_SCORE, value=average, last_updated=now))
    else:
        row.value = average
        row.last_updated = now
    db.commit()


def _award_points(db: Session, user_id: int, category: str, score: float) -> None:
    points = points_for_score(score, category)
    updated = (
        db.query(User)
        .filter(User.user_id == user_id)
        .update({User.study_points: User.study_points + points})
    )
    if not updated:
        log.warning("Cannot award %s study points: user %s not found", points, user_id)
    db.commit()


def update_progress(db: Session, user_id: int, category: str, score: float) -> Dict[str, bool]:
    """
    Record a completed quiz or lab for the user.

    Bumps the completed_<category> counter, recomputes the category's
    average_score and credits study points. The three steps commit on their
    own: when one fails it is rolled back and logged, the others still run.

    Returns:
        Dict[str, bool]: Whether each step succeeded.
    """
    if category not in PROGRESS_RULES:
        raise InvalidInputException(f"Unknown progress category: {category}")

    steps = (
        ("counter", lambda: _increment_counter(db, user_id, category)),
        ("average", lambda: _recompute_average(db, user_id, category)),
        ("points", lambda: _award_points(db, user_id, category, score)),
    )
    outcome = {}
    for name, step in steps:
        try:
            step()
            outcome[name] = True
        except SQLAlchemyError as e:
            db.rollback()
            log.error("Progress step '%s' failed for user %s (%s): %s", name, user_id, category, e)
            outcome[name] = False
    return outcome


def get_user_progress_logic(db: Session, user_id: int) -> UserProgressOut:
    """Get every progress metric recorded for a user."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundException("User not found")

    rows = (
        db.query(UserProgress)
        .filter(UserProgress.user_id == user_id)
        .order_by(UserProgress.category.asc(), UserProgress.metric.asc())
        .all()
    )
    return UserProgressOut(
        user_id=user.user_id,
        study_points=user.study_points,
        progress=[
            ProgressMetric(
                category=r.category,
                metric=r.metric,
                value=r.value,
                last_updated=r.last_updated,
            )
            for r in rows
        ],
    )
