from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from studyhub.exceptions import ConflictException, InvalidInputException, NotFoundException
from studyhub.log import get_logger
from studyhub.model.lab_attempts import LabAttempt, LAB_IN_PROGRESS, LAB_COMPLETED, LAB_FAILED
from studyhub.model.labs import VirtualLab
from studyhub.model.users import User
from studyhub.router.api.logics.progress_logic import update_progress
from studyhub.schema.lab_schema import (
    LabAttemptBrief, LabAttemptListItem, LabAttemptOut, LabAttemptsOut, LabAttemptUpdate, LabAttemptUser,
    LabCreate, LabOut, LabsOut, LabSummary, LabUpdate,
)

log = get_logger(__name__)

LAB_PASSING_SCORE = 70
DEFAULT_ESTIMATED_TIME = 60
# attempts shown on a lab when no user is given
RECENT_ATTEMPTS = 10
# lab fields that may be cleared with an explicit null
NULLABLE_LAB_FIELDS = {"week_reference", "objectives", "prerequisites", "resources"}


def _lab_attempt_out(attempt: LabAttempt) -> LabAttemptOut:
    lab = attempt.lab
    return LabAttemptOut(
        attempt_id=attempt.attempt_id,
        user_id=attempt.user_id,
        lab_id=attempt.lab_id,
        status=attempt.status,
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
        time_spent=attempt.time_spent,
        score=attempt.score,
        notes=attempt.notes,
        screenshots=attempt.screenshots or [],
        feedback=attempt.feedback,
        lab=LabSummary(
            lab_id=lab.lab_id,
            title=lab.title,
            instructions=lab.instructions,
            objectives=lab.objectives,
            resources=lab.resources,
        ),
    )


def start_lab_attempt_logic(db: Session, lab_id: int, user_id: Optional[int]) -> Tuple[LabAttemptOut, bool]:
    """
    Start (or restart) a lab for a user.

    A user holds a single attempt row per lab: an attempt in progress is
    returned untouched, a finished one is reset and started again.

    Returns:
        Tuple[LabAttemptOut, bool]: The attempt and whether a row was created.
    """
    if user_id is None:
        raise InvalidInputException("User ID is required")

    lab = db.query(VirtualLab).filter(VirtualLab.lab_id == lab_id).first()
    if not lab:
        raise NotFoundException("Lab not found")
    if not db.query(User.user_id).filter(User.user_id == user_id).first():
        raise NotFoundException("User not found")

    existing = db.query(LabAttempt).filter(LabAttempt.user_id == user_id, LabAttempt.lab_id == lab_id).first()
    if existing:
        if existing.status == LAB_IN_PROGRESS:
            return _lab_attempt_out(existing), False

        existing.status = LAB_IN_PROGRESS
        existing.started_at = datetime.now()
        existing.completed_at = None
        existing.time_spent = None
        existing.score = None
        existing.notes = None
        existing.feedback = None
        existing.screenshots = []
        db.commit()
        db.refresh(existing)
        log.info("User %s restarted lab %s (attempt %s)", user_id, lab_id, existing.attempt_id)
        return _lab_attempt_out(existing), False

    attempt = LabAttempt(
        user_id=user_id,
        lab_id=lab_id,
        status=LAB_IN_PROGRESS,
        started_at=datetime.now(),
        screenshots=[],
    )
    db.add(attempt)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        log.warning("Concurrent lab start for user %s on lab %s: %s", user_id, lab_id, e.orig)
        raise ConflictException("Lab attempt already exists, please retry") from e
    db.refresh(attempt)
    return _lab_attempt_out(attempt), True


def get_lab_attempt_logic(db: Session, attempt_id: int) -> LabAttemptOut:
    attempt = (
        db.query(LabAttempt)
        .options(joinedload(LabAttempt.lab))
        .filter(LabAttempt.attempt_id == attempt_id)
        .first()
    )
    if not attempt:
        raise NotFoundException("Lab attempt not found")
    return _lab_attempt_out(attempt)


def update_lab_attempt_logic(db: Session, attempt_id: int, update: LabAttemptUpdate) -> LabAttemptOut:
    """
    Record progress on a lab attempt.

    Lab progress accrues once, when the attempt moves into completed with a
    score of 70 or more. Later updates of a completed attempt accrue nothing.
    """
    attempt = db.query(LabAttempt).filter(LabAttempt.attempt_id == attempt_id).first()
    if not attempt:
        raise NotFoundException("Lab attempt not found")

    changes = update.model_dump(exclude_unset=True)
    status = changes.pop("status", None)
    previous_status = attempt.status
    if status:
        attempt.status = status
        if status in (LAB_COMPLETED, LAB_FAILED):
            attempt.completed_at = datetime.now()
    for key, value in changes.items():
        if key == "screenshots" and value is None:
            value = []
        setattr(attempt, key, value)
    db.commit()
    db.refresh(attempt)

    newly_completed = status == LAB_COMPLETED and previous_status != LAB_COMPLETED
    if newly_completed and attempt.score is not None and attempt.score >= LAB_PASSING_SCORE:
        try:
            update_progress(db, attempt.user_id, "labs", attempt.score)
        except Exception:
            db.rollback()
            log.exception("Error updating lab progress for user %s", attempt.user_id)

    return _lab_attempt_out(attempt)


###############
### Catalog ###
###############
def _attempt_brief(a: LabAttempt) -> LabAttemptBrief:
    return LabAttemptBrief(
        attempt_id=a.attempt_id,
        user_id=a.user_id,
        status=a.status,
        score=a.score,
        started_at=a.started_at,
        completed_at=a.completed_at,
        time_spent=a.time_spent,
    )


def _lab_out(lab: VirtualLab, attempt_count: int, attempts: List[LabAttempt]) -> LabOut:
    return LabOut(
        lab_id=lab.lab_id,
        creator_id=lab.creator_id,
        title=lab.title,
        description=lab.description,
        category=lab.category,
        difficulty=lab.difficulty,
        estimated_time=lab.estimated_time,
        instructions=lab.instructions,
        objectives=lab.objectives,
        prerequisites=lab.prerequisites,
        resources=lab.resources,
        week_reference=lab.week_reference,
        is_active=lab.is_active,
        created_at=lab.created_at,
        updated_at=lab.updated_at,
        attempt_count=attempt_count,
        attempts=[_attempt_brief(a) for a in attempts],
    )


def _get_lab(db: Session, lab_id: int) -> VirtualLab:
    lab = db.query(VirtualLab).filter(VirtualLab.lab_id == lab_id).first()
    if not lab:
        raise NotFoundException("Lab not found")
    return lab


def _attempt_count(db: Session, lab_id: int) -> int:
    return db.query(LabAttempt).filter(LabAttempt.lab_id == lab_id).count()


def list_labs_logic(
    db: Session,
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    week: Optional[str] = None,
    user_id: Optional[int] = None,
) -> LabsOut:
    """Active labs matching the filters; with a user_id each lab carries that user's attempts."""
    query = db.query(VirtualLab).filter(VirtualLab.is_active.is_(True))
    if category:
        query = query.filter(VirtualLab.category == category)
    if difficulty:
        query = query.filter(VirtualLab.difficulty == difficulty)
    if week:
        query = query.filter(VirtualLab.week_reference == week)
    labs = query.order_by(VirtualLab.week_reference.asc(), VirtualLab.created_at.asc(), VirtualLab.lab_id.asc()).all()
    lab_ids = [lab.lab_id for lab in labs]

    counts: Dict[int, int] = {}
    user_attempts: Dict[int, List[LabAttempt]] = {}
    if lab_ids:
        counts = dict(
            db.query(LabAttempt.lab_id, func.count(LabAttempt.attempt_id))
            .filter(LabAttempt.lab_id.in_(lab_ids))
            .group_by(LabAttempt.lab_id)
            .all()
        )
        if user_id is not None:
            for a in db.query(LabAttempt).filter(LabAttempt.user_id == user_id, LabAttempt.lab_id.in_(lab_ids)):
                user_attempts.setdefault(a.lab_id, []).append(a)

    return LabsOut(labs=[
        _lab_out(lab, counts.get(lab.lab_id, 0), user_attempts.get(lab.lab_id, []))
        for lab in labs
    ])


def get_lab_logic(db: Session, lab_id: int, user_id: Optional[int] = None) -> LabOut:
    """
    Get a lab with its attempts.

    With a user_id only that user's attempts are included, otherwise the
    most recent ones across all users.
    """
    lab = _get_lab(db, lab_id)
    query = db.query(LabAttempt).filter(LabAttempt.lab_id == lab_id)
    if user_id is not None:
        attempts = query.filter(LabAttempt.user_id == user_id).order_by(LabAttempt.created_at.desc()).all()
    else:
        attempts = (
            query.order_by(LabAttempt.created_at.desc(), LabAttempt.attempt_id.desc())
            .limit(RECENT_ATTEMPTS)
            .all()
        )
    return _lab_out(lab, _attempt_count(db, lab_id), attempts)


def create_lab_logic(db: Session, lab_in: LabCreate) -> LabOut:
    title = (lab_in.title or "").strip()
    if not title or not (lab_in.description or "").strip() or not (lab_in.instructions or "").strip():
        raise InvalidInputException("Title, description, and instructions are required")
    if lab_in.created_by is not None:
        if not db.query(User.user_id).filter(User.user_id == lab_in.created_by).first():
            raise NotFoundException("User not found")

    lab = VirtualLab(
        title=title,
        description=lab_in.description,
        instructions=lab_in.instructions,
        category=lab_in.category or "general",
        difficulty=lab_in.difficulty or "intermediate",
        estimated_time=lab_in.estimated_time or DEFAULT_ESTIMATED_TIME,
        objectives=lab_in.objectives or [],
        prerequisites=lab_in.prerequisites or [],
        resources=lab_in.resources or [],
        week_reference=lab_in.week_reference,
        creator_id=lab_in.created_by,
    )
    db.add(lab)
    db.commit()
    db.refresh(lab)
    log.info("Created lab %s", lab.lab_id)
    return _lab_out(lab, 0, [])


def update_lab_logic(db: Session, lab_id: int, lab_in: LabUpdate) -> LabOut:
    lab = _get_lab(db, lab_id)

    changes = lab_in.model_dump(exclude_unset=True)
    for required in ("title", "description", "instructions"):
        if required in changes and changes[required] is not None and not changes[required].strip():
            raise InvalidInputException(f"{required.capitalize()} cannot be empty")
    for key, value in changes.items():
        if value is None and key not in NULLABLE_LAB_FIELDS:
            continue
        setattr(lab, key, value)
    lab.updated_at = datetime.now()
    db.commit()
    db.refresh(lab)
    return get_lab_logic(db, lab_id)


def delete_lab_logic(db: Session, lab_id: int) -> Dict[str, str]:
    lab = _get_lab(db, lab_id)
    db.delete(lab)
    db.commit()
    log.info("Deleted lab %s", lab_id)
    return {"message": "Virtual lab deleted successfully"}


def list_lab_attempts_logic(db: Session, lab_id: int, user_id: Optional[int] = None) -> LabAttemptsOut:
    """Attempts on a lab, newest first, optionally for one user."""
    _get_lab(db, lab_id)
    query = db.query(LabAttempt).options(joinedload(LabAttempt.user)).filter(LabAttempt.lab_id == lab_id)
    if user_id is not None:
        query = query.filter(LabAttempt.user_id == user_id)
    attempts = query.order_by(LabAttempt.created_at.desc(), LabAttempt.attempt_id.desc()).all()
    return LabAttemptsOut(
        lab_id=lab_id,
        attempts=[
            LabAttemptListItem(
                **_attempt_brief(a).model_dump(),
                user=LabAttemptUser(user_id=a.user.user_id, username=a.user.username, name=a.user.name),
            )
            for a in attempts
        ],
    )
