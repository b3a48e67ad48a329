from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studyhub.exceptions import ConflictException, ForbiddenException, InvalidInputException, NotFoundException
from studyhub.log import get_logger
from studyhub.model.users import User
from studyhub.schema.user_schema import UserAccountOut, UserCreate, UserOut, UsersOut, UserUpdate

log = get_logger(__name__)


def _user_out(user: User) -> UserOut:
    return UserOut(
        user_id=user.user_id,
        username=user.username,
        name=user.name,
        bio=user.bio,
        avatar=user.avatar,
        study_points=user.study_points,
        created_at=user.created_at,
    )


def _account_out(user: User) -> UserAccountOut:
    return UserAccountOut(
        **_user_out(user).model_dump(),
        email=user.email,
        is_public=user.is_public,
        last_active=user.last_active,
    )


def get_user_details_logic(db: Session, user_id: int) -> UserOut:
    """Get the public profile of a user."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundException("User not found")
    if not user.is_public:
        raise ForbiddenException("Profile is private")

    return _user_out(user)


def list_users_logic(db: Session) -> UsersOut:
    """Public users ordered by study points, highest first (leaderboard)."""
    users = (
        db.query(User)
        .filter(User.is_public.is_(True))
        .order_by(User.study_points.desc(), User.user_id.asc())
        .all()
    )
    return UsersOut(users=[_user_out(u) for u in users])


def create_user_logic(db: Session, user_in: UserCreate) -> UserAccountOut:
    username = (user_in.username or "").strip()
    name = (user_in.name or "").strip()
    email = (user_in.email or "").strip()
    if not username or not name or not email:
        raise InvalidInputException("Username, name, and email are required")

    existing = db.query(User.user_id).filter(or_(User.username == username, User.email == email)).first()
    if existing:
        raise ConflictException("User with this username or email already exists")

    user = User(
        username=username,
        name=name,
        email=email,
        bio=user_in.bio or None,
        avatar=user_in.avatar or None,
        is_public=user_in.is_public,
        study_points=0,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictException("User with this username or email already exists") from e
    db.refresh(user)
    log.info("Created user %s (%s)", user.user_id, username)
    return _account_out(user)


def update_user_logic(db: Session, user_id: int, user_in: UserUpdate) -> UserAccountOut:
    """Update the editable profile fields; username, email and points are not editable here."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundException("User not found")

    changes = user_in.model_dump(exclude_unset=True)
    if "name" in changes and not (changes["name"] or "").strip():
        raise InvalidInputException("Name cannot be empty")
    if changes.get("is_public") is None:
        changes.pop("is_public", None)
    for key, value in changes.items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return _account_out(user)
