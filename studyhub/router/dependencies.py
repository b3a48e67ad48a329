from typing import Optional

from fastapi import Query

from studyhub.config import settings


def get_scoring_policy() -> str:
    """Scoring policy applied to submissions; overridable per app or test."""
    return settings.SCORING_POLICY


def get_optional_user_id(user_id: Optional[int] = Query(None, ge=1)) -> Optional[int]:
    return user_id
