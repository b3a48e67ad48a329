from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class UserOut(BaseModel):
    user_id: int
    username: str
    name: str
    bio: Optional[str] = None
    avatar: Optional[str] = None
    study_points: int
    created_at: datetime


class UsersOut(BaseModel):
    users: List[UserOut]


class UserAccountOut(UserOut):
    email: Optional[str] = None
    is_public: bool
    last_active: Optional[datetime] = None


class UserCreate(BaseModel):
    # presence is checked in the logic so all three are reported together
    username: Optional[str] = Field(default=None, max_length=50)
    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=512)
    avatar: Optional[str] = None
    is_public: bool = True


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=512)
    avatar: Optional[str] = None
    is_public: Optional[bool] = None


class ProgressMetric(BaseModel):
    category: str
    metric: str
    value: float
    last_updated: datetime


class UserProgressOut(BaseModel):
    user_id: int
    study_points: int
    progress: List[ProgressMetric]
