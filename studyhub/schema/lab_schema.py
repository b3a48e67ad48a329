from pydantic import BaseModel, Field
from typing import Optional, List, Any, Literal
from datetime import datetime


class LabAttemptStart(BaseModel):
    user_id: Optional[int] = None


class LabSummary(BaseModel):
    lab_id: int
    title: str
    instructions: str
    objectives: Optional[List[Any]] = None
    resources: Optional[List[Any]] = None


class LabAttemptOut(BaseModel):
    attempt_id: int
    user_id: int
    lab_id: int
    status: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    time_spent: Optional[int] = None
    score: Optional[float] = None
    notes: Optional[str] = None
    screenshots: List[str] = []
    feedback: Optional[str] = None
    lab: LabSummary


class LabAttemptUpdate(BaseModel):
    status: Optional[Literal["in_progress", "completed", "failed"]] = None
    notes: Optional[str] = None
    screenshots: Optional[List[str]] = None
    feedback: Optional[str] = None
    score: Optional[float] = Field(default=None, ge=0, le=100)
    time_spent: Optional[int] = Field(default=None, ge=0)


class LabAttemptBrief(BaseModel):
    attempt_id: int
    user_id: int
    status: str
    score: Optional[float] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    time_spent: Optional[int] = None


class LabBase(BaseModel):
    lab_id: int
    creator_id: Optional[int] = None
    title: str
    description: str
    category: str
    difficulty: str
    estimated_time: int
    instructions: str
    objectives: Optional[List[Any]] = None
    prerequisites: Optional[List[Any]] = None
    resources: Optional[List[Any]] = None
    week_reference: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    attempt_count: int = 0


class LabOut(LabBase):
    attempts: List[LabAttemptBrief] = []


class LabsOut(BaseModel):
    labs: List[LabOut]


class LabCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    instructions: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    estimated_time: Optional[int] = Field(default=None, ge=1)
    objectives: Optional[List[Any]] = None
    prerequisites: Optional[List[Any]] = None
    resources: Optional[List[Any]] = None
    week_reference: Optional[str] = None
    created_by: Optional[int] = None


class LabUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    instructions: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    estimated_time: Optional[int] = Field(default=None, ge=1)
    objectives: Optional[List[Any]] = None
    prerequisites: Optional[List[Any]] = None
    resources: Optional[List[Any]] = None
    week_reference: Optional[str] = None
    is_active: Optional[bool] = None


class LabAttemptUser(BaseModel):
    user_id: int
    username: str
    name: str


class LabAttemptListItem(LabAttemptBrief):
    user: LabAttemptUser


class LabAttemptsOut(BaseModel):
    lab_id: int
    attempts: List[LabAttemptListItem]
