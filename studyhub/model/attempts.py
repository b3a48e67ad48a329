from sqlalchemy import Column, Boolean, ForeignKey, DateTime, Integer, Float, UniqueConstraint
from sqlalchemy.orm import relationship
from studyhub.database.base_class import Base
from datetime import datetime

IN_PROGRESS = "in_progress"
COMPLETED = "completed"


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        # concurrent starts for the same user+quiz cannot both take a number
        UniqueConstraint("user_id", "quiz_id", "attempt_number", name="uq_quiz_attempt_number"),
    )

    attempt_id = Column(Integer, index=True, primary_key=True, autoincrement=True)

    # FK
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.quiz_id", ondelete="CASCADE"), nullable=False, index=True)

    # attributes
    attempt_number = Column(Integer, nullable=False)
    started_at = Column(DateTime, nullable=False, default=datetime.now)
    completed_at = Column(DateTime, nullable=True)
    total_questions = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)
    score = Column(Float, nullable=True)
    is_passed = Column(Boolean, nullable=True)
    time_spent = Column(Integer, nullable=True)  # seconds
    created_at = Column(DateTime, default=datetime.now)

    # relationship
    user = relationship("User", back_populates="attempts")
    quiz = relationship("Quiz", back_populates="attempts")
    responses = relationship(
        "QuizResponse",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="QuizResponse.response_id",
    )

    @property
    def status(self) -> str:
        return COMPLETED if self.completed_at is not None else IN_PROGRESS
