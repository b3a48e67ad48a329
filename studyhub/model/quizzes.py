from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, Integer, Float, Text
from sqlalchemy.orm import relationship
from studyhub.database.base_class import Base
from datetime import datetime


class Quiz(Base):
    __tablename__ = "quizzes"

    quiz_id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # FK
    creator_id = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    # attributes
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=False, default="general")
    difficulty = Column(String(50), nullable=False, default="intermediate")
    week_reference = Column(String(50), nullable=True)
    time_limit = Column(Integer, nullable=True)  # minutes
    passing_score = Column(Float, nullable=False, default=70.0)
    max_attempts = Column(Integer, nullable=True)  # None means unbounded
    is_public = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    randomize_questions = Column(Boolean, default=True, nullable=False)
    show_correct_answers = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # relationship
    creator = relationship("User", back_populates="quizzes")
    questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.order_index",
    )
    attempts = relationship("QuizAttempt", back_populates="quiz", cascade="all, delete-orphan")
