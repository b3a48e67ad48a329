from sqlalchemy import Column, Boolean, ForeignKey, DateTime, Integer, Text
from sqlalchemy.orm import relationship
from studyhub.database.base_class import Base
from datetime import datetime


class QuizResponse(Base):
    __tablename__ = "quiz_responses"

    response_id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # FK
    attempt_id = Column(Integer, ForeignKey("quiz_attempts.attempt_id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.question_id", ondelete="CASCADE"), nullable=False)

    # attributes
    user_answer = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False)
    points_earned = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.now)

    # relationship
    attempt = relationship("QuizAttempt", back_populates="responses")
    question = relationship("Question")
