from sqlalchemy import Column, String, ForeignKey, Integer, Text, JSON
from sqlalchemy.orm import relationship
from studyhub.database.base_class import Base


class Question(Base):
    __tablename__ = "questions"

    question_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.quiz_id", ondelete="CASCADE"), nullable=False, index=True)

    # attributes
    question_text = Column(Text, nullable=False)
    question_type = Column(String(50), nullable=False, default="multiple_choice")
    options = Column(JSON, nullable=True)
    correct_answer = Column(String(512), nullable=False)
    explanation = Column(Text, nullable=True)
    points = Column(Integer, nullable=False, default=1)
    order_index = Column(Integer, nullable=False, default=0)

    # relationship
    quiz = relationship("Quiz", back_populates="questions")
