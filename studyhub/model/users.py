from sqlalchemy import Column, String, Boolean, DateTime, Integer
from sqlalchemy.orm import relationship
from studyhub.database.base_class import Base
from datetime import datetime


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    bio = Column(String(512), nullable=True)
    avatar = Column(String(512), nullable=True)
    study_points = Column(Integer, default=0, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    last_active = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    quizzes = relationship("Quiz", back_populates="creator")
    labs = relationship("VirtualLab", back_populates="creator")
    attempts = relationship("QuizAttempt", back_populates="user", cascade="all, delete-orphan")
    lab_attempts = relationship("LabAttempt", back_populates="user", cascade="all, delete-orphan")
    progress = relationship("UserProgress", back_populates="user", cascade="all, delete-orphan")
