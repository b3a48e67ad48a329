from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, Integer, Text, JSON
from sqlalchemy.orm import relationship
from studyhub.database.base_class import Base
from datetime import datetime


class VirtualLab(Base):
    __tablename__ = "virtual_labs"

    lab_id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # FK
    creator_id = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    # attributes
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=False, default="general")
    difficulty = Column(String(50), nullable=False, default="intermediate")
    estimated_time = Column(Integer, nullable=False, default=60)  # minutes
    instructions = Column(Text, nullable=False, default="")
    objectives = Column(JSON, nullable=True)
    prerequisites = Column(JSON, nullable=True)
    resources = Column(JSON, nullable=True)
    week_reference = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # relationship
    creator = relationship("User", back_populates="labs")
    attempts = relationship("LabAttempt", back_populates="lab", cascade="all, delete-orphan")
