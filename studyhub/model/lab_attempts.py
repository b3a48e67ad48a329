from sqlalchemy import Column, String, ForeignKey, DateTime, Integer, Float, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from studyhub.database.base_class import Base
from datetime import datetime

LAB_IN_PROGRESS = "in_progress"
LAB_COMPLETED = "completed"
LAB_FAILED = "failed"
LAB_STATUSES = (LAB_IN_PROGRESS, LAB_COMPLETED, LAB_FAILED)


class LabAttempt(Base):
    __tablename__ = "lab_attempts"
    __table_args__ = (
        # one row per user+lab, restarted in place
        UniqueConstraint("user_id", "lab_id", name="uq_lab_attempt_user_lab"),
    )

    attempt_id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # FK
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    lab_id = Column(Integer, ForeignKey("virtual_labs.lab_id", ondelete="CASCADE"), nullable=False)

    # attributes
    status = Column(String(20), nullable=False, default=LAB_IN_PROGRESS)
    started_at = Column(DateTime, nullable=False, default=datetime.now)
    completed_at = Column(DateTime, nullable=True)
    time_spent = Column(Integer, nullable=True)
    score = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    screenshots = Column(JSON, nullable=False, default=list)
    feedback = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

    # relationship
    user = relationship("User", back_populates="lab_attempts")
    lab = relationship("VirtualLab", back_populates="attempts")
