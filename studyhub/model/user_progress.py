from sqlalchemy import Column, String, ForeignKey, DateTime, Integer, Float
from sqlalchemy.orm import relationship
from studyhub.database.base_class import Base
from datetime import datetime


class UserProgress(Base):
    __tablename__ = "user_progress"

    # PK (user_id, category, metric)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True, index=True)
    category = Column(String(50), primary_key=True)
    metric = Column(String(100), primary_key=True)

    # attributes
    value = Column(Float, nullable=False, default=0)
    last_updated = Column(DateTime, default=datetime.now, nullable=False)

    # relationship
    user = relationship("User", back_populates="progress")
