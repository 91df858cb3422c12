from sqlalchemy import Column, Integer, String, DateTime, Text
from engigrow.core.database import Base


class CollaborationRequest(Base):
    """An ad looking for project partners."""
    __tablename__ = "collaboration_requests"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    skills = Column(String, nullable=False)
    contact = Column(String, nullable=False)
    owner_email = Column(String, nullable=False)
    owner_name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
