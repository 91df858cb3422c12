from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from engigrow.core.database import Base


class User(Base):
    """
    User model representing registered students.

    The email is the user's identity: it is the primary key and never changes.
    Passwords are stored as hashes (never plaintext).
    """
    __tablename__ = "users"

    email = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    institution = Column(String, nullable=False)
    # Interest tags, e.g. ["robotics", "ml"]
    interests = Column(JSON, nullable=False, default=list)
    # Hashed with bcrypt by the credential store before the row is created
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
