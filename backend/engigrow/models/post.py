from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from engigrow.core.database import Base


class Post(Base):
    """
    Post model for the social feed.

    A post owns its comment thread and its like set; neither has a table of
    its own. ``comments`` is append-only and kept in insertion order.
    ``liked_by`` holds each user identity at most once and ``like_count``
    always equals ``len(liked_by)``.
    """
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    body = Column(Text, nullable=False)
    # Display name captured at creation, not a reference to the user row
    author = Column(String, nullable=False)
    author_email = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    # [{"user": email, "username": name, "text": ..., "timestamp": iso}, ...]
    comments = Column(JSON, nullable=False, default=list)
    like_count = Column(Integer, nullable=False, default=0)
    liked_by = Column(JSON, nullable=False, default=list)
