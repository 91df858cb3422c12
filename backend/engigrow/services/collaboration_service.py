import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Query, Session
from engigrow.core.database import commit_or_raise
from engigrow.core.errors import ValidationError
from engigrow.models.collaboration import CollaborationRequest
from engigrow.models.user import User

logger = logging.getLogger(__name__)


class CollaborationService:
    """Create and list requests for project partners"""

    @staticmethod
    def create(
        db: Session,
        owner: User,
        title: str,
        description: str,
        skills: str,
        contact: str,
    ) -> CollaborationRequest:
        fields = {
            "title": (title or "").strip(),
            "description": (description or "").strip(),
            "skills": (skills or "").strip(),
            "contact": (contact or "").strip(),
        }
        if not all(fields.values()):
            raise ValidationError("All fields are required")

        request = CollaborationRequest(
            **fields,
            owner_email=owner.email,
            owner_name=owner.name,
            created_at=datetime.now(timezone.utc),
        )
        db.add(request)
        commit_or_raise(db, "create collaboration request")
        db.refresh(request)

        logger.info(f"Collaboration request {request.id} added by {owner.email}")
        return request

    @staticmethod
    def list_recent(db: Session) -> Query:
        """All collaboration requests, newest first"""
        return db.query(CollaborationRequest).order_by(
            CollaborationRequest.created_at.desc(), CollaborationRequest.id.desc()
        )


collaboration_service = CollaborationService()
