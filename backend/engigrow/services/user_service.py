import logging
import re
from typing import Iterable, List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from engigrow.core.errors import (
    DuplicateIdentity,
    InvalidCredentials,
    NotFound,
    StorageFailure,
    ValidationError,
)
from engigrow.core.security import get_password_hash, verify_password
from engigrow.models.user import User

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
PASSWORD_SYMBOLS = "@$!%*?&"

# One lowercase, one uppercase, one digit, one symbol; nothing outside that alphabet
_PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$",
    re.ASCII,
)


def validate_password_policy(password: str) -> None:
    """Raise ValidationError unless ``password`` satisfies the password policy"""
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValidationError(
            f"Password must not exceed {PASSWORD_MAX_LENGTH} characters")
    if not _PASSWORD_PATTERN.match(password):
        raise ValidationError(
            "Password must contain at least one uppercase letter, one lowercase letter, "
            f"one number, and one special character ({PASSWORD_SYMBOLS})"
        )


def normalize_email(email: str) -> str:
    """Canonical identity key: trimmed and lowercased"""
    return (email or "").strip().lower()


def _clean_interests(interests: Iterable[str]) -> List[str]:
    return [tag.strip() for tag in interests if tag and tag.strip()]


class UserService:
    """Credential store: registration and password verification."""

    @staticmethod
    def get_by_identity(db: Session, email: str) -> Optional[User]:
        return db.get(User, normalize_email(email))

    @staticmethod
    def register(
        db: Session,
        name: str,
        institution: str,
        interests: Iterable[str],
        email: str,
        raw_password: str,
    ) -> User:
        """Create a user, storing only a bcrypt hash of the password"""
        name = (name or "").strip()
        institution = (institution or "").strip()
        email = normalize_email(email)
        tags = _clean_interests(interests or [])

        if not name or not institution or not email or not tags or not raw_password:
            raise ValidationError("All fields are required.")
        validate_password_policy(raw_password)

        # Explicit check gives a clear error before hitting the unique constraint
        if UserService.get_by_identity(db, email) is not None:
            raise DuplicateIdentity("Email is already registered.")

        user = User(
            email=email,
            name=name,
            institution=institution,
            interests=tags,
            hashed_password=get_password_hash(raw_password),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Two registrations for the same email raced past the check above
            db.rollback()
            raise DuplicateIdentity("Email is already registered.")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to store user {email}: {str(e)}")
            raise StorageFailure(f"Database error: {str(e)}")
        db.refresh(user)

        logger.info(f"Registered user {email}")
        return user

    @staticmethod
    def verify(db: Session, email: str, raw_password: str) -> User:
        """Return the user whose password matches, or raise"""
        user = UserService.get_by_identity(db, email)
        if user is None:
            raise NotFound("User not found.")
        if not verify_password(raw_password or "", user.hashed_password):
            logger.warning(f"Failed login for {user.email}")
            raise InvalidCredentials("Invalid credentials")
        return user


user_service = UserService()
