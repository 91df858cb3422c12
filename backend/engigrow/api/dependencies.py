import logging
from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from engigrow.core.config import settings
from engigrow.core.database import get_db
from engigrow.core.errors import IdentityNotFound, MissingToken
from engigrow.core.security import token_service
from engigrow.models.user import User
from engigrow.services.user_service import user_service

logger = logging.getLogger(__name__)

# OAuth2 password bearer scheme - extracts token from "Authorization: Bearer <token>"
# auto_error=False so a missing header reaches us as None instead of a generic 401
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the request's bearer token to a registered user.

    Used as a dependency on every protected route. Any failure raises a
    domain error which the error handlers turn into a 401/403 response,
    so the route handler never runs.
    """
    if token is None:
        raise MissingToken("Access denied. No token provided.")

    # Raises MalformedToken / ExpiredToken
    claims = token_service.verify(token)

    # The user may have been removed after the token was issued
    user = user_service.get_by_identity(db, claims.identity)
    if user is None:
        logger.warning(f"Token presented for unknown user {claims.identity}")
        raise IdentityNotFound("User not found.")

    return user


async def get_optional_post_author(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Access gate for /newpost.

    Anonymous posting is allowed unless NEWPOST_REQUIRES_AUTH is set.
    A token that is sent is always checked.
    """
    if token is None and not settings.NEWPOST_REQUIRES_AUTH:
        return None
    return await get_current_user(token, db)
