from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from engigrow.core.config import settings
from engigrow.core.errors import ExpiredToken, MalformedToken, MissingToken

# CryptContext handles password hashing using bcrypt
# bcrypt salts every hash, so the same password never hashes the same way twice
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using constant-time comparison"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    return pwd_context.hash(password)


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims carried by a verified session token."""

    identity: str
    name: str
    email: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """Issues and verifies signed, stateless session tokens.

    The server keeps no session state: a token is valid as long as its
    signature checks out and it has not expired.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        if not secret_key:
            raise ValueError("TokenService requires a signing key")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    def issue(self, user, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT for ``user`` with identity, name and email claims"""
        issued_at = datetime.now(timezone.utc)
        if expires_delta is None:
            expires_delta = timedelta(minutes=self._expire_minutes)

        # 'sub' is the JWT standard subject claim; our subject is the email
        to_encode = {
            "sub": user.email,
            "name": user.name,
            "email": user.email,
            "iat": issued_at,
            "exp": issued_at + expires_delta,
        }
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> TokenClaims:
        """Decode and verify a JWT, raising a typed error on failure"""
        if not token:
            raise MissingToken("Access denied. No token provided.")

        try:
            payload = jwt.decode(token, self._secret_key,
                                 algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise ExpiredToken("Token has expired.")
        except JWTError:
            # Tampered, signed with another key, or not a JWT at all
            raise MalformedToken("Invalid token.")

        identity = payload.get("sub")
        if not identity or "exp" not in payload:
            raise MalformedToken("Invalid token.")

        issued_at = payload.get("iat", payload["exp"])
        return TokenClaims(
            identity=identity,
            name=payload.get("name", ""),
            email=payload.get("email", identity),
            issued_at=datetime.fromtimestamp(issued_at, timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], timezone.utc),
        )


token_service = TokenService(
    settings.SECRET_KEY,
    algorithm=settings.ALGORITHM,
    expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
)
