import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext

from backoffice.errors import ConfigurationError, ForbiddenError, UnauthorizedError

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_BYTES = 40
RESET_TOKEN_BYTES = 32


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """Spend the time of a real verification when there is no hash to check."""
    pwd_context.dummy_verify()


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def validate_password(password: str) -> tuple[bool, str | None]:
    """
    Validate password meets requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one number
    - At least one symbol

    Returns: (is_valid, error_message)
    """
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"

    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"

    if not re.search(r"[a-z]", password):
        return False, "Password must contain at least one lowercase letter"

    if not re.search(r"\d", password):
        return False, "Password must contain at least one number"

    if not re.search(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?~`]", password):
        return False, "Password must contain at least one symbol"

    return True, None


class TokenSigner:
    """Issues signed access tokens and opaque refresh and reset tokens."""

    def __init__(
        self,
        secret_key: str | None,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 15,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_ttl = timedelta(minutes=access_token_expire_minutes)

    @classmethod
    def from_settings(cls, settings) -> "TokenSigner":
        return cls(
            secret_key=settings.secret_key,
            algorithm=settings.algorithm,
            access_token_expire_minutes=settings.access_token_expire_minutes,
        )

    def _require_secret(self) -> str:
        if not self.secret_key:
            raise ConfigurationError("SECRET_KEY is not configured")
        return self.secret_key

    def create_access_token(self, user: Any) -> str:
        """Create a JWT access token bound to the user's id, role and department."""
        secret = self._require_secret()
        now = utcnow()
        claims = {
            "sub": str(user.id),
            "id": user.id,
            "department_id": user.department_id,
            "role_id": user.role_id,
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": now + self.access_token_ttl,
            # Two tokens minted for the same user within one second must differ.
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(claims, secret, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> dict[str, Any]:
        """
        Decode and verify an access token.

        Raises:
            UnauthorizedError: If the token has expired.
            ForbiddenError: If the signature, claims or token type are invalid.
        """
        secret = self._require_secret()
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Token has expired")
        except jwt.InvalidTokenError:
            raise ForbiddenError("Invalid or expired token")

        if payload.get("type") != ACCESS_TOKEN_TYPE or payload.get("id") is None:
            raise ForbiddenError("Invalid or expired token")
        return payload

    @staticmethod
    def create_refresh_token() -> str:
        """Create an opaque refresh token: 40 random bytes, hex-encoded."""
        return secrets.token_hex(REFRESH_TOKEN_BYTES)

    @staticmethod
    def create_reset_token() -> str:
        """Create an opaque password reset token: 32 random bytes, hex-encoded."""
        return secrets.token_hex(RESET_TOKEN_BYTES)
