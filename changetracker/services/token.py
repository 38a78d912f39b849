"""
Access token service.

Sign-in happens elsewhere; this API only verifies the bearer tokens it
is handed. create_access_token() exists for the sign-in service and for
tests.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt

from changetracker.core.config import settings


class InvalidTokenError(Exception):
    """Token is malformed, expired, or not an access token."""


class TokenService:
    """JWT access token encode/decode."""

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        expire_minutes: int | None = None,
    ):
        self.secret_key = secret_key or settings.auth.secret_key
        self.algorithm = algorithm or settings.auth.algorithm
        self.expire_minutes = expire_minutes or settings.auth.access_token_expire_minutes

    def create_access_token(self, user_id: UUID) -> str:
        """Create JWT access token."""
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.expire_minutes)
        payload = {
            "sub": str(user_id),
            "exp": expire,
            "type": "access",
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> UUID:
        """
        Return the user id carried by an access token.

        Raises:
            InvalidTokenError: If the token cannot be trusted
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as exc:
            raise InvalidTokenError(str(exc)) from exc

        if payload.get("type") != "access":
            raise InvalidTokenError("Not an access token")

        subject = payload.get("sub")
        try:
            return UUID(str(subject))
        except ValueError as exc:
            raise InvalidTokenError("Invalid subject") from exc
