# Overview: Signed, time-limited identity tokens (JWT, HS256).

"""
Token Service

Issues and verifies identity tokens carrying only the subject (user id),
the issue instant and the expiry instant. There is no revocation list: a
token stays valid until it expires. Account deactivation is enforced by the
authentication gate, which re-reads the user on every request.

One instance is built in create_app from configuration and stored in
app.extensions; use get_token_service() from request code.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from ..errors import InvalidToken
from ..extensions import TOKEN_SERVICE_KEY


@dataclass(frozen=True)
class TokenPayload:
    subject_id: int
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """
    Examples
    --------
    >>> service = TokenService(secret_key="your-secret-key")
    >>> token = service.issue(42)
    >>> service.verify(token)
    42
    """

    DEFAULT_EXPIRE_HOURS = 24
    ALGORITHM = "HS256"

    def __init__(self, secret_key: str, expire_hours: int = DEFAULT_EXPIRE_HOURS):
        if not secret_key:
            msg = "JWT secret key cannot be empty"
            raise ValueError(msg)
        if expire_hours <= 0:
            msg = "Token lifetime must be positive"
            raise ValueError(msg)

        self._secret_key = secret_key
        self._lifetime = timedelta(hours=expire_hours)

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def issue(self, subject_id: int, now: datetime | None = None) -> str:
        """Create a token for subject_id expiring one lifetime after `now`."""
        issued_at = now or datetime.now(tz=timezone.utc)
        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)

        payload = {
            "sub": str(subject_id),
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.ALGORITHM)

    def decode(self, token: str) -> TokenPayload:
        """
        Verify signature and expiry and return the payload.

        Raises InvalidToken if the signature does not match, the payload is
        malformed, or the current time is at or past the expiry instant.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.ALGORITHM],
                options={"require": ["sub", "iat", "exp"]},
            )
            return TokenPayload(
                subject_id=int(payload["sub"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidToken("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidToken("Invalid token") from e
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidToken("Malformed token payload") from e

    def verify(self, token: str) -> int:
        """Return the subject id carried by a valid token."""
        return self.decode(token).subject_id


def get_token_service() -> TokenService:
    return current_app.extensions[TOKEN_SERVICE_KEY]
