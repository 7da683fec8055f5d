from __future__ import annotations

import time

import jwt

from .config import AuthConfig
from .types import UserContext


class AuthenticationFailure(Exception):
    """Bearer credential missing (401) or rejected (403)."""

    def __init__(self, message: str, http_status: int) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def verify_token(token: str | None, config: AuthConfig) -> UserContext:
    if not token:
        raise AuthenticationFailure("Access token required", 401)
    try:
        claims = jwt.decode(token, config.jwt_secret, algorithms=[config.algorithm])
    except jwt.PyJWTError as exc:
        raise AuthenticationFailure("Invalid or expired token", 403) from exc

    user_id = claims.get("userId", claims.get("sub"))
    if user_id is None:
        raise AuthenticationFailure("Invalid or expired token", 403)
    return UserContext(user_id=str(user_id), claims=claims)


def issue_token(user_id: str | int, config: AuthConfig, expires_in_seconds: int = 24 * 3600) -> str:
    """Mint a token in the shape :func:`verify_token` accepts (used by tooling and tests)."""
    now = int(time.time())
    payload = {"userId": user_id, "iat": now, "exp": now + expires_in_seconds}
    return jwt.encode(payload, config.jwt_secret, algorithm=config.algorithm)
