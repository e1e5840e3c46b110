"""
Security utilities for Plan Mensual de Jornales.

JWT access tokens are signed with python-jose; passwords are hashed with
bcrypt directly. Secrets and lifetimes come from the settings singleton.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from app.config import get_settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Password helpers
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check *plain* against a stored bcrypt hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("verify_password: stored hash is not a valid bcrypt hash")
        return False


# ---------------------------------------------------------------------------
# JWT helpers
# ---------------------------------------------------------------------------


def create_access_token(sub: str, claims: dict[str, Any] | None = None) -> str:
    """Create a signed JWT access token.

    Args:
        sub: Subject claim, the user's primary key as text.
        claims: Extra claims to embed (e.g. ``email``, ``rol``).

    Returns:
        A compact JWT string valid for ``JWT_EXPIRATION_MINUTES``.
    """
    settings = get_settings()
    ahora = datetime.now(timezone.utc)
    payload = dict(claims or {})
    payload.update(
        sub=sub,
        iat=ahora,
        exp=ahora + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES),
    )
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT access token.

    Raises:
        ValueError: If the token is invalid, expired, or cannot be decoded.
                    Callers map this to an HTTP 401 response.
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        logger.debug("JWT verification failed: %s", exc)
        raise ValueError("Token inválido o expirado") from exc
