"""
Authentication business logic for Plan Mensual de Jornales.

Provides:
- ``authenticate_user`` — credential verification against the DB; the
  login name may be the username or the email.
- ``get_current_user`` — FastAPI dependency that extracts and validates
  the Bearer JWT from the ``Authorization`` header.
- ``asegurar_admin`` — creates the initial ADMIN account on startup.

The user's email is the identity used for department grants
(``jefes_acceso``) and stamped on plan versions.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.models.usuario import Usuario
from app.utils.constants import ROL_ADMIN
from app.utils.security import hash_password, verify_password, verify_token

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# OAuth2 scheme: ``tokenUrl`` must match the login endpoint path.
# ---------------------------------------------------------------------------

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


# ---------------------------------------------------------------------------
# Core authentication function
# ---------------------------------------------------------------------------


def authenticate_user(db: Session, login: str, password: str) -> Usuario | None:
    """Verify credentials against the database.

    Args:
        db: An active SQLAlchemy session (injected via ``get_db``).
        login: Username or email submitted by the client; emails are
               compared case-insensitively.
        password: The plain-text password submitted by the client.

    Returns:
        The ``Usuario`` ORM instance on success, or ``None`` on failure
        (unknown user, inactive account, or wrong password).
    """
    login = (login or "").strip()
    user: Usuario | None = (
        db.query(Usuario)
        .filter(
            or_(Usuario.username == login, func.lower(Usuario.email) == login.lower()),
            Usuario.activo.is_(True),
        )
        .first()
    )

    if user is None:
        logger.debug("authenticate_user: unknown or inactive user '%s'", login)
        return None

    if not verify_password(password, user.password_hash):
        logger.debug("authenticate_user: wrong password for user '%s'", login)
        return None

    user.ultimo_acceso = datetime.now(timezone.utc)
    db.commit()
    return user


# ---------------------------------------------------------------------------
# FastAPI dependency: current authenticated user
# ---------------------------------------------------------------------------


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> Usuario:
    """FastAPI dependency that resolves the caller's identity from a JWT.

    Args:
        token: Raw JWT string supplied by ``oauth2_scheme``.
        db: SQLAlchemy session supplied by ``get_db``.

    Returns:
        The authenticated ``Usuario`` ORM instance.

    Raises:
        HTTPException 401: If the token is missing, invalid, or expired,
                           or if the referenced user no longer exists or
                           has been deactivated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudo validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = verify_token(token)
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise credentials_exception

    user: Usuario | None = (
        db.query(Usuario)
        .filter(Usuario.id == user_id, Usuario.activo.is_(True))
        .first()
    )
    if user is None:
        raise credentials_exception
    return user


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


def asegurar_admin(db: Session) -> Usuario:
    """Create the ADMIN account from settings unless its email already exists."""
    settings = get_settings()
    email = settings.ADMIN_EMAIL.strip().lower()
    user = db.query(Usuario).filter(func.lower(Usuario.email) == email).first()
    if user is not None:
        return user

    user = Usuario(
        username=email.split("@")[0],
        email=email,
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        nombre_completo="Administrador",
        rol=ROL_ADMIN,
        activo=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("asegurar_admin: created admin user '%s'", email)
    return user
