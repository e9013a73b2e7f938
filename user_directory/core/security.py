"""
Session token signing / verification and password hashing (bcrypt).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from user_directory.core.config import settings
from user_directory.core.exceptions import InvalidToken, TokenExpired
from user_directory.models.user import Role
from user_directory.schemas.token import SessionClaims

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    """Return ``False`` on mismatch or on a stored value that is not a hash."""
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── Session tokens ──────────────────────────────────────────────────
def build_claims(
    uuid: str,
    name: str,
    email: str,
    rol: Role,
    now: datetime | None = None,
) -> SessionClaims:
    issued = now or datetime.now(timezone.utc)
    return SessionClaims(
        uuid=uuid,
        name=name,
        email=email,
        rol=rol,
        expires=issued + timedelta(days=settings.TOKEN_EXPIRE_DAYS),
    )


def issue_token(claims: SessionClaims, secret: str | None = None) -> str:
    return jwt.encode(
        claims.model_dump(mode="json"),
        secret or settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(
    token: str,
    secret: str | None = None,
    now: datetime | None = None,
) -> SessionClaims:
    """Decode *token* into claims.

    Raises :class:`InvalidToken` for a bad signature or malformed payload
    and :class:`TokenExpired` once the ``expires`` claim has passed.  The
    expiry lives in the payload itself, not in the JWT ``exp`` field.
    """
    try:
        payload = jwt.decode(
            token,
            secret or settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
        claims = SessionClaims.model_validate(payload)
    except (JWTError, ValidationError) as exc:
        raise InvalidToken() from exc

    expires = claims.expires
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    if expires < (now or datetime.now(timezone.utc)):
        raise TokenExpired()
    return claims
