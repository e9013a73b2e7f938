"""
User model — accounts, roles and the active flag.
"""

from __future__ import annotations

import enum
import uuid as uuid_lib
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, String

from user_directory.db.base import Base


class Role(str, enum.Enum):
    """Closed set of roles; SUPERADMIN dominates USER everywhere."""

    USER = "USER"
    SUPERADMIN = "SUPERADMIN"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    uuid: str = Column(  # type: ignore[assignment]
        String(36),
        primary_key=True,
        default=lambda: str(uuid_lib.uuid4()),
    )
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    rol: Role = Column(  # type: ignore[assignment]
        Enum(Role, name="user_role", native_enum=False, length=20),
        nullable=False,
        default=Role.USER,
    )
    active: bool = Column(Boolean, nullable=False, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )
