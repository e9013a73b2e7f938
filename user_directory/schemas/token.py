"""Pydantic schema for the claims carried inside a session token."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from user_directory.models.user import Role


class SessionClaims(BaseModel):
    uuid: str
    name: str
    email: str
    rol: Role
    expires: datetime
