"""Pydantic schemas for User CRUD."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from user_directory.models.user import Role


class UserCreate(BaseModel):
    # Missing fields arrive as "" so the service reports them uniformly.
    name: str = ""
    email: str = ""
    password: str = ""
    rol: Role = Role.USER

    @field_validator("name", "email")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()


class UserLogin(BaseModel):
    email: str = ""
    password: str = ""


class UserUpdate(BaseModel):
    """Only ``name`` and ``rol`` are writable; anything else is dropped."""

    name: str | None = None
    rol: Role | None = None

    model_config = {"extra": "ignore"}


class UserRead(BaseModel):
    uuid: str
    name: str
    email: str

    model_config = {"from_attributes": True}


class ActionResponse(BaseModel):
    success: bool
    message: str
