"""
User directory service — CRUD and login over the ``users`` table.

Every operation takes the caller's decoded claims (``None`` for public
operations), asks :mod:`user_directory.core.policy` whether the caller
may proceed and which rows are in reach, then reads or writes through
the session it was constructed with.  Responses are always the public
projection (:class:`UserRead`); password hashes never leave this module.
"""

from __future__ import annotations

import logging
import uuid as uuid_lib

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from user_directory.core.config import settings
from user_directory.core.exceptions import (
    EmailAlreadyExists,
    InvalidCredentials,
    RequiredFieldsError,
    UserNotFound,
)
from user_directory.core.policy import Operation, RecordScope, authorize, record_scope
from user_directory.core.security import (
    build_claims,
    get_password_hash,
    issue_token,
    verify_password,
)
from user_directory.models.user import Role, User
from user_directory.schemas.token import SessionClaims
from user_directory.schemas.user import UserRead, UserUpdate

logger = logging.getLogger(__name__)


def _scoped(stmt, scope: RecordScope):
    if scope.active_only:
        stmt = stmt.where(User.active.is_(True))
    if scope.owner_email is not None:
        stmt = stmt.where(User.email == scope.owner_email)
    return stmt


class UserService:
    def __init__(self, db: AsyncSession, secret: str | None = None) -> None:
        self.db = db
        self.secret = secret or settings.JWT_SECRET

    # ── Lookups ─────────────────────────────────────────────────────
    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def _find(self, uuid: str, scope: RecordScope) -> User | None:
        stmt = _scoped(select(User).where(User.uuid == uuid), scope)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _require(self, uuid: str, scope: RecordScope) -> User:
        user = await self._find(uuid, scope)
        if user is None:
            raise UserNotFound()
        return user

    # ── Public operations ───────────────────────────────────────────
    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        rol: Role = Role.USER,
    ) -> UserRead:
        authorize(None, Operation.CREATE)
        if not name.strip() or not email.strip() or not password.strip():
            raise RequiredFieldsError()

        if await self.get_user_by_email(email) is not None:
            raise EmailAlreadyExists()

        user = User(
            uuid=str(uuid_lib.uuid4()),
            name=name,
            email=email,
            password=get_password_hash(password),
            rol=rol,
            active=True,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same email.
            await self.db.rollback()
            raise EmailAlreadyExists() from exc
        await self.db.refresh(user)
        logger.info("Created user %s (%s)", user.uuid, user.rol.value)
        return UserRead.model_validate(user)

    async def login_user(self, email: str, password: str) -> str:
        authorize(None, Operation.LOGIN)
        user = await self.get_user_by_email(email) if email and password else None
        if user is None or not verify_password(password, user.password):
            logger.info("Rejected login attempt")
            raise InvalidCredentials()

        claims = build_claims(user.uuid, user.name, user.email, user.rol)
        return issue_token(claims, self.secret)

    # ── Authenticated operations ────────────────────────────────────
    async def update_user(
        self,
        uuid: str,
        patch: UserUpdate,
        claims: SessionClaims,
    ) -> UserRead:
        authorize(claims, Operation.UPDATE, uuid)
        changes = {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None}
        if "name" in changes and not changes["name"].strip():
            raise RequiredFieldsError()

        user = await self._require(uuid, record_scope(claims, Operation.UPDATE))
        for field, value in changes.items():
            setattr(user, field, value)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("Updated user %s: %s", user.uuid, sorted(changes))
        return UserRead.model_validate(user)

    async def activate_user(self, uuid: str, claims: SessionClaims) -> None:
        authorize(claims, Operation.ACTIVATE, uuid)
        await self._set_active(uuid, True, record_scope(claims, Operation.ACTIVATE))

    async def deactivate_user(self, uuid: str, claims: SessionClaims) -> None:
        authorize(claims, Operation.DEACTIVATE, uuid)
        await self._set_active(uuid, False, record_scope(claims, Operation.DEACTIVATE))

    async def _set_active(self, uuid: str, active: bool, scope: RecordScope) -> None:
        user = await self._require(uuid, scope)
        user.active = active
        await self.db.commit()
        logger.info("User %s %s", uuid, "activated" if active else "deactivated")

    async def delete_user(self, uuid: str, claims: SessionClaims) -> None:
        authorize(claims, Operation.DELETE, uuid)
        user = await self._require(uuid, record_scope(claims, Operation.DELETE))
        await self.db.delete(user)
        await self.db.commit()
        logger.info("Deleted user %s", uuid)

    async def list_users(self, claims: SessionClaims) -> list[UserRead]:
        authorize(claims, Operation.LIST)
        stmt = _scoped(
            select(User).order_by(User.created_at, User.email),
            record_scope(claims, Operation.LIST),
        )
        result = await self.db.execute(stmt)
        users = result.scalars().all()
        if not users:
            raise UserNotFound("No users found")
        return [UserRead.model_validate(u) for u in users]

    async def get_user(self, uuid: str, claims: SessionClaims) -> UserRead:
        authorize(claims, Operation.READ, uuid)
        user = await self._require(uuid, record_scope(claims, Operation.READ))
        return UserRead.model_validate(user)
