"""
FastAPI dependencies — database session, session-token guard, service.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from user_directory.core.exceptions import NotAuthenticated
from user_directory.core.security import verify_token
from user_directory.db.session import Database
from user_directory.schemas.token import SessionClaims
from user_directory.services.user_service import UserService


# ── Database session ────────────────────────────────────────────────
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_claims(
    authorization: Optional[str] = Header(default=None),
) -> SessionClaims:
    """Decode the raw ``Authorization`` header value (no ``Bearer`` prefix).

    No header at all is a 401; a header that does not verify, or whose
    claims have expired, is a 403.
    """
    if not authorization:
        raise NotAuthenticated()
    return verify_token(authorization)
