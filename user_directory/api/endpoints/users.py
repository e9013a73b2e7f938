"""
User endpoints — registration, login and account management.

- POST /users/ and POST /users/login are public.
- Everything else requires a session token in the ``Authorization``
  header; what the caller may do is decided by the user service.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from user_directory.api.deps import get_current_claims, get_user_service
from user_directory.core.config import settings
from user_directory.schemas.token import SessionClaims
from user_directory.schemas.user import (
    ActionResponse,
    UserCreate,
    UserLogin,
    UserRead,
    UserUpdate,
)
from user_directory.services.user_service import UserService

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    service: UserService = Depends(get_user_service),
) -> UserRead:
    """Register a new account."""
    return await service.create_user(body.name, body.email, body.password, body.rol)


@router.post("/login", response_class=PlainTextResponse)
@router.post("/login/", response_class=PlainTextResponse, include_in_schema=False)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_user(
    request: Request,
    body: UserLogin,
    service: UserService = Depends(get_user_service),
) -> PlainTextResponse:
    """Exchange email + password for a session token (returned as plain text)."""
    token = await service.login_user(body.email, body.password)
    return PlainTextResponse(token)


@router.get("/", response_model=list[UserRead])
async def list_users(
    claims: SessionClaims = Depends(get_current_claims),
    service: UserService = Depends(get_user_service),
) -> list[UserRead]:
    return await service.list_users(claims)


@router.get("/{uuid}", response_model=UserRead)
async def get_user(
    uuid: str,
    claims: SessionClaims = Depends(get_current_claims),
    service: UserService = Depends(get_user_service),
) -> UserRead:
    return await service.get_user(uuid, claims)


@router.put("/{uuid}", response_model=UserRead)
async def update_user(
    uuid: str,
    body: UserUpdate,
    claims: SessionClaims = Depends(get_current_claims),
    service: UserService = Depends(get_user_service),
) -> UserRead:
    """Change name and/or role. Other fields in the body are ignored."""
    return await service.update_user(uuid, body, claims)


@router.patch("/active/{uuid}", response_model=ActionResponse)
async def activate_user(
    uuid: str,
    claims: SessionClaims = Depends(get_current_claims),
    service: UserService = Depends(get_user_service),
) -> ActionResponse:
    await service.activate_user(uuid, claims)
    return ActionResponse(success=True, message="User activated")


@router.patch("/deactive/{uuid}", response_model=ActionResponse)
async def deactivate_user(
    uuid: str,
    claims: SessionClaims = Depends(get_current_claims),
    service: UserService = Depends(get_user_service),
) -> ActionResponse:
    await service.deactivate_user(uuid, claims)
    return ActionResponse(success=True, message="User deactivated")


@router.delete("/{uuid}", response_model=ActionResponse)
async def delete_user(
    uuid: str,
    claims: SessionClaims = Depends(get_current_claims),
    service: UserService = Depends(get_user_service),
) -> ActionResponse:
    await service.delete_user(uuid, claims)
    return ActionResponse(success=True, message="User deleted")
