"""Tests for the user directory service, driven directly over a session."""

import pytest
from sqlalchemy import func, select

from user_directory.core.exceptions import (
    EmailAlreadyExists,
    InvalidCredentials,
    PermissionDenied,
    RequiredFieldsError,
    UserNotFound,
)
from user_directory.core.security import verify_token
from user_directory.models.user import Role, User
from user_directory.schemas.user import UserUpdate
from user_directory.services.user_service import UserService


@pytest.fixture
def service(db_session) -> UserService:
    return UserService(db_session)


# ── create ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_create_user_hashes_password_and_projects(service, fetch_user):
    created = await service.create_user("a", "a@x.com", "p")
    assert set(created.model_dump()) == {"uuid", "name", "email"}

    stored = await fetch_user(created.uuid)
    assert stored.active is True
    assert stored.rol is Role.USER
    assert stored.password != "p"


@pytest.mark.asyncio
async def test_create_user_assigns_distinct_identifiers(service):
    first = await service.create_user("a", "a@x.com", "p")
    second = await service.create_user("b", "b@x.com", "p")
    assert first.uuid != second.uuid


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, email, password",
    [
        ("", "a@x.com", "p"),
        ("a", "", "p"),
        ("a", "a@x.com", ""),
        ("  ", "a@x.com", "p"),
        ("a", "  ", "p"),
        ("a", "a@x.com", "   "),
    ],
)
async def test_create_user_requires_all_fields(service, name, email, password):
    with pytest.raises(RequiredFieldsError):
        await service.create_user(name, email, password)


@pytest.mark.asyncio
async def test_create_user_rejects_duplicate_email(service, db_session):
    await service.create_user("a", "a@x.com", "p")
    with pytest.raises(EmailAlreadyExists):
        await service.create_user("other", "a@x.com", "q")

    count = await db_session.scalar(select(func.count()).select_from(User))
    assert count == 1


# ── login ───────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_login_issues_token_for_matching_user(service):
    created = await service.create_user("a", "a@x.com", "p", Role.SUPERADMIN)
    claims = verify_token(await service.login_user("a@x.com", "p"))
    assert claims.uuid == created.uuid
    assert claims.rol is Role.SUPERADMIN


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "email, password",
    [("wrong@x.com", "p"), ("a@x.com", "wrong"), ("", "p"), ("a@x.com", "")],
)
async def test_login_failures_are_indistinguishable(service, email, password):
    await service.create_user("a", "a@x.com", "p")
    with pytest.raises(InvalidCredentials) as exc_info:
        await service.login_user(email, password)
    assert exc_info.value.message == "User or password incorrect"


# ── update ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_update_applies_only_name_and_role(service, make_user, make_claims, fetch_user, superadmin):
    user = await make_user("b@x.com", name="before")
    patch = UserUpdate.model_validate(
        {
            "name": "after",
            "rol": "SUPERADMIN",
            "uuid": "hijack",
            "email": "hijack@x.com",
            "password": "hijack",
            "active": False,
        }
    )
    admin = make_claims(superadmin.uuid, superadmin.email, Role.SUPERADMIN)

    updated = await service.update_user(user.uuid, patch, admin)
    assert updated.uuid == user.uuid
    assert updated.email == "b@x.com"

    stored = await fetch_user(user.uuid)
    assert stored.name == "after"
    assert stored.rol is Role.SUPERADMIN
    assert stored.active is True
    assert stored.password == user.password


@pytest.mark.asyncio
async def test_user_updating_someone_else_gets_not_found(service, make_user, make_claims):
    target = await make_user("target@x.com")
    me = make_claims("me", "me@x.com")
    with pytest.raises(UserNotFound):
        await service.update_user(target.uuid, UserUpdate(name="x"), me)


@pytest.mark.asyncio
async def test_user_can_update_self(service, make_user, make_claims):
    me = await make_user("me@x.com")
    updated = await service.update_user(me.uuid, UserUpdate(name="new"), make_claims(me.uuid, me.email))
    assert updated.name == "new"


@pytest.mark.asyncio
async def test_update_with_empty_name_is_rejected(service, make_user, make_claims):
    me = await make_user("me@x.com")
    with pytest.raises(RequiredFieldsError):
        await service.update_user(me.uuid, UserUpdate(name=" "), make_claims(me.uuid, me.email))


# ── activate / deactivate / delete ─────────────────────────────────
@pytest.mark.asyncio
async def test_user_cannot_delete_even_missing_target(service, make_claims):
    with pytest.raises(PermissionDenied):
        await service.delete_user("does-not-exist", make_claims("me", "me@x.com"))


@pytest.mark.asyncio
async def test_admin_delete_missing_target_is_not_found(service, make_claims, superadmin):
    admin = make_claims(superadmin.uuid, superadmin.email, Role.SUPERADMIN)
    with pytest.raises(UserNotFound):
        await service.delete_user("does-not-exist", admin)


@pytest.mark.asyncio
async def test_user_can_deactivate_self_but_not_activate(service, make_user, make_claims, fetch_user):
    me = await make_user("me@x.com")
    claims = make_claims(me.uuid, me.email)

    await service.deactivate_user(me.uuid, claims)
    assert (await fetch_user(me.uuid)).active is False

    with pytest.raises(PermissionDenied):
        await service.activate_user(me.uuid, claims)


# ── read / list ─────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_visibility_depends_on_role(service, make_user, make_claims, superadmin):
    active = await make_user("active@x.com")
    inactive = await make_user("inactive@x.com", active=False)
    user = make_claims("me", "me@x.com")
    admin = make_claims(superadmin.uuid, superadmin.email, Role.SUPERADMIN)

    assert (await service.get_user(active.uuid, user)).email == "active@x.com"
    with pytest.raises(UserNotFound):
        await service.get_user(inactive.uuid, user)
    assert (await service.get_user(inactive.uuid, admin)).email == "inactive@x.com"

    user_view = {u.email for u in await service.list_users(user)}
    admin_view = {u.email for u in await service.list_users(admin)}
    assert user_view == {"active@x.com", superadmin.email}
    assert admin_view == {"active@x.com", "inactive@x.com", superadmin.email}


@pytest.mark.asyncio
async def test_inactive_caller_cannot_read_own_record(service, make_user, make_claims):
    me = await make_user("me@x.com", active=False)
    with pytest.raises(UserNotFound):
        await service.get_user(me.uuid, make_claims(me.uuid, me.email))


@pytest.mark.asyncio
async def test_empty_listing_is_not_found(service, make_user, make_claims):
    await make_user("gone@x.com", active=False)
    with pytest.raises(UserNotFound):
        await service.list_users(make_claims("me", "me@x.com"))
