"""
Authorization policy for the user directory.

Two kinds of decision live here:

* :func:`authorize` rejects a caller outright (``PermissionDenied``) for
  operations that are off-limits to their role.
* :func:`record_scope` narrows which rows a permitted caller can reach.
  A non-admin reading users only sees active rows, and a non-admin
  updating only matches their own row.  Rows outside the scope simply
  do not resolve, so the caller gets ``UserNotFound`` instead of a
  permission error.

| operation  | SUPERADMIN | USER                          |
|------------|------------|-------------------------------|
| create     | yes        | yes (no token needed)         |
| login      | yes        | yes (no token needed)         |
| read/list  | all rows   | active rows only              |
| update     | any row    | own row (uuid + email match)  |
| activate   | yes        | denied                        |
| deactivate | yes        | own uuid only                 |
| delete     | yes        | denied                        |
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from user_directory.core.exceptions import NotAuthenticated, PermissionDenied
from user_directory.models.user import Role
from user_directory.schemas.token import SessionClaims


class Operation(str, enum.Enum):
    CREATE = "create"
    LOGIN = "login"
    READ = "read"
    LIST = "list"
    UPDATE = "update"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    DELETE = "delete"


_PUBLIC_OPERATIONS = frozenset({Operation.CREATE, Operation.LOGIN})


@dataclass(frozen=True)
class RecordScope:
    """Extra filters a query must carry for the current caller."""

    active_only: bool = False
    owner_email: str | None = None


UNRESTRICTED = RecordScope()


def _is_privileged(role: Role) -> bool:
    if role is Role.SUPERADMIN:
        return True
    if role is Role.USER:
        return False
    raise ValueError(f"Unhandled role: {role!r}")


def is_superadmin(claims: SessionClaims | None) -> bool:
    return claims is not None and _is_privileged(claims.rol)


def authorize(
    claims: SessionClaims | None,
    operation: Operation,
    target_uuid: str | None = None,
) -> None:
    """Raise unless *claims* may attempt *operation* on *target_uuid*."""
    if operation in _PUBLIC_OPERATIONS:
        return
    if claims is None:
        raise NotAuthenticated()
    if is_superadmin(claims):
        return

    if operation in (Operation.READ, Operation.LIST, Operation.UPDATE):
        return
    if operation is Operation.DEACTIVATE:
        if target_uuid is not None and target_uuid == claims.uuid:
            return
        raise PermissionDenied()
    if operation in (Operation.ACTIVATE, Operation.DELETE):
        raise PermissionDenied()
    raise ValueError(f"Unhandled operation: {operation!r}")


def record_scope(claims: SessionClaims | None, operation: Operation) -> RecordScope:
    """Return the row filter that applies to *claims* for *operation*."""
    if claims is None or is_superadmin(claims):
        return UNRESTRICTED

    if operation in (Operation.READ, Operation.LIST):
        return RecordScope(active_only=True)
    if operation is Operation.UPDATE:
        return RecordScope(owner_email=claims.email)
    if operation in _PUBLIC_OPERATIONS or operation in (
        Operation.ACTIVATE,
        Operation.DEACTIVATE,
        Operation.DELETE,
    ):
        return UNRESTRICTED
    raise ValueError(f"Unhandled operation: {operation!r}")
