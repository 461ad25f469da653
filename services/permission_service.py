"""
Authorization decisions.

Pure functions over an already-loaded user and resource owner id; nothing
here touches the database. Ownership and role checks combine with OR: an
owner can always act on their own resource, anyone else needs one of the
allowed permissions. Resources without an owner (permission changes, the
user list) go through ``require_permission`` alone.
"""

from typing import Iterable
from core.exceptions import Forbidden
from models.users import User, Permission


PERMISSION_UPDATE_ROLES = frozenset({Permission.ADMIN, Permission.PERMISSIONUPDATE})
USER_LIST_ROLES = frozenset({Permission.ADMIN, Permission.PERMISSIONUPDATE})
ITEM_UPDATE_ROLES = frozenset({Permission.ADMIN, Permission.ITEMUPDATE})
ITEM_DELETE_ROLES = frozenset({Permission.ADMIN, Permission.ITEMDELETE})
ORDER_READ_ROLES = frozenset({Permission.ADMIN})
RECONCILE_ROLES = frozenset({Permission.ADMIN})


def _values(permissions: Iterable) -> set[str]:
    return {Permission(p).value for p in permissions}


def has_permission(user: User, allowed: Iterable[Permission]) -> bool:
    return bool(_values(user.permissions or []) & _values(allowed))


def require_permission(user: User, allowed: Iterable[Permission]) -> None:
    allowed = _values(allowed)
    if not has_permission(user, allowed):
        raise Forbidden(
            "You do not have sufficient permissions",
            required=sorted(allowed),
            held=sorted(_values(user.permissions or [])),
        )


def is_owner(owner_id: int | None, user: User) -> bool:
    return owner_id is not None and owner_id == user.id


def require_owner_or_permission(owner_id: int | None, user: User, allowed: Iterable[Permission]) -> None:
    if is_owner(owner_id, user):
        return
    require_permission(user, allowed)
