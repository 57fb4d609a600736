"""
Role hierarchy and role checks for requesters.

Roles form a total order; a requester "has" a role when any of their roles
sits at or above it. Inactive users hold no roles at all.
"""

from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Union

from src.auth.schemas import AppUser


class Role(str, Enum):
    CUSTOMER = "customer"
    EDITOR = "editor"
    AGENT = "agent"
    DRIVER = "driver"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"
    DEV = "dev"


# Higher level = more permissions
ROLE_HIERARCHY = {
    Role.CUSTOMER.value: 0,
    Role.EDITOR.value: 1,
    Role.AGENT.value: 2,
    Role.DRIVER.value: 3,
    Role.ADMIN.value: 4,
    Role.SUPERADMIN.value: 5,
    Role.DEV.value: 6,
}


def validate_app_user(raw: Any) -> Optional[AppUser]:
    """Build an AppUser from a loosely shaped user mapping, or None if unusable"""
    if not isinstance(raw, Mapping):
        return None
    user_id = raw.get("id")
    if not isinstance(user_id, str):
        return None

    roles = raw.get("roles")
    if isinstance(roles, (list, tuple, set, frozenset)):
        roles = frozenset(role for role in roles if isinstance(role, str))
    else:
        roles = frozenset()

    is_active = raw.get("isActive", raw.get("is_active"))
    if not isinstance(is_active, bool):
        is_active = None

    return AppUser(id=user_id, roles=roles, is_active=is_active)


def coerce_requester(value: Union[AppUser, Mapping, str, None]) -> Optional[AppUser]:
    """Accept an AppUser, a user mapping or a bare role name"""
    if value is None or isinstance(value, AppUser):
        return value
    if isinstance(value, Role):
        return AppUser(id="anonymous", roles=frozenset({value.value}))
    if isinstance(value, str):
        return AppUser(id="anonymous", roles=frozenset({value})) if value else None
    return validate_app_user(value)


def _role_name(role: Union[Role, str]) -> str:
    return role.value if isinstance(role, Role) else role


def has_role(user: Optional[AppUser], min_role: Union[Role, str]) -> bool:
    if user is None or not user.roles:
        return False
    if user.is_active is False:
        return False

    min_level = ROLE_HIERARCHY[_role_name(min_role)]
    return any(
        ROLE_HIERARCHY.get(role, -1) >= min_level
        for role in user.roles
    )


def has_exact_role(user: Optional[AppUser], role: Union[Role, str]) -> bool:
    if user is None or not user.roles:
        return False
    if user.is_active is False:
        return False
    return _role_name(role) in user.roles


def has_any_role(user: Optional[AppUser], roles: Iterable[Union[Role, str]]) -> bool:
    if user is None or not user.roles:
        return False
    if user.is_active is False:
        return False
    return any(_role_name(role) in user.roles for role in roles)
