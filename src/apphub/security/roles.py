"""
Role names shared by account management, the app catalog and route guards.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List

from apphub.exceptions import PermissionError, ValidationError


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "superAdmin"


ALL_ROLES = tuple(r.value for r in Role)


def normalize_role(value: str, *, field: str = "role") -> str:
    raw = (value or "").strip()
    if raw not in ALL_ROLES:
        raise ValidationError(
            f"Unknown role: {value!r}; expected one of {', '.join(ALL_ROLES)}", field=field
        )
    return raw


def normalize_roles(values: Iterable[str], *, field: str = "allowed_roles") -> List[str]:
    seen: List[str] = []
    for value in values or []:
        role = normalize_role(value, field=field)
        if role not in seen:
            seen.append(role)
    return seen


def is_super_admin(role: str) -> bool:
    return role == Role.SUPER_ADMIN.value


def ensure_super_admin(role: str, *, action: str, resource: str) -> None:
    if not is_super_admin(role):
        raise PermissionError(action=action, resource=resource, role=role)
