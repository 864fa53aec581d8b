from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from starlette.requests import Request
from sqlalchemy.orm import Session

from apphub.config import get_settings
from apphub.context import user_id_var
from apphub.database import get_db, get_db_session
from apphub.events.event_bus import EventBus
from apphub.exceptions import PermissionError
from apphub.security.auth.jwt import JWTError, read_access_token
from apphub.security.auth.models import User
from apphub.security.roles import Role
from apphub.system.site_context import SiteContext


@dataclass(frozen=True)
class CurrentUser:
    id: int
    email: str
    role: str
    display_name: Optional[str] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN.value


def _get_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization") or request.headers.get("Authorization")
    if not auth:
        return None
    parts = auth.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def get_current_user_optional(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[CurrentUser]:
    token = _get_bearer_token(request)
    if not token:
        return None

    settings = get_settings()
    try:
        claims = read_access_token(
            token, secret=settings.JWT_SECRET_KEY, leeway_seconds=settings.AUTH_LEEWAY_SECONDS
        )
    except JWTError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = db.get(User, claims.user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    # Logout and password changes bump the version; older tokens stop working.
    if claims.token_version != int(user.token_version or 0):
        raise HTTPException(status_code=401, detail="Token has been revoked")

    user_id_var.set(str(user.id))
    return CurrentUser(
        id=user.id,
        email=user.email,
        role=user.role,
        display_name=user.display_name,
    )


def get_current_user(
    user: Optional[CurrentUser] = Depends(get_current_user_optional),
) -> CurrentUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_super_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_super_admin:
        raise HTTPException(status_code=403, detail=PermissionError().to_dict())
    return user


def get_event_bus(request: Request) -> EventBus:
    bus = getattr(request.app.state, "event_bus", None)
    if bus is None:
        bus = EventBus()
        request.app.state.event_bus = bus
    return bus


def get_site_context(
    request: Request, bus: EventBus = Depends(get_event_bus)
) -> SiteContext:
    ctx = getattr(request.app.state, "site_context", None)
    if ctx is None:
        ctx = SiteContext(bus, get_db_session).start()
        request.app.state.site_context = ctx
    return ctx
