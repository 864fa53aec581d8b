from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from apphub.api.dependencies.auth import (
    CurrentUser,
    get_current_user,
    get_event_bus,
    get_site_context,
)
from apphub.api.serializers import user_to_dict
from apphub.config import get_settings
from apphub.database import get_db
from apphub.events.event_bus import EventBus
from apphub.exceptions import AppHubException, PermissionError, ValidationError
from apphub.invitations.service import InvitationService
from apphub.security.auth.jwt import issue_access_token
from apphub.security.auth.models import User
from apphub.security.auth.service import AuthService
from apphub.system.site_context import SiteContext

router = APIRouter(prefix="/auth", tags=["Auth"])


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=1, max_length=200)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: Dict[str, Any]


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=1, max_length=200)
    confirm_password: Optional[str] = Field(default=None, max_length=200)
    display_name: Optional[str] = Field(default=None, max_length=200)


class InvitationRegisterRequest(RegisterRequest):
    token: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=200)


class ProfileUpdateRequest(BaseModel):
    display_name: Optional[str] = Field(default=None, max_length=200)
    email: Optional[str] = Field(default=None, max_length=200)
    new_password: Optional[str] = Field(default=None, max_length=200)
    confirm_password: Optional[str] = Field(default=None, max_length=200)


def _issue_token(user: User) -> LoginResponse:
    settings = get_settings()
    token = issue_access_token(
        user_id=user.id,
        secret=settings.JWT_SECRET_KEY,
        token_version=int(user.token_version or 0),
        role=user.role,
        ttl_seconds=settings.JWT_ACCESS_TOKEN_TTL_SECONDS,
    )
    return LoginResponse(
        access_token=token,
        expires_in=settings.JWT_ACCESS_TOKEN_TTL_SECONDS,
        user=user_to_dict(user),
    )


def _check_passwords_match(req: RegisterRequest) -> None:
    if req.confirm_password is not None and req.confirm_password != req.password:
        exc = ValidationError("Passwords do not match", field="confirm_password")
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())


@router.get("/setup", response_model=Dict[str, Any])
def setup_status(db: Session = Depends(get_db)) -> Dict[str, Any]:
    return {"needs_setup": not AuthService(db).super_admin_exists()}


@router.post("/setup", response_model=LoginResponse)
def setup(req: RegisterRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """Create the first super admin; refused once one exists."""
    _check_passwords_match(req)
    try:
        user = AuthService(db).create_super_admin(
            email=req.email, password=req.password, display_name=req.display_name
        )
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return _issue_token(user)


@router.post("/register", response_model=LoginResponse)
def register(
    req: RegisterRequest,
    db: Session = Depends(get_db),
    site: SiteContext = Depends(get_site_context),
) -> LoginResponse:
    if not site.settings.allow_user_registration:
        exc = PermissionError(action="register", resource="user")
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    _check_passwords_match(req)
    try:
        user = AuthService(db).create_user(
            email=req.email, password=req.password, display_name=req.display_name
        )
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return _issue_token(user)


@router.post("/register/invitation", response_model=LoginResponse)
def register_with_invitation(
    req: InvitationRegisterRequest,
    db: Session = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
) -> LoginResponse:
    _check_passwords_match(req)
    try:
        user = InvitationService(db, bus).accept(
            req.token,
            password=req.password,
            display_name=req.display_name,
            email=req.email,
        )
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return _issue_token(user)


@router.post("/login", response_model=LoginResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    try:
        user = AuthService(db).authenticate(email=req.email, password=req.password)
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return _issue_token(user)


@router.post("/logout", response_model=Dict[str, Any])
def logout(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    AuthService(db).revoke_tokens(user.id)
    db.commit()
    return {"ok": True}


@router.get("/me", response_model=Dict[str, Any])
def me(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        return user_to_dict(AuthService(db).get_user(user.id))
    except AppHubException as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())


@router.patch("/me", response_model=Dict[str, Any])
def update_profile(
    req: ProfileUpdateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        updated = AuthService(db).update_profile(
            user.id,
            display_name=req.display_name,
            email=req.email,
            new_password=req.new_password,
            confirm_password=req.confirm_password,
        )
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    result = user_to_dict(updated)
    if req.new_password:
        # The old token was revoked with the password change.
        result["access_token"] = _issue_token(updated).access_token
    return result
