from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from apphub.config import get_settings
from apphub.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from apphub.security.auth.models import User, UserCredential
from apphub.security.auth.passwords import (
    hash_password,
    needs_rehash,
    validate_password,
    verify_password,
)
from apphub.security.roles import Role, normalize_role

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "An account with this email already exists."


def normalize_email(email: Optional[str]) -> str:
    value = (email or "").strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValidationError("A valid email address is required", field="email")
    return value


class AuthService:
    def __init__(self, session: Session):
        self.session = session
        self.password_min_length = get_settings().PASSWORD_MIN_LENGTH

    def get_user(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return (
            self.session.query(User)
            .filter(func.lower(User.email) == email.strip().lower())
            .first()
        )

    def super_admin_exists(self) -> bool:
        return (
            self.session.query(User.id)
            .filter(User.role == Role.SUPER_ADMIN.value)
            .first()
            is not None
        )

    def create_user(
        self,
        *,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        role: str = Role.USER.value,
    ) -> User:
        email = normalize_email(email)
        role = normalize_role(role)
        validate_password(password, min_length=self.password_min_length)
        if self.find_by_email(email):
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE, email=email)

        user = User(
            email=email,
            display_name=(display_name or "").strip() or None,
            role=role,
            is_active=True,
            is_email_verified=False,
            token_version=0,
            created_at=datetime.utcnow(),
        )
        self.session.add(user)
        self.session.flush()

        self.session.add(UserCredential(user_id=user.id, password_hash=hash_password(password)))
        self.session.flush()
        logger.info("Created user %s with role %s", user.id, role)
        return user

    def create_super_admin(
        self, *, email: str, password: str, display_name: Optional[str] = None
    ) -> User:
        if self.super_admin_exists():
            raise ConflictError("Super admin already exists")
        return self.create_user(
            email=email,
            password=password,
            display_name=display_name,
            role=Role.SUPER_ADMIN.value,
        )

    def authenticate(self, *, email: str, password: str) -> User:
        user = self.find_by_email(email or "")
        if not user or not user.is_active:
            raise AuthenticationError()

        cred = self.session.get(UserCredential, user.id)
        if not cred or not verify_password(password or "", cred.password_hash):
            raise AuthenticationError()
        if needs_rehash(cred.password_hash):
            cred.password_hash = hash_password(password)
            self.session.flush()
        return user

    def revoke_tokens(self, user_id: int) -> User:
        user = self.get_user(user_id)
        user.token_version = int(user.token_version or 0) + 1
        self.session.flush()
        return user

    def set_password(self, user_id: int, password: str) -> None:
        validate_password(password, min_length=self.password_min_length)
        user = self.get_user(user_id)
        cred = self.session.get(UserCredential, user.id)
        if not cred:
            self.session.add(UserCredential(user_id=user.id, password_hash=hash_password(password)))
        else:
            cred.password_hash = hash_password(password)
        self.session.flush()

    def update_profile(
        self,
        user_id: int,
        *,
        display_name: Optional[str] = None,
        email: Optional[str] = None,
        new_password: Optional[str] = None,
        confirm_password: Optional[str] = None,
    ) -> User:
        user = self.get_user(user_id)

        if new_password:
            if new_password != confirm_password:
                raise ValidationError("Passwords do not match", field="confirm_password")
            validate_password(new_password, min_length=self.password_min_length)

        if display_name is not None and display_name.strip() != (user.display_name or ""):
            user.display_name = display_name.strip() or None

        if email is not None:
            new_email = normalize_email(email)
            if new_email != user.email:
                other = self.find_by_email(new_email)
                if other and other.id != user.id:
                    raise ConflictError(DUPLICATE_EMAIL_MESSAGE, email=new_email)
                user.email = new_email
                user.is_email_verified = False

        if new_password:
            self.set_password(user.id, new_password)
            # Other sessions must sign in again with the new password.
            user.token_version = int(user.token_version or 0) + 1

        self.session.flush()
        return user

    def list_users(self) -> List[User]:
        return self.session.query(User).order_by(User.created_at.asc(), User.id.asc()).all()

    def change_role(self, user_id: int, role: str) -> User:
        user = self.get_user(user_id)
        user.role = normalize_role(role)
        self.session.flush()
        return user

    def delete_user(self, user_id: int) -> None:
        from apphub.subscriptions.models import UserSubscription

        user = self.get_user(user_id)
        self.session.query(UserSubscription).filter(UserSubscription.user_id == user.id).delete(
            synchronize_session=False
        )
        cred = self.session.get(UserCredential, user.id)
        if cred is not None:
            self.session.delete(cred)
            self.session.flush()
        self.session.delete(user)
        self.session.flush()
