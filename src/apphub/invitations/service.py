"""
Invitation Service
Token-based onboarding: create, validate, accept.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import List, Optional
from urllib.parse import urlencode
import uuid

from sqlalchemy.orm import Session

from apphub.config import get_settings
from apphub.events.domain_events import InvitationCreatedEvent
from apphub.events.event_bus import EventBus
from apphub.exceptions import InvitationError
from apphub.invitations.models import Invitation, InvitationStatus
from apphub.security.auth.models import User
from apphub.security.auth.service import AuthService, normalize_email
from apphub.security.roles import normalize_role

logger = logging.getLogger(__name__)


def generate_token() -> str:
    return secrets.token_urlsafe(24)


def build_registration_link(token: str, *, base_url: Optional[str] = None) -> str:
    base = (base_url or get_settings().PUBLIC_APP_URL).rstrip("/")
    return f"{base}/register?{urlencode({'token': token})}"


class InvitationService:
    def __init__(self, session: Session, event_bus: Optional[EventBus] = None):
        self.session = session
        self.event_bus = event_bus

    def list_invitations(self) -> List[Invitation]:
        return self.session.query(Invitation).order_by(Invitation.created_at.desc()).all()

    def create_invitation(
        self,
        *,
        email: str,
        role: str = "user",
        actor_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Invitation:
        now = now or datetime.utcnow()
        invitation = Invitation(
            id=str(uuid.uuid4()),
            email=normalize_email(email),
            role=normalize_role(role),
            token=generate_token(),
            status=InvitationStatus.PENDING.value,
            created_at=now,
            expires_at=now + timedelta(days=get_settings().INVITATION_TTL_DAYS),
        )
        self.session.add(invitation)
        self.session.commit()

        link = build_registration_link(invitation.token)
        logger.info("Invitation %s created for %s", invitation.id, invitation.email)
        if self.event_bus is not None:
            self.event_bus.publish(
                InvitationCreatedEvent(
                    invitation_id=invitation.id,
                    email=invitation.email,
                    role=invitation.role,
                    token=invitation.token,
                    registration_link=link,
                    expires_at=invitation.expires_at,
                    actor_id=actor_id,
                )
            )
        return invitation

    def validate_token(self, token: Optional[str], *, now: Optional[datetime] = None) -> Invitation:
        """
        Return the pending invitation for `token`.

        Raises InvitationError with reason missing_token, not_found,
        already_used or expired. A pending invitation found past its expiry
        is marked expired.
        """
        if not token or not token.strip():
            raise InvitationError(InvitationError.MISSING_TOKEN)

        invitation = (
            self.session.query(Invitation).filter(Invitation.token == token.strip()).first()
        )
        if invitation is None:
            raise InvitationError(InvitationError.NOT_FOUND)
        if invitation.status == InvitationStatus.ACCEPTED.value:
            raise InvitationError(InvitationError.ALREADY_USED, invitation_id=invitation.id)
        if invitation.status == InvitationStatus.EXPIRED.value:
            raise InvitationError(InvitationError.EXPIRED, invitation_id=invitation.id)

        now = now or datetime.utcnow()
        if invitation.expires_at < now:
            invitation.status = InvitationStatus.EXPIRED.value
            self.session.commit()
            raise InvitationError(InvitationError.EXPIRED, invitation_id=invitation.id)
        return invitation

    def accept(
        self,
        token: Optional[str],
        *,
        password: str,
        display_name: Optional[str] = None,
        email: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> User:
        invitation = self.validate_token(token, now=now)
        if email is not None and normalize_email(email) != invitation.email:
            raise InvitationError(InvitationError.EMAIL_MISMATCH, invitation_id=invitation.id)

        user = AuthService(self.session).create_user(
            email=invitation.email,
            password=password,
            display_name=display_name,
            role=invitation.role,
        )
        invitation.status = InvitationStatus.ACCEPTED.value
        invitation.accepted_at = now or datetime.utcnow()
        self.session.commit()
        logger.info("Invitation %s accepted by user %s", invitation.id, user.id)
        return user
