"""
Outbound invitation email.

Posts a JSON message to the configured mail API. When no API URL or key is
configured the message is logged instead, which is the normal dev setup.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from apphub.config import get_settings
from apphub.events.domain_events import DomainEvent, InvitationCreatedEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html_body: str


def build_invitation_email(
    *, email: str, role: str, registration_link: str, site_name: str, ttl_days: int = 7
) -> EmailMessage:
    link = html.escape(registration_link, quote=True)
    name = html.escape(site_name)
    body = (
        f"<h2>Welcome to {name}!</h2>"
        f"<p>You have been invited to join {name} with the role of {html.escape(role)}.</p>"
        "<p>Click the link below to complete your registration:</p>"
        f'<a href="{link}">{link}</a>'
        f"<p>This invitation will expire in {ttl_days} days.</p>"
    )
    return EmailMessage(to=email, subject=f"Invitation to Join {site_name}", html_body=body)


class MailClient:
    def __init__(
        self,
        *,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        from_address: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ):
        settings = get_settings()
        self.api_url = api_url if api_url is not None else settings.MAIL_API_URL
        self.api_key = api_key if api_key is not None else settings.MAIL_API_KEY
        self.from_address = from_address or settings.MAIL_FROM_ADDRESS
        self.timeout_s = timeout_s or settings.MAIL_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    def send(self, message: EmailMessage) -> bool:
        """Return True when the mail API accepted the message."""
        if not self.configured:
            logger.info(
                "Mail API not configured; email to %s (%s):\n%s",
                message.to,
                message.subject,
                message.html_body,
            )
            return False

        payload = {
            "from": {"address": self.from_address},
            "to": [{"email_address": {"address": message.to}}],
            "subject": message.subject,
            "htmlbody": message.html_body,
        }
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "authorization": self.api_key,
        }
        with httpx.Client(timeout=self.timeout_s) as client:
            resp = client.post(self.api_url, json=payload, headers=headers)
        resp.raise_for_status()
        logger.info("Email queued for %s", message.to)
        return True


class InvitationMailer:
    """Sends the invitation email when an invitation is created."""

    def __init__(
        self,
        client: Optional[MailClient] = None,
        site_name: Optional[Callable[[], str]] = None,
    ):
        self.client = client or MailClient()
        self._site_name = site_name or (lambda: get_settings().DEFAULT_SITE_NAME)

    def __call__(self, event: DomainEvent) -> None:
        if not isinstance(event, InvitationCreatedEvent):
            return
        message = build_invitation_email(
            email=event.email,
            role=event.role,
            registration_link=event.registration_link,
            site_name=self._site_name(),
            ttl_days=get_settings().INVITATION_TTL_DAYS,
        )
        try:
            self.client.send(message)
        except httpx.HTTPError as exc:
            logger.error("Sending invitation email to %s failed: %s", event.email, exc)
