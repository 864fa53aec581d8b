from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import httpx
import pytest

from apphub.events.domain_events import InvitationCreatedEvent
from apphub.events.listeners import register_listeners
from apphub.exceptions import InvitationError
from apphub.invitations.mailer import InvitationMailer, MailClient, build_invitation_email
from apphub.invitations.models import Invitation
from apphub.invitations.service import InvitationService, build_registration_link


def test_create_invitation_sets_token_expiry_and_publishes(session, event_bus):
    received = []
    event_bus.subscribe(InvitationCreatedEvent, received.append)
    now = datetime(2024, 1, 1, 12, 0, 0)

    invitation = InvitationService(session, event_bus).create_invitation(
        email="New@Example.com", role="admin", now=now
    )

    assert invitation.status == "pending"
    assert invitation.email == "new@example.com"
    assert invitation.expires_at == now + timedelta(days=7)
    assert len(invitation.token) >= 20
    assert len(received) == 1
    assert received[0].registration_link.endswith(f"/register?token={invitation.token}")


def test_tokens_are_unique(session):
    service = InvitationService(session)
    tokens = {service.create_invitation(email=f"u{i}@example.com").token for i in range(5)}
    assert len(tokens) == 5


def test_registration_link():
    assert build_registration_link("abc", base_url="https://hub.example.com/") == (
        "https://hub.example.com/register?token=abc"
    )


@pytest.mark.parametrize("token", [None, "", "   "])
def test_validate_missing_token(session, token):
    with pytest.raises(InvitationError) as exc:
        InvitationService(session).validate_token(token)
    assert exc.value.reason == InvitationError.MISSING_TOKEN
    assert exc.value.message == "Invalid invitation link"


def test_validate_unknown_token(session):
    with pytest.raises(InvitationError) as exc:
        InvitationService(session).validate_token("nope")
    assert exc.value.reason == InvitationError.NOT_FOUND
    assert exc.value.status_code == 404


def test_validate_expired_marks_invitation(session):
    service = InvitationService(session)
    created = datetime(2024, 1, 1)
    invitation = service.create_invitation(email="late@example.com", now=created)

    assert service.validate_token(invitation.token, now=created + timedelta(days=6)).id == (
        invitation.id
    )
    with pytest.raises(InvitationError) as exc:
        service.validate_token(invitation.token, now=created + timedelta(days=8))
    assert exc.value.reason == InvitationError.EXPIRED

    session.expire_all()
    assert session.get(Invitation, invitation.id).status == "expired"
    with pytest.raises(InvitationError) as exc:
        service.validate_token(invitation.token, now=created)
    assert exc.value.message == "Invitation has expired"


def test_accept_creates_user_with_invited_role(session):
    service = InvitationService(session)
    invitation = service.create_invitation(email="join@example.com", role="admin")

    user = service.accept(
        invitation.token, password="secret1", display_name="Joiner", email="JOIN@example.com"
    )

    assert user.role == "admin"
    assert user.email == "join@example.com"
    assert session.get(Invitation, invitation.id).status == "accepted"
    with pytest.raises(InvitationError) as exc:
        service.accept(invitation.token, password="secret1")
    assert exc.value.reason == InvitationError.ALREADY_USED
    assert exc.value.message == "Invitation has already been used"


def test_accept_rejects_other_email(session):
    service = InvitationService(session)
    invitation = service.create_invitation(email="right@example.com")
    with pytest.raises(InvitationError) as exc:
        service.accept(invitation.token, password="secret1", email="wrong@example.com")
    assert exc.value.reason == InvitationError.EMAIL_MISMATCH
    assert session.get(Invitation, invitation.id).status == "pending"


def test_invitation_email_content():
    message = build_invitation_email(
        email="x@example.com",
        role="admin",
        registration_link="https://hub.test/register?token=t&x=1",
        site_name="Acme Hub",
    )
    assert message.subject == "Invitation to Join Acme Hub"
    assert "with the role of admin" in message.html_body
    assert 'href="https://hub.test/register?token=t&amp;x=1"' in message.html_body
    assert "expire in 7 days" in message.html_body


def test_mail_client_logs_when_unconfigured(caplog):
    client = MailClient(api_url="", api_key="")
    with caplog.at_level("INFO"):
        sent = client.send(build_invitation_email(
            email="x@example.com", role="user", registration_link="l", site_name="S"
        ))
    assert sent is False
    assert "Mail API not configured" in caplog.text


def test_mail_client_posts_to_api():
    response = MagicMock()
    fake_http = MagicMock()
    fake_http.__enter__.return_value = fake_http
    fake_http.post.return_value = response

    client = MailClient(api_url="https://mail.test/send", api_key="key-1", from_address="hub@test")
    with patch("apphub.invitations.mailer.httpx.Client", return_value=fake_http):
        assert client.send(build_invitation_email(
            email="x@example.com", role="user", registration_link="l", site_name="S"
        ))

    args, kwargs = fake_http.post.call_args
    assert args[0] == "https://mail.test/send"
    assert kwargs["headers"]["authorization"] == "key-1"
    assert kwargs["json"]["to"][0]["email_address"]["address"] == "x@example.com"
    response.raise_for_status.assert_called_once()


def test_listener_sends_mail_on_invitation_created(session, event_bus, site_context):
    mail_client = MagicMock()
    subscriptions = register_listeners(event_bus, site_context=site_context, mail_client=mail_client)

    InvitationService(session, event_bus).create_invitation(email="new@example.com")

    message = mail_client.send.call_args[0][0]
    assert message.to == "new@example.com"
    assert message.subject == f"Invitation to Join {site_context.settings.display_name}"
    for sub in subscriptions:
        sub.unsubscribe()


def test_mail_failure_is_logged_not_raised(caplog):
    mail_client = MagicMock()
    mail_client.send.side_effect = httpx.ConnectError("refused")
    mailer = InvitationMailer(client=mail_client, site_name=lambda: "S")

    mailer(
        InvitationCreatedEvent(
            invitation_id="i",
            email="x@example.com",
            role="user",
            token="t",
            registration_link="l",
            expires_at=datetime(2030, 1, 1),
        )
    )
    assert "Sending invitation email to x@example.com failed" in caplog.text
