import base64
from contextlib import contextmanager

import pytest

from apphub.events.domain_events import SettingsUpdatedEvent
from apphub.exceptions import ValidationError
from apphub.system.service import (
    SettingsService,
    SiteSettings,
    encode_site_icon,
    validate_site_icon,
)
from apphub.system.site_context import SiteContext


def test_defaults_when_nothing_saved(session):
    settings = SettingsService(session).get()
    assert settings.allow_user_registration is True
    assert settings.maintenance_mode is False
    assert settings.show_support_email is True
    assert settings.welcome_message == "Welcome to our site!"
    assert settings.display_name == "MyAppHub"


def test_update_merges_and_publishes(session, event_bus):
    received = []
    event_bus.subscribe(SettingsUpdatedEvent, received.append)
    service = SettingsService(session, event_bus)

    service.update({"site_name": "Acme", "maintenance_mode": True}, actor_id=1)
    snapshot = service.update({"welcome_message": "Hi", "site_name": None})

    assert snapshot.site_name == "Acme"
    assert snapshot.maintenance_mode is True
    assert snapshot.welcome_message == "Hi"
    assert [e.settings["site_name"] for e in received] == ["Acme", "Acme"]
    assert received[0].actor_id == 1


def test_site_icon_is_stored_as_data_uri(session):
    snapshot = SettingsService(session).set_site_icon(b"\x89PNG", "image/png")
    assert snapshot.site_icon == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()

    cleared = SettingsService(session).update({"site_icon": None})
    assert cleared.site_icon is None


@pytest.mark.parametrize(
    "content, content_type",
    [(b"hello", "text/plain"), (b"", "image/png"), (b"x" * 11, "image/png"), (b"x", None)],
)
def test_site_icon_validation(content, content_type):
    with pytest.raises(ValidationError):
        encode_site_icon(content, content_type, max_bytes=10)


@pytest.mark.parametrize(
    "value",
    [
        "javascript:alert(1)",
        "https://cdn.example.com/icon.png",
        "data:text/html;base64,PGI+aGk8L2I+",
        "data:image/png;base64," + base64.b64encode(b"x" * 11).decode(),
    ],
)
def test_validate_site_icon_rejects_non_image_uris(value):
    with pytest.raises(ValidationError) as exc:
        validate_site_icon(value, max_bytes=10)
    assert exc.value.details["field"] == "site_icon"


def test_update_rejects_bad_site_icon_and_keeps_old_one(session):
    service = SettingsService(session)
    stored = service.set_site_icon(b"\x89PNG", "image/png").site_icon
    assert validate_site_icon(stored, max_bytes=10) == stored
    with pytest.raises(ValidationError):
        service.update({"site_icon": "javascript:alert(1)"})
    assert service.get().site_icon == stored


def test_site_context_follows_updates_until_stopped(session, event_bus, site_context):
    assert site_context.started
    assert site_context.settings.display_name == "MyAppHub"

    SettingsService(session, event_bus).update({"site_name": "Live"})
    assert site_context.settings.site_name == "Live"

    site_context.stop()
    assert not site_context.started
    SettingsService(session, event_bus).update({"site_name": "Ignored"})
    assert site_context.settings.site_name == "Live"


def test_site_context_start_is_idempotent(event_bus, scoped_session):
    ctx = SiteContext(event_bus, scoped_session)
    ctx.start()
    ctx.start()
    assert event_bus.subscriber_count(SettingsUpdatedEvent) == 1
    ctx.stop()
    assert event_bus.subscriber_count(SettingsUpdatedEvent) == 0


def test_site_context_falls_back_to_defaults(event_bus, caplog):
    @contextmanager
    def broken_factory():
        raise RuntimeError("db down")
        yield  # pragma: no cover

    ctx = SiteContext(event_bus, broken_factory).start()
    assert ctx.settings == SiteSettings.defaults()
    assert "db down" in caplog.text
    ctx.stop()
