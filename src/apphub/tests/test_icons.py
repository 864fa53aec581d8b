from unittest.mock import MagicMock
from types import SimpleNamespace

from apphub.catalog.icons import IconEnricher, favicon_for_url
from apphub.catalog.models import App
from apphub.exceptions import MetadataFetchError
from apphub.integrations.metadata import PageMetadata

TEMPLATE = "https://icons.test/{host}.png"


def _store_app(session, app_id, url, icon=None):
    app = App(
        id=app_id,
        name=app_id,
        description="d",
        url=url,
        icon=icon,
        categories=[],
        allowed_roles=["user"],
        is_active=True,
    )
    session.add(app)
    session.commit()
    return app


def _enricher(session, mode, client=None):
    enricher = IconEnricher(session, mode=mode, metadata_client=client)
    enricher.favicon_template = TEMPLATE
    return enricher


def test_favicon_for_url():
    assert favicon_for_url("https://a.example.com/x", template=TEMPLATE) == (
        "https://icons.test/a.example.com.png"
    )
    assert favicon_for_url("not a url", template=TEMPLATE) is None


def test_favicon_mode_persists_derived_icon(session):
    app = _store_app(session, "a1", "https://tool.example.com")
    _enricher(session, "favicon").enrich([app])

    session.expire_all()
    assert session.get(App, "a1").icon == "https://icons.test/tool.example.com.png"


def test_existing_icon_is_left_alone(session):
    app = _store_app(session, "a1", "https://tool.example.com", icon="data:image/png;base64,AA")
    client = MagicMock()
    _enricher(session, "scrape", client).enrich([app])
    client.fetch.assert_not_called()
    assert app.icon == "data:image/png;base64,AA"


def test_scrape_mode_uses_page_icon_then_image(session):
    a = _store_app(session, "a", "https://a.example.com")
    b = _store_app(session, "b", "https://b.example.com")
    client = MagicMock()
    client.fetch.side_effect = [
        PageMetadata(icon="https://a.example.com/fav.ico"),
        PageMetadata(image="https://b.example.com/og.png"),
    ]
    _enricher(session, "scrape", client).enrich([a, b])

    session.expire_all()
    assert session.get(App, "a").icon == "https://a.example.com/fav.ico"
    assert session.get(App, "b").icon == "https://b.example.com/og.png"


def test_scrape_failure_falls_back_without_persisting(session, caplog):
    app = _store_app(session, "a1", "https://down.example.com")
    client = MagicMock()
    client.fetch.side_effect = MetadataFetchError("https://down.example.com", "refused")

    _enricher(session, "scrape", client).enrich([app])

    assert app.icon == "https://icons.test/down.example.com.png"
    assert "Icon enrichment failed" in caplog.text
    assert session.get(App, "a1").icon is None


def test_off_mode_does_nothing():
    app = SimpleNamespace(icon=None, url="https://x.example.com")
    IconEnricher(MagicMock(), mode="off").enrich([app])
    assert app.icon is None


def test_commit_failure_keeps_icons_for_response(caplog):
    session = MagicMock()
    session.commit.side_effect = RuntimeError("database is locked")
    session.__contains__.return_value = False
    app = SimpleNamespace(icon=None, url="https://x.example.com")

    _enricher(session, "favicon").enrich([app])

    session.rollback.assert_called_once()
    assert app.icon == "https://icons.test/x.example.com.png"
    assert "Persisting enriched icons failed" in caplog.text
