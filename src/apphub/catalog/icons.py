"""
Icon enrichment for catalog apps that were saved without an icon.

Depending on ICON_ENRICHMENT_MODE an icon is derived from the app URL host
("favicon") or scraped from the target page ("scrape"); a derived icon is
written back to the catalog. Any failure falls back to the host favicon for
the current response only, so visibility resolution never fails because of
enrichment.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional
from urllib.parse import quote, urlparse

from sqlalchemy.orm import Session

from apphub.config import get_settings
from apphub.integrations.metadata import MetadataClient

logger = logging.getLogger(__name__)


def favicon_for_url(url: Optional[str], *, template: Optional[str] = None) -> Optional[str]:
    host = urlparse(url or "").hostname
    if not host:
        return None
    template = template or get_settings().FAVICON_SERVICE_URL
    return template.format(host=quote(host))


class IconEnricher:
    def __init__(
        self,
        session: Session,
        *,
        mode: Optional[str] = None,
        metadata_client: Optional[MetadataClient] = None,
    ) -> None:
        settings = get_settings()
        self.session = session
        self.mode = (mode or settings.ICON_ENRICHMENT_MODE or "favicon").strip().lower()
        self.favicon_template = settings.FAVICON_SERVICE_URL
        self._metadata_client = metadata_client

    @property
    def metadata_client(self) -> MetadataClient:
        if self._metadata_client is None:
            self._metadata_client = MetadataClient()
        return self._metadata_client

    def derive_icon(self, url: str) -> Optional[str]:
        if self.mode == "scrape":
            metadata = self.metadata_client.fetch(url)
            if metadata.icon or metadata.image:
                return metadata.icon or metadata.image
        return favicon_for_url(url, template=self.favicon_template)

    def enrich(self, apps: Iterable[Any]) -> None:
        if self.mode == "off":
            return

        enriched = []
        for app in apps:
            if app.icon or not app.url:
                continue
            try:
                icon = self.derive_icon(app.url)
            except Exception as exc:
                logger.warning("Icon enrichment failed for %s: %s", app.url, exc)
                # Only in-memory: the fallback is recomputed on the next read.
                self._set_transient_icon(app, favicon_for_url(app.url, template=self.favicon_template))
                continue
            if icon:
                app.icon = icon
                enriched.append((app, icon))

        if not enriched:
            return
        try:
            self.session.commit()
        except Exception as exc:
            self.session.rollback()
            logger.warning("Persisting enriched icons failed: %s", exc)
            for app, icon in enriched:
                self._set_transient_icon(app, icon)

    def _set_transient_icon(self, app: Any, icon: Optional[str]) -> None:
        if hasattr(app, "_sa_instance_state") and app in self.session:
            # Load any expired columns, then detach so the fallback is never flushed.
            self.session.refresh(app)
            self.session.expunge(app)
        app.icon = icon
