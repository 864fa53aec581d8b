"""
Live site settings shared by request handlers.

`SiteContext.start()` loads the stored settings and subscribes to
`SettingsUpdatedEvent`, so later updates replace the snapshot without another
database read; `stop()` drops the subscription. The API keeps one instance on
`app.state` and hands it to handlers through a dependency.
"""

from __future__ import annotations

import logging
from threading import RLock
from typing import Callable, ContextManager, Optional

from sqlalchemy.orm import Session

from apphub.events.domain_events import DomainEvent, SettingsUpdatedEvent
from apphub.events.event_bus import EventBus, Subscription
from apphub.system.service import SettingsService, SiteSettings

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


class SiteContext:
    def __init__(self, event_bus: EventBus, session_factory: SessionFactory):
        self.event_bus = event_bus
        self.session_factory = session_factory
        self._lock = RLock()
        self._settings: Optional[SiteSettings] = None
        self._subscription: Optional[Subscription] = None

    @property
    def started(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def start(self) -> "SiteContext":
        with self._lock:
            if self.started:
                return self
            self._subscription = self.event_bus.subscribe(
                SettingsUpdatedEvent, self._on_settings_updated
            )
            self.reload()
        return self

    def stop(self) -> None:
        with self._lock:
            if self._subscription is not None:
                self._subscription.unsubscribe()
                self._subscription = None

    def reload(self) -> SiteSettings:
        try:
            with self.session_factory() as session:
                snapshot = SettingsService(session).get()
        except Exception as exc:
            logger.warning("Loading site settings failed, using defaults: %s", exc)
            snapshot = SiteSettings.defaults()
        with self._lock:
            self._settings = snapshot
        return snapshot

    @property
    def settings(self) -> SiteSettings:
        with self._lock:
            if self._settings is not None:
                return self._settings
        return self.reload()

    def _on_settings_updated(self, event: DomainEvent) -> None:
        if not isinstance(event, SettingsUpdatedEvent):
            return
        snapshot = SiteSettings.model_validate(event.settings)
        with self._lock:
            self._settings = snapshot
        logger.info("Site settings updated (event %s)", event.event_id)
