from __future__ import annotations

import base64
import binascii
import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from apphub.config import get_settings
from apphub.events.domain_events import SettingsUpdatedEvent
from apphub.events.event_bus import EventBus
from apphub.exceptions import ValidationError
from apphub.system.models import SETTINGS_ROW_ID, SystemSettings

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:(image/[A-Za-z0-9.+-]+);base64,([A-Za-z0-9+/=\s]+)$")


class SiteSettings(BaseModel):
    site_name: str = ""
    welcome_message: str = "Welcome to our site!"
    support_email: str = ""
    show_support_email: bool = True
    allow_user_registration: bool = True
    maintenance_mode: bool = False
    site_icon: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def defaults(cls) -> "SiteSettings":
        return cls(site_name=get_settings().DEFAULT_SITE_NAME)

    @classmethod
    def from_row(cls, row: SystemSettings) -> "SiteSettings":
        return cls(
            site_name=row.site_name or "",
            welcome_message=row.welcome_message or "",
            support_email=row.support_email or "",
            show_support_email=bool(row.show_support_email),
            allow_user_registration=bool(row.allow_user_registration),
            maintenance_mode=bool(row.maintenance_mode),
            site_icon=row.site_icon,
            updated_at=row.updated_at,
        )

    @property
    def display_name(self) -> str:
        return self.site_name or get_settings().DEFAULT_SITE_NAME


class SettingsUpdate(BaseModel):
    site_name: Optional[str] = Field(default=None, max_length=200)
    welcome_message: Optional[str] = None
    support_email: Optional[str] = Field(default=None, max_length=200)
    show_support_email: Optional[bool] = None
    allow_user_registration: Optional[bool] = None
    maintenance_mode: Optional[bool] = None
    site_icon: Optional[str] = None


def encode_site_icon(content: bytes, content_type: Optional[str], *, max_bytes: int) -> str:
    """Encode an uploaded image as an inline data URI."""
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if not mime.startswith("image/"):
        raise ValidationError("Site icon must be an image", field="site_icon")
    if not content:
        raise ValidationError("Site icon is empty", field="site_icon")
    if len(content) > max_bytes:
        raise ValidationError(
            f"Site icon exceeds {max_bytes} bytes", field="site_icon", size=len(content)
        )
    return f"data:{mime};base64,{base64.b64encode(content).decode('ascii')}"


def validate_site_icon(value: Optional[str], *, max_bytes: int) -> Optional[str]:
    """Accept None (clears the icon) or a base64 image data URI within ``max_bytes``."""
    if value is None:
        return None
    match = _DATA_URI_RE.match(value.strip())
    if not match:
        raise ValidationError("Site icon must be a base64 image data URI", field="site_icon")
    try:
        content = base64.b64decode(match.group(2), validate=False)
    except (binascii.Error, ValueError):
        raise ValidationError("Site icon is not valid base64", field="site_icon")
    return encode_site_icon(content, match.group(1), max_bytes=max_bytes)


class SettingsService:
    def __init__(self, session: Session, event_bus: Optional[EventBus] = None):
        self.session = session
        self.event_bus = event_bus

    def get(self) -> SiteSettings:
        row = self.session.get(SystemSettings, SETTINGS_ROW_ID)
        if row is None:
            return SiteSettings.defaults()
        return SiteSettings.from_row(row)

    def update(self, changes: Dict[str, Any], *, actor_id: Optional[int] = None) -> SiteSettings:
        if "site_icon" in changes:
            changes = dict(changes)
            changes["site_icon"] = validate_site_icon(
                changes["site_icon"], max_bytes=get_settings().SITE_ICON_MAX_BYTES
            )

        row = self.session.get(SystemSettings, SETTINGS_ROW_ID)
        if row is None:
            defaults = SiteSettings.defaults()
            row = SystemSettings(
                id=SETTINGS_ROW_ID,
                **defaults.model_dump(exclude={"updated_at"}),
            )
            self.session.add(row)

        for key, value in changes.items():
            if not hasattr(SystemSettings, key) or key in {"id", "updated_at"}:
                continue
            if value is None and key != "site_icon":
                continue
            setattr(row, key, value)
        row.updated_at = datetime.utcnow()
        self.session.commit()

        snapshot = SiteSettings.from_row(row)
        self._publish(snapshot, actor_id)
        return snapshot

    def set_site_icon(
        self, content: bytes, content_type: Optional[str], *, actor_id: Optional[int] = None
    ) -> SiteSettings:
        data_uri = encode_site_icon(
            content, content_type, max_bytes=get_settings().SITE_ICON_MAX_BYTES
        )
        return self.update({"site_icon": data_uri}, actor_id=actor_id)

    def _publish(self, snapshot: SiteSettings, actor_id: Optional[int]) -> None:
        if self.event_bus is None:
            return
        self.event_bus.publish(
            SettingsUpdatedEvent(settings=snapshot.model_dump(mode="json"), actor_id=actor_id)
        )
