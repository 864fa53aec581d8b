from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from apphub.models.base import Base

SETTINGS_ROW_ID = 1


class SystemSettings(Base):
    """Single-row table holding site-wide settings."""

    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    site_name = Column(String(200), nullable=False, default="")
    welcome_message = Column(Text, nullable=False, default="Welcome to our site!")
    support_email = Column(String(200), nullable=False, default="")
    show_support_email = Column(Boolean, nullable=False, default=True)
    allow_user_registration = Column(Boolean, nullable=False, default=True)
    maintenance_mode = Column(Boolean, nullable=False, default=False)
    # data:<mime>;base64,<payload>
    site_icon = Column(Text, nullable=True)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
