"""
Catalog Models
Administrator-curated apps and the categories they are grouped into.
"""

from datetime import datetime
import enum
import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from apphub.models.base import Base


class CategoryType(str, enum.Enum):
    PUBLIC = "Public"
    PRIVATE = "Private"
    PRO = "Pro"


class AppCategory(Base):
    __tablename__ = "app_categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    description = Column(Text, default="")
    # Public, Private, Pro
    type = Column(String(20), nullable=False, default=CategoryType.PUBLIC.value)
    order = Column("display_order", Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)


class App(Base):
    __tablename__ = "apps"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    description = Column(Text, default="")
    url = Column(String(2000), nullable=False)
    # Either an absolute URL or an inline data URI.
    icon = Column(Text, nullable=True)

    categories = Column(JSON, nullable=False, default=list)  # category ids
    allowed_roles = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, default=True, nullable=False)
    order = Column("display_order", Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)
