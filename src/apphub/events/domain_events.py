"""
Domain events published by the services and consumed by in-process listeners.
"""

from datetime import datetime
from typing import Any, Dict, Optional
import uuid

from pydantic import BaseModel, Field


class DomainEvent(BaseModel):
    """Base class for all domain events."""

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    actor_id: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SettingsUpdatedEvent(DomainEvent):
    event_type: str = "settings.updated"
    settings: Dict[str, Any]


class InvitationCreatedEvent(DomainEvent):
    event_type: str = "invitation.created"
    invitation_id: str
    email: str
    role: str
    token: str
    registration_link: str
    expires_at: datetime
