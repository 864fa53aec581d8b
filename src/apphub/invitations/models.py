from datetime import datetime
import enum
import uuid

from sqlalchemy import Column, DateTime, String

from apphub.models.base import Base


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"


class Invitation(Base):
    __tablename__ = "invitations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(200), nullable=False, index=True)
    role = Column(String(20), nullable=False, default="user")
    token = Column(String(100), nullable=False, unique=True, index=True)
    status = Column(String(20), nullable=False, default=InvitationStatus.PENDING.value)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
