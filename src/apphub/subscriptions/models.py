"""
Subscription Models
Plans unlock gated categories; a user's active subscription grants them.
"""

from datetime import datetime
import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, Text

from apphub.models.base import Base


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    description = Column(Text, default="")
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    interval = Column(String(20), nullable=False, default="monthly")  # monthly, yearly
    features = Column(JSON, nullable=False, default=list)
    categories = Column(JSON, nullable=False, default=list)  # unlocked category ids

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)


class UserSubscription(Base):
    __tablename__ = "user_subscriptions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan_id = Column(String(36), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active")  # active, cancelled

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)
