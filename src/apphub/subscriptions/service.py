"""
Subscription Service
Plan CRUD, assigning plans to users, and entitlement lookup.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy.orm import Session

from apphub.catalog.models import AppCategory
from apphub.exceptions import NotFoundError, ValidationError
from apphub.security.auth.models import User
from apphub.subscriptions.models import SubscriptionPlan, UserSubscription

ACTIVE = "active"
CANCELLED = "cancelled"
INTERVALS = ("monthly", "yearly")


class SubscriptionService:
    def __init__(self, session: Session):
        self.session = session

    # ----------------------------------------------------------------- plans

    def list_plans(self) -> List[SubscriptionPlan]:
        return self.session.query(SubscriptionPlan).order_by(SubscriptionPlan.created_at.asc()).all()

    def get_plan(self, plan_id: str) -> SubscriptionPlan:
        plan = self.session.get(SubscriptionPlan, plan_id)
        if not plan:
            raise NotFoundError("Subscription plan", plan_id)
        return plan

    def _clean_plan_data(self, data: Dict[str, Any], *, partial: bool) -> Dict[str, Any]:
        cleaned: Dict[str, Any] = {}
        for key in ("price", "interval"):
            if key in data and data[key] is None:
                raise ValidationError(f"{key} must not be null", field=key)
        if not partial or "name" in data:
            name = (data.get("name") or "").strip()
            if not name:
                raise ValidationError("Name is required", field="name")
            cleaned["name"] = name
        if "description" in data:
            cleaned["description"] = (data.get("description") or "").strip()
        if not partial or "price" in data:
            price = float(data.get("price") or 0)
            if price < 0:
                raise ValidationError("Price must not be negative", field="price")
            cleaned["price"] = price
        if not partial or "interval" in data:
            interval = data.get("interval") or "monthly"
            if interval not in INTERVALS:
                raise ValidationError(
                    f"Interval must be one of {', '.join(INTERVALS)}", field="interval"
                )
            cleaned["interval"] = interval
        if "features" in data:
            cleaned["features"] = [str(f).strip() for f in (data.get("features") or []) if str(f).strip()]
        if "categories" in data:
            cleaned["categories"] = self._validate_categories(data.get("categories") or [])
        return cleaned

    def _validate_categories(self, category_ids: List[str]) -> List[str]:
        ids: List[str] = []
        for raw in category_ids:
            if str(raw) not in ids:
                ids.append(str(raw))
        if not ids:
            return ids
        known = {
            c.id for c in self.session.query(AppCategory).filter(AppCategory.id.in_(ids)).all()
        }
        missing = [cid for cid in ids if cid not in known]
        if missing:
            raise ValidationError(f"Unknown category ids: {', '.join(missing)}", field="categories")
        return ids

    def create_plan(self, data: Dict[str, Any]) -> SubscriptionPlan:
        cleaned = self._clean_plan_data(data, partial=False)
        plan = SubscriptionPlan(
            id=str(uuid.uuid4()),
            description="",
            features=[],
            categories=[],
            created_at=datetime.utcnow(),
        )
        for key, value in cleaned.items():
            setattr(plan, key, value)
        self.session.add(plan)
        self.session.flush()
        return plan

    def update_plan(self, plan_id: str, changes: Dict[str, Any]) -> SubscriptionPlan:
        plan = self.get_plan(plan_id)
        for key, value in self._clean_plan_data(changes, partial=True).items():
            setattr(plan, key, value)
        plan.updated_at = datetime.utcnow()
        self.session.flush()
        return plan

    def delete_plan(self, plan_id: str) -> None:
        plan = self.get_plan(plan_id)
        self.session.delete(plan)
        self.session.flush()

    # --------------------------------------------------------- subscriptions

    def active_subscription(self, user_id: int) -> Optional[UserSubscription]:
        return (
            self.session.query(UserSubscription)
            .filter(UserSubscription.user_id == user_id, UserSubscription.status == ACTIVE)
            .order_by(UserSubscription.created_at.asc())
            .first()
        )

    def subscribe(self, user_id: int, plan_id: str) -> UserSubscription:
        if not self.session.get(User, user_id):
            raise NotFoundError("User", user_id)
        self.get_plan(plan_id)

        now = datetime.utcnow()
        for existing in (
            self.session.query(UserSubscription)
            .filter(UserSubscription.user_id == user_id, UserSubscription.status == ACTIVE)
            .all()
        ):
            existing.status = CANCELLED
            existing.updated_at = now

        sub = UserSubscription(
            id=str(uuid.uuid4()),
            user_id=user_id,
            plan_id=plan_id,
            status=ACTIVE,
            created_at=now,
        )
        self.session.add(sub)
        self.session.flush()
        return sub

    def cancel(self, user_id: int) -> UserSubscription:
        sub = self.active_subscription(user_id)
        if sub is None:
            raise NotFoundError("Active subscription", user_id)
        sub.status = CANCELLED
        sub.updated_at = datetime.utcnow()
        self.session.flush()
        return sub

    def allowed_category_ids(self, user_id: int) -> List[str]:
        """Category ids unlocked by the user's active plan; empty when there is none."""
        sub = self.active_subscription(user_id)
        if sub is None:
            return []
        plan = self.session.get(SubscriptionPlan, sub.plan_id)
        if plan is None:
            return []
        return [str(c) for c in (plan.categories or [])]
