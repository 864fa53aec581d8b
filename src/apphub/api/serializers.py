"""Plain-dict views of ORM rows for JSON responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def user_to_dict(user: Any) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "role": user.role,
        "is_active": bool(user.is_active),
        "is_email_verified": bool(user.is_email_verified),
        "created_at": _iso(user.created_at),
    }


def app_to_dict(app: Any) -> Dict[str, Any]:
    return {
        "id": app.id,
        "name": app.name,
        "description": app.description,
        "url": app.url,
        "icon": app.icon,
        "categories": list(app.categories or []),
        "allowed_roles": list(app.allowed_roles or []),
        "is_active": bool(app.is_active),
        "order": app.order,
        "created_at": _iso(app.created_at),
        "updated_at": _iso(app.updated_at),
    }


def category_to_dict(category: Any) -> Dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "type": category.type,
        "order": category.order,
        "created_at": _iso(category.created_at),
        "updated_at": _iso(category.updated_at),
    }


def plan_to_dict(plan: Any) -> Dict[str, Any]:
    return {
        "id": plan.id,
        "name": plan.name,
        "description": plan.description,
        "price": plan.price,
        "interval": plan.interval,
        "features": list(plan.features or []),
        "categories": list(plan.categories or []),
        "created_at": _iso(plan.created_at),
        "updated_at": _iso(plan.updated_at),
    }


def subscription_to_dict(sub: Any) -> Dict[str, Any]:
    return {
        "id": sub.id,
        "user_id": sub.user_id,
        "plan_id": sub.plan_id,
        "status": sub.status,
        "created_at": _iso(sub.created_at),
        "updated_at": _iso(sub.updated_at),
    }


def invitation_to_dict(invitation: Any) -> Dict[str, Any]:
    return {
        "id": invitation.id,
        "email": invitation.email,
        "role": invitation.role,
        "status": invitation.status,
        "created_at": _iso(invitation.created_at),
        "expires_at": _iso(invitation.expires_at),
    }
