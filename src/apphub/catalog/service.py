"""
Catalog Service
CRUD for apps and categories, plus the per-user "my apps" view.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence
from urllib.parse import urlparse
import uuid

from sqlalchemy.orm import Session

from apphub.catalog.icons import IconEnricher
from apphub.catalog.models import App, AppCategory, CategoryType
from apphub.catalog.ordering import reorder, resolve_target_index
from apphub.catalog.visibility import resolve_visible_apps
from apphub.exceptions import NotFoundError, ValidationError
from apphub.security.roles import normalize_roles

logger = logging.getLogger(__name__)

_APP_FIELDS = ("name", "description", "url", "icon", "categories", "allowed_roles", "is_active", "order")
_CATEGORY_FIELDS = ("name", "description", "type", "order")


def validate_app_url(url: Optional[str]) -> str:
    value = (url or "").strip()
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValidationError("Must be a valid URL", field="url")
    return value


def validate_category_type(value: Optional[str]) -> str:
    raw = (value or "").strip()
    allowed = [t.value for t in CategoryType]
    if raw not in allowed:
        raise ValidationError(
            f"Unknown category type: {value!r}; expected one of {', '.join(allowed)}",
            field="type",
        )
    return raw


def _reject_null(data: Dict[str, Any], *fields: str) -> None:
    for field in fields:
        if field in data and data[field] is None:
            raise ValidationError(f"{field} must not be null", field=field)


def _require_text(data: Dict[str, Any], field: str, label: str) -> str:
    value = (data.get(field) or "").strip()
    if not value:
        raise ValidationError(f"{label} is required", field=field)
    return value


class CatalogService:
    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------ apps

    def list_apps(self, *, include_inactive: bool = True) -> List[App]:
        q = self.session.query(App)
        if not include_inactive:
            q = q.filter(App.is_active.is_(True))
        return q.order_by(App.created_at.asc(), App.id.asc()).all()

    def get_app(self, app_id: str) -> App:
        app = self.session.get(App, app_id)
        if not app:
            raise NotFoundError("App", app_id)
        return app

    def _clean_app_data(self, data: Dict[str, Any], *, partial: bool) -> Dict[str, Any]:
        cleaned: Dict[str, Any] = {k: data[k] for k in _APP_FIELDS if k in data}
        _reject_null(cleaned, "is_active")
        if partial:
            _reject_null(cleaned, "order")
        if "is_active" in cleaned:
            cleaned["is_active"] = bool(cleaned["is_active"])

        if not partial or "name" in cleaned:
            cleaned["name"] = _require_text(data, "name", "Name")
        if not partial or "description" in cleaned:
            cleaned["description"] = _require_text(data, "description", "Description")
        if not partial or "url" in cleaned:
            cleaned["url"] = validate_app_url(data.get("url"))
        if not partial or "allowed_roles" in cleaned:
            roles = normalize_roles(data.get("allowed_roles") or [])
            if not roles:
                raise ValidationError("At least one role must be selected", field="allowed_roles")
            cleaned["allowed_roles"] = roles
        if "categories" in cleaned:
            cleaned["categories"] = self._validate_category_ids(cleaned["categories"] or [])
        if "icon" in cleaned:
            cleaned["icon"] = (cleaned["icon"] or "").strip() or None
        return cleaned

    def _validate_category_ids(self, category_ids: Iterable[str]) -> List[str]:
        ids: List[str] = []
        for raw in category_ids:
            cid = str(raw)
            if cid not in ids:
                ids.append(cid)
        if not ids:
            return ids
        known = {
            c.id for c in self.session.query(AppCategory).filter(AppCategory.id.in_(ids)).all()
        }
        missing = [cid for cid in ids if cid not in known]
        if missing:
            raise ValidationError(
                f"Unknown category ids: {', '.join(missing)}", field="categories"
            )
        return ids

    def create_app(self, data: Dict[str, Any]) -> App:
        cleaned = self._clean_app_data(data, partial=False)
        if cleaned.get("order") is None:
            # New apps go to the end of the grid.
            cleaned["order"] = self.session.query(App).count()
        app = App(
            id=str(uuid.uuid4()),
            categories=[],
            is_active=True,
            created_at=datetime.utcnow(),
        )
        for key, value in cleaned.items():
            setattr(app, key, value)
        self.session.add(app)
        self.session.flush()
        return app

    def update_app(self, app_id: str, changes: Dict[str, Any]) -> App:
        app = self.get_app(app_id)
        cleaned = self._clean_app_data(changes, partial=True)
        for key, value in cleaned.items():
            setattr(app, key, value)
        app.updated_at = datetime.utcnow()
        self.session.flush()
        return app

    def toggle_active(self, app_id: str) -> App:
        app = self.get_app(app_id)
        app.is_active = not bool(app.is_active)
        app.updated_at = datetime.utcnow()
        self.session.flush()
        return app

    def delete_app(self, app_id: str) -> None:
        app = self.get_app(app_id)
        self.session.delete(app)
        self.session.flush()

    # ------------------------------------------------------------ categories

    def list_categories(self) -> List[AppCategory]:
        return (
            self.session.query(AppCategory)
            .order_by(AppCategory.order.asc(), AppCategory.created_at.asc(), AppCategory.id.asc())
            .all()
        )

    def get_category(self, category_id: str) -> AppCategory:
        category = self.session.get(AppCategory, category_id)
        if not category:
            raise NotFoundError("Category", category_id)
        return category

    def create_category(self, data: Dict[str, Any]) -> AppCategory:
        category = AppCategory(
            id=str(uuid.uuid4()),
            name=_require_text(data, "name", "Name"),
            description=(data.get("description") or "").strip(),
            type=validate_category_type(data.get("type") or CategoryType.PUBLIC.value),
            order=int(data.get("order") or 0),
            created_at=datetime.utcnow(),
        )
        self.session.add(category)
        self.session.flush()
        return category

    def update_category(self, category_id: str, changes: Dict[str, Any]) -> AppCategory:
        category = self.get_category(category_id)
        _reject_null(changes, "order")
        for key in _CATEGORY_FIELDS:
            if key not in changes:
                continue
            value = changes[key]
            if key == "name":
                value = _require_text(changes, "name", "Name")
            elif key == "type":
                value = validate_category_type(value)
            elif key == "order":
                value = int(value)
            elif key == "description":
                value = (value or "").strip()
            setattr(category, key, value)
        category.updated_at = datetime.utcnow()
        self.session.flush()
        return category

    def delete_category(self, category_id: str) -> None:
        from apphub.subscriptions.models import SubscriptionPlan

        category = self.get_category(category_id)
        # Drop dangling references; an unknown id would otherwise gate the app.
        for app in self.session.query(App).all():
            if category_id in (app.categories or []):
                app.categories = [c for c in app.categories if c != category_id]
        for plan in self.session.query(SubscriptionPlan).all():
            if category_id in (plan.categories or []):
                plan.categories = [c for c in plan.categories if c != category_id]
        self.session.delete(category)
        self.session.flush()

    # --------------------------------------------------------------- my apps

    def visible_apps(
        self,
        user_role: str,
        allowed_category_ids: Sequence[str],
        *,
        enricher: Optional[IconEnricher] = None,
    ) -> List[App]:
        apps = resolve_visible_apps(
            self.list_apps(include_inactive=False),
            self.list_categories(),
            user_role,
            allowed_category_ids,
        )
        if enricher is not None:
            enricher.enrich(apps)
        return apps

    def apply_order(self, ordered_ids: Sequence[str]) -> None:
        """Persist each app's index in `ordered_ids` as its display order."""
        apps = {
            a.id: a
            for a in self.session.query(App).filter(App.id.in_(list(ordered_ids))).all()
        }
        now = datetime.utcnow()
        for index, app_id in enumerate(ordered_ids):
            app = apps.get(app_id)
            if app is None:
                continue
            app.order = index
            app.updated_at = now
        self.session.flush()

    def move_app(
        self,
        current_order: Sequence[str],
        moved_id: str,
        *,
        target_index: Optional[int] = None,
        target_id: Optional[str] = None,
    ) -> List[str]:
        index = resolve_target_index(
            current_order, target_index=target_index, target_id=target_id
        )
        new_order = reorder(current_order, moved_id, index)
        if new_order != list(current_order):
            self.apply_order(new_order)
        return new_order
