"""
App visibility resolution.

An app is visible to a user when the user's role is listed in the app's
allowed roles and, unless the user is a superAdmin, every category on the app
is either Public or unlocked by the user's active subscription.

The functions here are pure: they take already-loaded apps and categories
(ORM rows or any objects exposing the same attributes) and never touch the
database.
"""

from __future__ import annotations

from typing import Any, Collection, Dict, Iterable, List, Optional

from apphub.catalog.models import CategoryType
from apphub.security.roles import is_super_admin


def build_category_types(categories: Iterable[Any]) -> Dict[str, str]:
    return {str(c.id): str(c.type) for c in categories}


def has_role_access(app: Any, user_role: str) -> bool:
    return user_role in (app.allowed_roles or [])


def has_category_access(
    app: Any,
    category_types: Dict[str, str],
    user_role: str,
    allowed_category_ids: Collection[str],
) -> bool:
    if is_super_admin(user_role):
        return True
    # Unknown category ids are treated as gated, not Public.
    return all(
        category_types.get(str(category_id)) == CategoryType.PUBLIC.value
        or str(category_id) in allowed_category_ids
        for category_id in (app.categories or [])
    )


def is_app_visible(
    app: Any,
    category_types: Dict[str, str],
    user_role: str,
    allowed_category_ids: Collection[str],
) -> bool:
    return has_role_access(app, user_role) and has_category_access(
        app, category_types, user_role, allowed_category_ids
    )


def display_order_key(app: Any) -> tuple:
    order: Optional[int] = getattr(app, "order", None)
    return (order is None, order if order is not None else 0)


def resolve_visible_apps(
    all_apps: Iterable[Any],
    all_categories: Iterable[Any],
    user_role: str,
    allowed_category_ids: Optional[Collection[str]] = None,
) -> List[Any]:
    """
    Return the apps visible to a user, ordered for display.

    Apps are sorted ascending by `order`; apps without an order sort last.
    `sorted` is stable, so ties keep the catalog order they arrived in.
    """
    allowed = {str(c) for c in (allowed_category_ids or ())}
    category_types = build_category_types(all_categories)
    kept = [
        app
        for app in all_apps
        if is_app_visible(app, category_types, user_role, allowed)
    ]
    return sorted(kept, key=display_order_key)
