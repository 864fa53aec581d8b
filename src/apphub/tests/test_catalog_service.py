import pytest

from apphub.catalog.models import App
from apphub.catalog.service import CatalogService
from apphub.exceptions import NotFoundError, ValidationError
from apphub.subscriptions.service import SubscriptionService


def _app_data(name, /, **extra):
    data = {
        "name": name,
        "description": f"{name} description",
        "url": f"https://{name.lower()}.example.com",
        "allowed_roles": ["user", "admin", "superAdmin"],
    }
    data.update(extra)
    return data


def test_create_app_appends_to_order(session):
    service = CatalogService(session)
    first = service.create_app(_app_data("One"))
    second = service.create_app(_app_data("Two"))
    session.commit()
    assert (first.order, second.order) == (0, 1)
    assert first.is_active is True


@pytest.mark.parametrize(
    "override, field",
    [
        ({"name": "  "}, "name"),
        ({"description": ""}, "description"),
        ({"url": "notaurl"}, "url"),
        ({"url": "ftp://files.example.com"}, "url"),
        ({"allowed_roles": []}, "allowed_roles"),
        ({"allowed_roles": ["owner"]}, "allowed_roles"),
        ({"categories": ["missing"]}, "categories"),
    ],
)
def test_create_app_validation(session, override, field):
    with pytest.raises(ValidationError) as exc:
        CatalogService(session).create_app(_app_data("Bad", **override))
    assert exc.value.details["field"] == field


def test_empty_roles_message(session):
    with pytest.raises(ValidationError, match="At least one role must be selected"):
        CatalogService(session).create_app(_app_data("Bad", allowed_roles=[]))


def test_list_apps_breaks_created_at_ties_by_id(session):
    service = CatalogService(session)
    apps = [service.create_app(_app_data(name)) for name in ("One", "Two", "Three")]
    stamp = apps[0].created_at
    for app in apps:
        app.created_at = stamp
    session.commit()
    assert [a.id for a in service.list_apps()] == sorted(a.id for a in apps)


def test_update_toggle_delete(session):
    service = CatalogService(session)
    app = service.create_app(_app_data("One"))
    session.commit()

    updated = service.update_app(app.id, {"name": "Renamed", "icon": "  "})
    assert updated.name == "Renamed"
    assert updated.icon is None
    assert updated.updated_at is not None

    assert service.toggle_active(app.id).is_active is False
    assert service.toggle_active(app.id).is_active is True

    service.delete_app(app.id)
    session.commit()
    with pytest.raises(NotFoundError):
        service.get_app(app.id)


@pytest.mark.parametrize("changes", [{"is_active": None}, {"order": None}])
def test_update_app_rejects_null_for_required_fields(session, changes):
    service = CatalogService(session)
    app = service.create_app(_app_data("One"))
    session.commit()
    with pytest.raises(ValidationError) as exc:
        service.update_app(app.id, changes)
    assert exc.value.details["field"] == next(iter(changes))
    session.rollback()
    assert session.get(App, app.id).is_active is True


def test_update_category_rejects_null_order(session):
    service = CatalogService(session)
    category = service.create_category({"name": "Tools", "order": 3})
    with pytest.raises(ValidationError):
        service.update_category(category.id, {"order": None})
    assert category.order == 3


def test_categories_crud_and_type_validation(session):
    service = CatalogService(session)
    b = service.create_category({"name": "B", "type": "Pro", "order": 2})
    a = service.create_category({"name": "A", "order": 1})
    session.commit()

    assert a.type == "Public"
    assert [c.name for c in service.list_categories()] == ["A", "B"]

    with pytest.raises(ValidationError):
        service.create_category({"name": "C", "type": "Secret"})
    with pytest.raises(ValidationError):
        service.update_category(b.id, {"type": "public"})

    assert service.update_category(b.id, {"type": "Private"}).type == "Private"


def test_delete_category_strips_references(session):
    catalog = CatalogService(session)
    cat = catalog.create_category({"name": "Pro stuff", "type": "Pro"})
    app = catalog.create_app(_app_data("Gated", categories=[cat.id]))
    plan = SubscriptionService(session).create_plan({"name": "P", "categories": [cat.id]})
    session.commit()

    catalog.delete_category(cat.id)
    session.commit()
    session.expire_all()

    assert session.get(App, app.id).categories == []
    assert SubscriptionService(session).get_plan(plan.id).categories == []


def test_visible_apps_filters_inactive_and_gated(session):
    service = CatalogService(session)
    pro = service.create_category({"name": "Pro", "type": "Pro"})
    open_app = service.create_app(_app_data("Open"))
    gated = service.create_app(_app_data("Gated", categories=[pro.id]))
    hidden = service.create_app(_app_data("Hidden"))
    service.toggle_active(hidden.id)
    session.commit()

    assert [a.id for a in service.visible_apps("user", [])] == [open_app.id]
    assert [a.id for a in service.visible_apps("user", [pro.id])] == [open_app.id, gated.id]
    assert [a.id for a in service.visible_apps("superAdmin", [])] == [open_app.id, gated.id]


def test_move_app_persists_new_order(session):
    service = CatalogService(session)
    ids = [service.create_app(_app_data(n)).id for n in ("A", "B", "C")]
    session.commit()

    new_order = service.move_app(ids, ids[2], target_index=0)
    session.commit()
    session.expire_all()

    assert new_order == [ids[2], ids[0], ids[1]]
    assert [a.id for a in service.visible_apps("user", [])] == new_order
    assert [session.get(App, i).order for i in new_order] == [0, 1, 2]


def test_move_app_to_same_slot_writes_nothing(session):
    service = CatalogService(session)
    ids = [service.create_app(_app_data(n)).id for n in ("A", "B")]
    session.commit()

    assert service.move_app(ids, ids[0], target_id=ids[0]) == ids
    assert not session.dirty
