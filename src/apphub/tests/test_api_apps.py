from apphub.catalog.models import App
from apphub.catalog.service import CatalogService
from apphub.subscriptions.service import SubscriptionService


def _seed_catalog(session):
    catalog = CatalogService(session)
    pro = catalog.create_category({"name": "Pro", "type": "Pro"})
    apps = {
        name: catalog.create_app(
            {
                "name": name,
                "description": name,
                "url": f"https://{name.lower()}.example.com",
                "allowed_roles": roles,
                "categories": cats,
                "icon": "https://cdn.example.com/icon.png",
            }
        )
        for name, roles, cats in [
            ("Mail", ["user", "admin", "superAdmin"], []),
            ("Reports", ["user", "admin", "superAdmin"], [pro.id]),
            ("Console", ["admin", "superAdmin"], []),
        ]
    }
    session.commit()
    return pro, apps


def _names(resp):
    return [a["name"] for a in resp.json()["apps"]]


def test_my_apps_requires_login(client):
    assert client.get("/api/v1/apps").status_code == 401


def test_my_apps_by_role_and_subscription(client, session, make_user):
    pro, _ = _seed_catalog(session)
    user, user_headers = make_user("user")
    _, admin_headers = make_user("admin")
    _, root_headers = make_user("superAdmin")

    assert _names(client.get("/api/v1/apps", headers=user_headers)) == ["Mail"]
    assert _names(client.get("/api/v1/apps", headers=admin_headers)) == ["Mail", "Console"]
    assert _names(client.get("/api/v1/apps", headers=root_headers)) == [
        "Mail",
        "Reports",
        "Console",
    ]

    subs = SubscriptionService(session)
    plan = subs.create_plan({"name": "Pro", "categories": [pro.id]})
    subs.subscribe(user.id, plan.id)
    session.commit()

    resp = client.get("/api/v1/apps", headers=user_headers)
    assert _names(resp) == ["Mail", "Reports"]
    assert resp.json()["maintenance_mode"] is False


def test_my_apps_fills_missing_icons(client, session, make_user):
    app = CatalogService(session).create_app(
        {
            "name": "NoIcon",
            "description": "d",
            "url": "https://noicon.example.com/path",
            "allowed_roles": ["user"],
        }
    )
    session.commit()
    _, headers = make_user("user")

    icon = client.get("/api/v1/apps", headers=headers).json()["apps"][0]["icon"]
    assert icon and "noicon.example.com" in icon

    session.expire_all()
    assert session.get(App, app.id).icon == icon


def test_reorder_by_index_and_target(client, session, make_user):
    _, apps = _seed_catalog(session)
    _, headers = make_user("admin")

    resp = client.post(
        "/api/v1/apps/reorder",
        headers=headers,
        json={"moved_id": apps["Console"].id, "target_index": 0},
    )
    assert resp.status_code == 200
    assert resp.json()["order"] == [apps["Console"].id, apps["Mail"].id]
    assert _names(client.get("/api/v1/apps", headers=headers)) == ["Console", "Mail"]

    resp = client.post(
        "/api/v1/apps/reorder",
        headers=headers,
        json={"moved_id": apps["Console"].id, "target_id": apps["Mail"].id},
    )
    assert _names(client.get("/api/v1/apps", headers=headers)) == ["Mail", "Console"]


def test_reorder_to_last_with_negative_index(client, session, make_user):
    _, apps = _seed_catalog(session)
    _, headers = make_user("admin")

    resp = client.post(
        "/api/v1/apps/reorder",
        headers=headers,
        json={"moved_id": apps["Mail"].id, "target_index": -1},
    )
    assert resp.status_code == 200
    assert resp.json()["order"] == [apps["Console"].id, apps["Mail"].id]
    assert _names(client.get("/api/v1/apps", headers=headers)) == ["Console", "Mail"]


def test_reorder_unknown_app(client, session, make_user):
    _, apps = _seed_catalog(session)
    _, headers = make_user("user")
    # Console is not visible to plain users.
    resp = client.post(
        "/api/v1/apps/reorder",
        headers=headers,
        json={"moved_id": apps["Console"].id, "target_index": 0},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["details"]["field"] == "moved_id"
