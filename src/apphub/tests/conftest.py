from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from apphub.api import app
from apphub.api.dependencies.auth import get_event_bus, get_site_context
from apphub.config import get_settings
from apphub.database import create_db_engine, create_sessionmaker, get_db, import_all_models
from apphub.events.event_bus import EventBus
from apphub.models.base import Base
from apphub.security.auth.jwt import issue_access_token
from apphub.security.auth.models import User
from apphub.security.auth.service import AuthService
from apphub.system.site_context import SiteContext


@pytest.fixture
def session_factory():
    engine = create_db_engine("sqlite:///:memory:")
    import_all_models()
    Base.metadata.create_all(engine)
    factory = create_sessionmaker(engine)
    yield factory
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(session_factory) -> Iterator[Session]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def scoped_session(session_factory):
    @contextmanager
    def _scope():
        db = session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    return _scope


@pytest.fixture
def site_context(event_bus, scoped_session):
    ctx = SiteContext(event_bus, scoped_session).start()
    yield ctx
    ctx.stop()


@pytest.fixture
def client(session_factory, event_bus, site_context):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_bus] = lambda: event_bus
    app.dependency_overrides[get_site_context] = lambda: site_context
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user: User) -> Dict[str, str]:
    settings = get_settings()
    token = issue_access_token(
        user_id=user.id,
        secret=settings.JWT_SECRET_KEY,
        token_version=int(user.token_version or 0),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(role: str = "user", *, password: str = "secret-pass") -> Tuple[User, Dict[str, str]]:
        counter["n"] += 1
        user = AuthService(session).create_user(
            email=f"{role.lower()}{counter['n']}@example.com",
            password=password,
            display_name=f"{role} {counter['n']}",
            role=role,
        )
        session.commit()
        return user, auth_headers(user)

    return _make
