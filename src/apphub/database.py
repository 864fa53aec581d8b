"""
Engine and session plumbing.

SQLite is the default for local dev; any SQLAlchemy URL works through
DATABASE_URL. Request handlers get a session from ``get_db``; background
code (site context reloads, CLI commands) uses ``get_db_session``.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from apphub.config import get_settings
from apphub.models.base import Base


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def create_db_engine(database_url: Optional[str] = None, *, echo: bool = False) -> Engine:
    url = database_url or get_settings().DATABASE_URL
    kwargs: Dict[str, Any] = {"echo": echo}

    if _is_sqlite(url):
        kwargs["connect_args"] = {"check_same_thread": False}
    if _is_memory_sqlite(url):
        # One shared connection, otherwise every session sees an empty database.
        kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(pool_pre_ping=True, pool_recycle=3600)

    engine = create_engine(url, **kwargs)

    if _is_sqlite(url):

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _connection_record):  # pragma: no cover
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_sessionmaker(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


engine = create_db_engine()
SessionLocal = create_sessionmaker(engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def import_all_models() -> None:
    # Registers every mapped table on Base.metadata.
    from apphub.catalog import models as _catalog  # noqa: F401
    from apphub.invitations import models as _invitations  # noqa: F401
    from apphub.security.auth import models as _auth  # noqa: F401
    from apphub.subscriptions import models as _subscriptions  # noqa: F401
    from apphub.system import models as _system  # noqa: F401


def missing_tables(bind_engine: Optional[Engine] = None) -> List[str]:
    import_all_models()
    existing = set(inspect(bind_engine or engine).get_table_names())
    return sorted(set(Base.metadata.tables) - existing)


def init_db(*, create_tables: bool = False, bind_engine: Optional[Engine] = None) -> None:
    """
    Create the schema, or with SCHEMA_MODE=external only check that the
    externally managed schema has every table the models map.
    """
    if not create_tables:
        return
    target = bind_engine or engine

    if get_settings().SCHEMA_MODE == "external":
        missing = missing_tables(target)
        if missing:
            raise RuntimeError(
                "SCHEMA_MODE=external: database is missing tables: " + ", ".join(missing)
            )
        return

    import_all_models()
    Base.metadata.create_all(bind=target, checkfirst=True)
