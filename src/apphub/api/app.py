from __future__ import annotations

import logging

from fastapi import FastAPI

from apphub import __version__
from apphub.api.middleware.context import RequestContextMiddleware
from apphub.api.routers.admin_catalog import router as admin_catalog_router
from apphub.api.routers.apps import router as apps_router
from apphub.api.routers.auth import router as auth_router
from apphub.api.routers.health import router as health_router
from apphub.api.routers.invitations import router as invitations_router
from apphub.api.routers.metadata import router as metadata_router
from apphub.api.routers.settings import router as settings_router
from apphub.api.routers.subscriptions import router as subscriptions_router
from apphub.api.routers.users import router as users_router
from apphub.config import get_settings
from apphub.database import get_db_session, init_db
from apphub.events.event_bus import EventBus
from apphub.events.listeners import register_listeners
from apphub.system.site_context import SiteContext

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="AppHub", version=__version__)
    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(apps_router, prefix="/api/v1")
    app.include_router(admin_catalog_router, prefix="/api/v1")
    app.include_router(subscriptions_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(invitations_router, prefix="/api/v1")
    app.include_router(settings_router, prefix="/api/v1")
    app.include_router(metadata_router, prefix="/api/v1")

    @app.on_event("startup")
    def _startup() -> None:  # pragma: no cover
        settings = get_settings()
        if settings.ENVIRONMENT == "dev" or settings.SCHEMA_MODE == "external":
            init_db(create_tables=True)

        bus = EventBus()
        site_context = SiteContext(bus, get_db_session).start()
        app.state.event_bus = bus
        app.state.site_context = site_context
        app.state.listener_subscriptions = register_listeners(bus, site_context=site_context)
        logger.info("AppHub %s started (%s)", __version__, settings.ENVIRONMENT)

    @app.on_event("shutdown")
    def _shutdown() -> None:  # pragma: no cover
        for subscription in getattr(app.state, "listener_subscriptions", []):
            subscription.unsubscribe()
        site_context = getattr(app.state, "site_context", None)
        if site_context is not None:
            site_context.stop()

    return app


app = create_app()
