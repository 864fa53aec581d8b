from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import text

from apphub import __version__
from apphub.config import get_settings
from apphub.context import get_request_context
from apphub.database import get_db_session, missing_tables

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> dict:
    ctx = get_request_context()
    settings = get_settings()
    return {
        "ok": True,
        "service": "apphub",
        "version": __version__,
        "request_id": ctx.request_id,
        "environment": settings.ENVIRONMENT,
        "schema_mode": settings.SCHEMA_MODE,
    }


@router.get("/health/deps")
def health_deps() -> dict:
    settings = get_settings()
    deps: dict = {}
    overall_ok = True

    try:
        with get_db_session() as db:
            db.execute(text("SELECT 1"))
        missing = missing_tables()
        deps["db"] = {"ok": not missing, "missing_tables": missing}
        overall_ok = not missing
    except Exception as exc:
        deps["db"] = {"ok": False, "error": str(exc)}
        overall_ok = False

    deps["mail"] = {"configured": bool(settings.MAIL_API_URL and settings.MAIL_API_KEY)}
    deps["icons"] = {"mode": settings.ICON_ENRICHMENT_MODE}

    return {
        "ok": overall_ok,
        "service": "apphub",
        "version": __version__,
        "deps": deps,
    }
