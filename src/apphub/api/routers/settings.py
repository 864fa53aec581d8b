from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from apphub.api.dependencies.auth import (
    CurrentUser,
    get_event_bus,
    get_site_context,
    require_super_admin,
)
from apphub.config import get_settings
from apphub.database import get_db
from apphub.events.event_bus import EventBus
from apphub.exceptions import AppHubException
from apphub.system.service import SettingsService, SettingsUpdate
from apphub.system.site_context import SiteContext

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=Dict[str, Any])
def get_site_settings(site: SiteContext = Depends(get_site_context)) -> Dict[str, Any]:
    return site.settings.model_dump(mode="json")


@router.put("", response_model=Dict[str, Any])
def update_site_settings(
    req: SettingsUpdate,
    user: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
) -> Dict[str, Any]:
    try:
        snapshot = SettingsService(db, bus).update(
            req.model_dump(exclude_unset=True), actor_id=user.id
        )
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return snapshot.model_dump(mode="json")


@router.post("/icon", response_model=Dict[str, Any])
def upload_site_icon(
    file: UploadFile = File(...),
    user: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
) -> Dict[str, Any]:
    # One byte past the cap is enough to reject an oversized upload.
    content = file.file.read(get_settings().SITE_ICON_MAX_BYTES + 1)
    try:
        snapshot = SettingsService(db, bus).set_site_icon(
            content, file.content_type, actor_id=user.id
        )
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return snapshot.model_dump(mode="json")
