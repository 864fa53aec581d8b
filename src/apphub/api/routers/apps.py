from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from apphub.api.dependencies.auth import CurrentUser, get_current_user, get_site_context
from apphub.api.serializers import app_to_dict, category_to_dict
from apphub.catalog.icons import IconEnricher
from apphub.catalog.service import CatalogService
from apphub.database import get_db
from apphub.exceptions import AppHubException
from apphub.subscriptions.service import SubscriptionService
from apphub.system.site_context import SiteContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/apps", tags=["Apps"])


class ReorderRequest(BaseModel):
    moved_id: str = Field(..., min_length=1)
    target_index: Optional[int] = None
    target_id: Optional[str] = None


def _entitlement(db: Session, user: CurrentUser) -> List[str]:
    if user.is_super_admin:
        return []
    return SubscriptionService(db).allowed_category_ids(user.id)


@router.get("", response_model=Dict[str, Any])
def my_apps(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    site: SiteContext = Depends(get_site_context),
) -> Dict[str, Any]:
    """Apps visible to the caller, in display order, with icons filled in."""
    service = CatalogService(db)
    apps = service.visible_apps(
        user.role, _entitlement(db, user), enricher=IconEnricher(db)
    )
    return {
        "apps": [app_to_dict(a) for a in apps],
        "categories": [category_to_dict(c) for c in service.list_categories()],
        "maintenance_mode": site.settings.maintenance_mode,
    }


@router.post("/reorder", response_model=Dict[str, Any])
def reorder_apps(
    req: ReorderRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = CatalogService(db)
    current = [a.id for a in service.visible_apps(user.role, _entitlement(db, user))]
    try:
        new_order = service.move_app(
            current, req.moved_id, target_index=req.target_index, target_id=req.target_id
        )
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to persist app order for user %s: %s", user.id, exc)
        raise HTTPException(status_code=500, detail="Failed to update app order")
    return {"order": new_order}
