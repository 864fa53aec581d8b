from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from apphub.api.dependencies.auth import CurrentUser, require_super_admin
from apphub.api.serializers import subscription_to_dict, user_to_dict
from apphub.database import get_db
from apphub.exceptions import AppHubException
from apphub.security.auth.service import AuthService
from apphub.subscriptions.service import SubscriptionService

router = APIRouter(prefix="/admin/users", tags=["Admin"])


class RoleUpdateRequest(BaseModel):
    role: str = Field(..., min_length=1, max_length=20)


@router.get("", response_model=List[Dict[str, Any]])
def list_users(
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    subscriptions = SubscriptionService(db)
    result: List[Dict[str, Any]] = []
    for user in AuthService(db).list_users():
        item = user_to_dict(user)
        sub = subscriptions.active_subscription(user.id)
        item["subscription"] = subscription_to_dict(sub) if sub else None
        result.append(item)
    return result


@router.patch("/{user_id}/role", response_model=Dict[str, Any])
def change_role(
    user_id: int,
    req: RoleUpdateRequest,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        user = AuthService(db).change_role(user_id, req.role)
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return user_to_dict(user)


@router.delete("/{user_id}", response_model=Dict[str, Any])
def delete_user(
    user_id: int,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        AuthService(db).delete_user(user_id)
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return {"ok": True, "id": user_id}
