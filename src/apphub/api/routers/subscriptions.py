from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from apphub.api.dependencies.auth import CurrentUser, get_current_user, require_super_admin
from apphub.api.serializers import plan_to_dict, subscription_to_dict
from apphub.database import get_db
from apphub.exceptions import AppHubException
from apphub.subscriptions.models import SubscriptionPlan
from apphub.subscriptions.service import SubscriptionService

router = APIRouter(tags=["Subscriptions"])


class PlanCreateRequest(BaseModel):
    name: str = Field(..., max_length=200)
    description: str = Field(default="", max_length=2000)
    price: float = Field(default=0)
    interval: str = Field(default="monthly")
    features: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)


class PlanUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    price: Optional[float] = None
    interval: Optional[str] = None
    features: Optional[List[str]] = None
    categories: Optional[List[str]] = None


class AssignPlanRequest(BaseModel):
    plan_id: str = Field(..., min_length=1)


@router.get("/plans", response_model=List[Dict[str, Any]])
def list_plans(
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    return [plan_to_dict(p) for p in SubscriptionService(db).list_plans()]


@router.post("/admin/plans", response_model=Dict[str, Any])
def create_plan(
    req: PlanCreateRequest,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        plan = SubscriptionService(db).create_plan(req.model_dump())
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return plan_to_dict(plan)


@router.patch("/admin/plans/{plan_id}", response_model=Dict[str, Any])
def update_plan(
    plan_id: str,
    req: PlanUpdateRequest,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        plan = SubscriptionService(db).update_plan(plan_id, req.model_dump(exclude_unset=True))
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return plan_to_dict(plan)


@router.delete("/admin/plans/{plan_id}", response_model=Dict[str, Any])
def delete_plan(
    plan_id: str,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        SubscriptionService(db).delete_plan(plan_id)
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return {"ok": True, "id": plan_id}


@router.put("/admin/users/{user_id}/subscription", response_model=Dict[str, Any])
def assign_plan(
    user_id: int,
    req: AssignPlanRequest,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        sub = SubscriptionService(db).subscribe(user_id, req.plan_id)
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return subscription_to_dict(sub)


@router.delete("/admin/users/{user_id}/subscription", response_model=Dict[str, Any])
def cancel_subscription(
    user_id: int,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        sub = SubscriptionService(db).cancel(user_id)
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return subscription_to_dict(sub)


@router.get("/me/subscription", response_model=Dict[str, Any])
def my_subscription(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = SubscriptionService(db)
    sub = service.active_subscription(user.id)
    if sub is None:
        return {"subscription": None, "plan": None}
    plan = db.get(SubscriptionPlan, sub.plan_id)
    return {
        "subscription": subscription_to_dict(sub),
        "plan": plan_to_dict(plan) if plan is not None else None,
    }
