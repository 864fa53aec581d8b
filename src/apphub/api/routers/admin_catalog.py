from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from apphub.api.dependencies.auth import CurrentUser, require_super_admin
from apphub.api.serializers import app_to_dict, category_to_dict
from apphub.catalog.service import CatalogService
from apphub.database import get_db
from apphub.exceptions import AppHubException

router = APIRouter(prefix="/admin", tags=["Admin"])


class AppCreateRequest(BaseModel):
    name: str = Field(..., max_length=200)
    description: str = Field(..., max_length=2000)
    url: str = Field(..., max_length=2000)
    icon: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    allowed_roles: List[str] = Field(default_factory=list)
    is_active: bool = True
    order: Optional[int] = None


class AppUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    url: Optional[str] = Field(default=None, max_length=2000)
    icon: Optional[str] = None
    categories: Optional[List[str]] = None
    allowed_roles: Optional[List[str]] = None
    is_active: Optional[bool] = None
    order: Optional[int] = None


class CategoryCreateRequest(BaseModel):
    name: str = Field(..., max_length=200)
    description: str = Field(default="", max_length=2000)
    type: str = Field(default="Public")
    order: Optional[int] = None


class CategoryUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    type: Optional[str] = None
    order: Optional[int] = None


# ---------------------------------------------------------------------- apps


@router.get("/apps", response_model=List[Dict[str, Any]])
def list_apps(
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    return [app_to_dict(a) for a in CatalogService(db).list_apps(include_inactive=True)]


@router.post("/apps", response_model=Dict[str, Any])
def create_app(
    req: AppCreateRequest,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        app = CatalogService(db).create_app(req.model_dump(exclude_unset=True))
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return app_to_dict(app)


@router.get("/apps/{app_id}", response_model=Dict[str, Any])
def get_app(
    app_id: str,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        return app_to_dict(CatalogService(db).get_app(app_id))
    except AppHubException as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())


@router.patch("/apps/{app_id}", response_model=Dict[str, Any])
def update_app(
    app_id: str,
    req: AppUpdateRequest,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        app = CatalogService(db).update_app(app_id, req.model_dump(exclude_unset=True))
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return app_to_dict(app)


@router.post("/apps/{app_id}/toggle", response_model=Dict[str, Any])
def toggle_app(
    app_id: str,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        app = CatalogService(db).toggle_active(app_id)
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return app_to_dict(app)


@router.delete("/apps/{app_id}", response_model=Dict[str, Any])
def delete_app(
    app_id: str,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        CatalogService(db).delete_app(app_id)
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return {"ok": True, "id": app_id}


# ---------------------------------------------------------------- categories


@router.get("/categories", response_model=List[Dict[str, Any]])
def list_categories(
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    return [category_to_dict(c) for c in CatalogService(db).list_categories()]


@router.post("/categories", response_model=Dict[str, Any])
def create_category(
    req: CategoryCreateRequest,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        category = CatalogService(db).create_category(req.model_dump(exclude_unset=True))
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return category_to_dict(category)


@router.patch("/categories/{category_id}", response_model=Dict[str, Any])
def update_category(
    category_id: str,
    req: CategoryUpdateRequest,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        category = CatalogService(db).update_category(
            category_id, req.model_dump(exclude_unset=True)
        )
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return category_to_dict(category)


@router.delete("/categories/{category_id}", response_model=Dict[str, Any])
def delete_category(
    category_id: str,
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        CatalogService(db).delete_category(category_id)
        db.commit()
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return {"ok": True, "id": category_id}
