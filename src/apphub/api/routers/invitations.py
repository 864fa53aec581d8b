from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from apphub.api.dependencies.auth import CurrentUser, get_event_bus, require_super_admin
from apphub.api.serializers import invitation_to_dict
from apphub.database import get_db
from apphub.events.event_bus import EventBus
from apphub.exceptions import AppHubException
from apphub.invitations.service import InvitationService, build_registration_link

router = APIRouter(prefix="/invitations", tags=["Invitations"])


class InvitationCreateRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=200)
    role: str = Field(default="user", max_length=20)


@router.get("", response_model=List[Dict[str, Any]])
def list_invitations(
    _: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    return [invitation_to_dict(i) for i in InvitationService(db).list_invitations()]


@router.post("", response_model=Dict[str, Any])
def create_invitation(
    req: InvitationCreateRequest,
    user: CurrentUser = Depends(require_super_admin),
    db: Session = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
) -> Dict[str, Any]:
    try:
        invitation = InvitationService(db, bus).create_invitation(
            email=req.email, role=req.role, actor_id=user.id
        )
    except AppHubException as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    result = invitation_to_dict(invitation)
    result["token"] = invitation.token
    result["registration_link"] = build_registration_link(invitation.token)
    return result


@router.get("/validate", response_model=Dict[str, Any])
def validate_invitation(
    token: Optional[str] = None,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Check a registration link before showing the sign-up form."""
    try:
        invitation = InvitationService(db).validate_token(token)
    except AppHubException as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return {"valid": True, "email": invitation.email, "role": invitation.role}
