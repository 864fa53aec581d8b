from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from apphub.api.dependencies.auth import CurrentUser, require_super_admin
from apphub.exceptions import MetadataFetchError
from apphub.integrations.metadata import MetadataClient

router = APIRouter(prefix="/metadata", tags=["Metadata"])


class MetadataRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2000)


def get_metadata_client() -> MetadataClient:
    return MetadataClient()


@router.post("", response_model=Dict[str, Any])
def fetch_metadata(
    req: MetadataRequest,
    _: CurrentUser = Depends(require_super_admin),
    client: MetadataClient = Depends(get_metadata_client),
) -> Dict[str, Any]:
    """Scrape icon, social image, title and description from a page."""
    try:
        return client.fetch(req.url).as_dict()
    except MetadataFetchError as exc:
        raise HTTPException(status_code=500, detail=exc.to_dict())
