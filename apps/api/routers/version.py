from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from apps.api.models import VersionResponse
from apps.api.services import ProviderService, get_provider

router = APIRouter(prefix="/version", tags=["version"])


@router.get("", response_model=VersionResponse)
async def check_version(
    version: str = Query(..., min_length=1),
    provider: ProviderService = Depends(get_provider),
) -> VersionResponse:
    return VersionResponse(version=provider.version, matched=provider.check_version(version))
