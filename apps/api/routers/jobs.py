from __future__ import annotations

from fastapi import APIRouter, Depends

from apps.api.models import JobResponse
from apps.api.services import ProviderService, get_provider
from core.sync import JobParams

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("", response_model=JobResponse)
async def update_sync_job(payload: JobParams, provider: ProviderService = Depends(get_provider)) -> JobResponse:
    index = await provider.update_sync_job(payload)
    return JobResponse(index=index)
