from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from apps.api.models import PushRequest, SweepRequest
from apps.api.services import ProviderService, get_provider
from core.exceptions import InvalidRecordError
from core.sync import Params, Reply

router = APIRouter(prefix="/resources", tags=["resources"])


@router.post("/{resource}/push", response_model=Reply)
async def push_resources(
    resource: str,
    payload: PushRequest,
    response: Response,
    provider: ProviderService = Depends(get_provider),
) -> Reply:
    try:
        params = Params.parse(payload.envelope(resource))
    except InvalidRecordError as exc:
        reply = Reply.failure(exc)
    else:
        reply = await provider.push(params)
    response.status_code = reply.status
    return reply


@router.post("/{resource}/deleted", response_model=Reply)
async def update_deleted(
    resource: str,
    payload: SweepRequest,
    response: Response,
    provider: ProviderService = Depends(get_provider),
) -> Reply:
    try:
        params = Params.parse(payload.envelope(resource))
    except InvalidRecordError as exc:
        reply = Reply.failure(exc)
    else:
        reply = await provider.update_deleted(params)
    response.status_code = reply.status
    return reply
