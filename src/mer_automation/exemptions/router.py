"""Basket exemption API router."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException

from mer_automation.common.exceptions import MerError
from mer_automation.common.responses import failure
from mer_automation.common.schemas import ActionResponse
from mer_automation.common.security import require_api_key
from mer_automation.exemptions.schemas import ExemptionCreate, ExemptionResponse

router = APIRouter()


def _get_registry():
    from mer_automation.deps import get_exemption_registry
    return get_exemption_registry()


@router.get("/exemptions", response_model=list[ExemptionResponse])
async def list_exemptions(_=Depends(require_api_key)):
    try:
        entries = await asyncio.to_thread(_get_registry().entries)
    except MerError as e:
        return failure(e)
    return [
        ExemptionResponse(user_name=e.user_name, exemption_reason=e.exemption_reason)
        for e in entries
    ]


@router.post("/exemptions", response_model=ExemptionResponse, status_code=201)
async def add_exemption(body: ExemptionCreate, _=Depends(require_api_key)):
    try:
        entry = await asyncio.to_thread(
            _get_registry().add, body.user_name, body.exemption_reason,
        )
    except MerError as e:
        return failure(e)
    return ExemptionResponse(user_name=entry.user_name, exemption_reason=entry.exemption_reason)


@router.delete("/exemptions/{user_name}", response_model=ActionResponse)
async def remove_exemption(user_name: str, _=Depends(require_api_key)):
    try:
        removed = await asyncio.to_thread(_get_registry().remove, user_name)
    except MerError as e:
        return failure(e)
    if not removed:
        raise HTTPException(status_code=404, detail="Exemption not found")
    return ActionResponse(success=True, message=f"Success: exemption for {user_name} removed")
