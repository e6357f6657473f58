"""Cleanroom basket API router."""

import asyncio

from fastapi import APIRouter, Depends

from mer_automation.baskets.records import BasketIndexEntry, BasketRequest
from mer_automation.baskets.schemas import (
    AssignmentResponse,
    BasketCreate,
    BasketRequestCreate,
    BasketResponse,
    BasketReturn,
    PurgeResponse,
    ReconcileResponse,
    ReturnResponse,
)
from mer_automation.common.exceptions import MerError
from mer_automation.common.responses import failure
from mer_automation.common.security import require_api_key

router = APIRouter()


def _get_service():
    from mer_automation.deps import get_basket_service
    return get_basket_service()


def _get_active_users():
    from mer_automation.deps import get_active_user_service
    return get_active_user_service()


def _get_exemptions():
    from mer_automation.deps import get_exemption_registry
    return get_exemption_registry()


def _get_db():
    from mer_automation.deps import get_db
    return get_db()


def _basket_response(entry: BasketIndexEntry) -> BasketResponse:
    return BasketResponse(
        basket_id=entry.basket_id,
        cleanroom=entry.zone,
        available=entry.available,
        active=entry.active,
        record_row=entry.record_row,
        eid=entry.eid,
        email=entry.email,
        first_name=entry.first_name,
        last_name=entry.last_name,
        assigned_at=entry.assigned_at,
    )


def _basket_request(body: BasketRequestCreate) -> BasketRequest:
    fields = body.model_dump(exclude_none=True)
    return BasketRequest(**fields)


def _assignment_response(result) -> AssignmentResponse:
    if result.assigned:
        message = f"Success: basket {result.basket_id} assigned"
    else:
        message = f"No basket available in {result.zone}"
    return AssignmentResponse(
        success=result.assigned,
        message=message,
        basket_id=result.basket_id,
        cleanroom=result.zone,
        reassigned=result.reassigned,
    )


# ── Index ──

@router.get("/baskets", response_model=list[BasketResponse])
async def list_baskets(_=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            entries = await svc.entries(session)
    except MerError as e:
        return failure(e)
    return [_basket_response(entry) for entry in entries]


@router.post("/baskets", response_model=BasketResponse, status_code=201)
async def add_basket(body: BasketCreate, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            await svc.ensure_tables(session)
            entry = await svc.add_basket(session, body.basket_id, body.cleanroom)
    except MerError as e:
        return failure(e)
    return _basket_response(entry)


@router.get("/baskets/{basket_id}", response_model=BasketResponse)
async def get_basket(basket_id: str, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            entry = await svc.lookup(session, basket_id)
    except MerError as e:
        return failure(e)
    return _basket_response(entry)


# ── Assignment ──

@router.post("/baskets/assign", response_model=AssignmentResponse)
async def assign_basket(body: BasketRequestCreate, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            result = await svc.assign(session, _basket_request(body))
    except MerError as e:
        return failure(e)
    return _assignment_response(result)


@router.post("/baskets/requests", response_model=AssignmentResponse)
async def submit_basket_request(body: BasketRequestCreate, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            result = await svc.submit_request(session, _basket_request(body))
    except MerError as e:
        return failure(e)
    return _assignment_response(result)


@router.post("/baskets/return", response_model=ReturnResponse)
async def return_baskets(body: BasketReturn, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            report = await svc.return_baskets(session, body.basket_ids)
    except MerError as e:
        return failure(e)
    if report.success:
        message = "Success: Basket returned successfully."
    else:
        message = "Failure: Error returning basket - " + "; ".join(report.errors.values())
    return ReturnResponse(
        success=report.success,
        message=message,
        errors=list(report.errors.values()),
        returned=report.returned,
    )


# ── Activity ──

@router.post("/baskets/reconcile", response_model=ReconcileResponse)
async def reconcile_baskets(_=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        exemptions = await asyncio.to_thread(_get_exemptions().names)
        async with db.get_session() as session:
            active_names = await _get_active_users().active_user_names(session)
            changes = await svc.update_active_status(session, active_names, exemptions)
    except MerError as e:
        return failure(e)
    return ReconcileResponse(
        success=True,
        message=f"Success: {len(changes)} basket status change(s)",
        changes=[change.description for change in changes],
    )


@router.post("/baskets/purge-warnings", response_model=PurgeResponse)
async def send_purge_warnings(_=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            report = await svc.send_purge_warnings(session)
    except MerError as e:
        return failure(e)
    return PurgeResponse(
        success=report.failed == 0,
        message=f"Purge warnings sent: {report.sent} of {len(report.candidates)}",
        candidates=report.candidates,
        sent=report.sent,
        failed=report.failed,
    )
