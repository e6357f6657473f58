"""Registration, badge and onboarding API router."""

from fastapi import APIRouter, Depends, Query

from mer_automation.common.exceptions import MerError, ValidationError
from mer_automation.common.responses import failure
from mer_automation.common.security import require_api_key
from mer_automation.registration.schemas import (
    BadgeResponse,
    OnboardingRequest,
    OnboardingResponse,
    RegistrationCreate,
    RegistrationResponse,
)

router = APIRouter()


def _get_service():
    from mer_automation.deps import get_registration_service
    return get_registration_service()


def _get_db():
    from mer_automation.deps import get_db
    return get_db()


@router.get("/badges", response_model=list[BadgeResponse])
async def get_badges(
    rows: str | None = Query(None),
    eid: str | None = Query(None),
    _=Depends(require_api_key),
):
    svc = _get_service()
    db = _get_db()
    try:
        if not rows and not eid:
            raise ValidationError("Required parameters not provided")
        async with db.get_session() as session:
            if rows:
                badges = await svc.badges_for_rows(session, rows)
            else:
                badges = await svc.badges_for_eid(session, eid)
    except MerError as e:
        return failure(e)
    return [BadgeResponse(**badge.to_dict()) for badge in badges]


@router.post("/registrations", response_model=RegistrationResponse, status_code=201)
async def register_user(body: RegistrationCreate, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            result = await svc.process_registration(session, body.to_record())
    except MerError as e:
        return failure(e)
    return RegistrationResponse(
        success=True,
        message=f"Success: registration stored in row {result.row_number}",
        row_number=result.row_number,
        lab_access_submitted=result.lab_access_submitted,
        access_request_sent=result.access_request_sent,
        supplies_sent=result.supplies_sent,
    )


@router.post("/onboarding/{action}", response_model=OnboardingResponse)
async def send_onboarding(action: str, body: OnboardingRequest, _=Depends(require_api_key)):
    svc = _get_service()
    try:
        report = await svc.send_onboarding_emails(action, body.emails)
    except MerError as e:
        return failure(e)
    return OnboardingResponse(
        success=not report.failed,
        message="Success: Email sent" if not report.failed else "Failure: some emails not sent",
        sent=report.sent,
        failed=report.failed,
    )
