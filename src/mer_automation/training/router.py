"""Safety training and quiz API router."""

from fastapi import APIRouter, Depends

from mer_automation.common.exceptions import MerError
from mer_automation.common.responses import failure
from mer_automation.common.schemas import ActionResponse
from mer_automation.common.security import require_api_key
from mer_automation.training.schemas import (
    QuizDispatchResponse,
    QuizInviteRequest,
    QuizResultResponse,
    QuizSubmissionCreate,
    TrainingRequestCreate,
    TrainingSessionsResponse,
)
from mer_automation.training.service import QuizSubmission, Trainee

router = APIRouter()


def _get_service():
    from mer_automation.deps import get_training_service
    return get_training_service()


def _get_db():
    from mer_automation.deps import get_db
    return get_db()


def _trainee(body) -> Trainee:
    return Trainee(
        eid=body.eid, first_name=body.first_name,
        last_name=body.last_name, email=body.email,
    )


# ── Training sessions ──

@router.get("/training/sessions", response_model=TrainingSessionsResponse)
async def list_training_sessions(_=Depends(require_api_key)):
    svc = _get_service()
    try:
        sessions = await svc.training_dropdown_choices()
    except MerError as e:
        return failure(e)
    return TrainingSessionsResponse(sessions=sessions)


@router.post("/training/requests", response_model=ActionResponse)
async def request_training(body: TrainingRequestCreate, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            added = await svc.register_request(session, _trainee(body), body.training_session)
    except MerError as e:
        return failure(e)
    if added:
        message = f"Success: {body.email} added to {body.training_session}"
    else:
        message = f"{body.email} is already a guest of {body.training_session}"
    return ActionResponse(success=True, message=message)


@router.post("/training/quiz-dispatch", response_model=QuizDispatchResponse)
async def dispatch_training_quiz(_=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            report = await svc.send_training_group_quiz(session)
    except MerError as e:
        return failure(e)
    return QuizDispatchResponse(
        success=not report.failed,
        message=f"Quiz sent to {len(report.sent)} guest(s)",
        event_id=report.event_id,
        sent=report.sent,
        skipped=report.skipped,
        failed=report.failed,
    )


# ── Quiz ──

@router.post("/quiz/invites", response_model=ActionResponse)
async def send_quiz_invites(body: QuizInviteRequest, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            sent = await svc.send_quiz_invites(session, body.rows)
    except MerError as e:
        return failure(e)
    return ActionResponse(success=True, message=f"Success: {sent} quiz email(s) sent")


@router.post("/quiz/submissions", response_model=QuizResultResponse)
async def grade_quiz(body: QuizSubmissionCreate, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    submission = QuizSubmission(
        trainee=_trainee(body),
        score=body.score,
        total_points=body.total_points,
    )
    if body.timestamp is not None:
        submission.timestamp = body.timestamp
    try:
        async with db.get_session() as session:
            result = await svc.grade_submission(session, submission)
    except MerError as e:
        return failure(e)
    return QuizResultResponse(
        success=True,
        message="Passed Quiz" if result.passed else "Failed Quiz",
        passed=result.passed,
        emailed=result.emailed,
    )
