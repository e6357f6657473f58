"""Active users API router."""

from fastapi import APIRouter, Depends

from mer_automation.activity.schemas import ActiveUsersResponse
from mer_automation.common.exceptions import MerError
from mer_automation.common.responses import failure
from mer_automation.common.security import require_api_key

router = APIRouter()


def _get_service():
    from mer_automation.deps import get_active_user_service
    return get_active_user_service()


def _get_db():
    from mer_automation.deps import get_db
    return get_db()


@router.post("/active-users/update", response_model=ActiveUsersResponse)
async def update_active_users(_=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            summary = await svc.update_active_users(session)
    except MerError as e:
        return failure(e)
    return ActiveUsersResponse(
        success=True,
        message=f"Success: {summary['users']} active users updated",
        users=summary["users"],
        months=summary["months"],
    )
