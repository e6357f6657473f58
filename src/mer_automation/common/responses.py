"""Conversion of domain errors into action responses."""

from fastapi.responses import JSONResponse

from mer_automation.common.exceptions import MerError
from mer_automation.common.schemas import ActionResponse

_STATUS_CODES = {
    "NOT_FOUND": 404,
    "INVALID": 422,
    "DELIVERY_FAILED": 502,
    "NOT_CONFIGURED": 503,
}


def failure(error: MerError, errors: list[str] | None = None) -> JSONResponse:
    body = ActionResponse(
        success=False,
        message=f"Failure: {error.message}",
        errors=errors or [],
    )
    return JSONResponse(
        status_code=_STATUS_CODES.get(error.code, 400),
        content=body.model_dump(),
    )
