"""Building access requests and the lab access form hand-off."""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Mapping

import httpx

logger = logging.getLogger(__name__)

ACTIVATION_TIME = time(13, 0)

# Weekday numbers (Monday=0) that roll forward to the following Monday.
_ROLL_TO_MONDAY = {4, 5, 6}


def next_business_day(moment: datetime | date | None = None) -> datetime:
    """Activation time for an access request made at ``moment``.

    The next day at 13:00; requests on Friday, Saturday or Sunday roll to
    the following Monday.
    """
    if moment is None:
        moment = datetime.now()
    day = moment.date() if isinstance(moment, datetime) else moment
    if day.weekday() in _ROLL_TO_MONDAY:
        day += timedelta(days=7 - day.weekday())
    else:
        day += timedelta(days=1)
    return datetime.combine(day, ACTIVATION_TIME)


def access_request_payload(
    record: Mapping[str, Any], signature: str, submitted: datetime,
) -> dict[str, Any]:
    """Completed Access Control Request: the registration plus sign-off fields."""
    payload = {key: value for key, value in record.items() if value is not None}
    payload["Signature"] = f"{signature} {submitted.isoformat()}"
    payload["Date Activated"] = next_business_day(submitted).date().isoformat()
    payload["Timestamp"] = submitted.date().isoformat()
    return payload


def lab_access_form_fields(record: Mapping[str, Any]) -> dict[str, str]:
    if record.get("UT Affiliation") == "Non-UT":
        sponsor = record.get("Department or Company")
    else:
        sponsor = record.get("Professor or Supervisor")
    return {
        "entry.231462656": str(record.get("First Name") or ""),
        "entry.1494373819": str(record.get("Last Name") or ""),
        "entry.1067143744": str(record.get("UT EID") or ""),
        "entry.1139611484": str(record.get("Phone Number") or ""),
        "entry.1776831010": str(record.get("Email Address") or ""),
        "entry.1385700785": str(sponsor or ""),
    }


async def submit_lab_access_form(form_url: str, record: Mapping[str, Any]) -> bool:
    """Post the lab access request form for a new user.

    Failures are logged and reported as False; they never stop onboarding.
    """
    if not form_url:
        logger.info("No lab access form configured; skipping %s", record.get("UT EID"))
        return False
    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            resp = await client.post(form_url, data=lab_access_form_fields(record))
            resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Lab access form submission failed: %s", e)
        return False
    logger.info("Lab access form submitted: status %d", resp.status_code)
    return True
