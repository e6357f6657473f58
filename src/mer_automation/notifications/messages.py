"""Plain-text message content for every email the automation sends."""

import json
from dataclasses import dataclass, field
from typing import Any

from mer_automation.notifications.email_delivery import Attachment

ONBOARDING_STEPS = [
    "Request safety training",
    "Attend safety training",
    "Pass quiz",
    "Submit MER User Registration form",
    "Get badge, basket, glasses from Facilities Office (1.108)",
]


@dataclass
class OutboundEmail:
    to: str
    subject: str
    body: str
    attachments: list[Attachment] = field(default_factory=list)


def progress_footer(current_step: int) -> str:
    """Onboarding checklist with steps up to ``current_step`` ticked."""
    lines = ["", "Onboarding progress:"]
    for number, step in enumerate(ONBOARDING_STEPS, start=1):
        mark = "x" if number <= current_step else " "
        lines.append(f"  [{mark}] {number}. {step}")
    return "\n".join(lines)


# ── Baskets ──

def basket_qr_payload(
    eid: str, name: str, phone: str, email: str, basket_id: str, assigned: str,
) -> dict[str, Any]:
    return {
        "eid": eid,
        "name": name,
        "phone": phone,
        "email": email,
        "basket": basket_id,
        "assigned": assigned,
    }


def basket_assigned(
    to: str, name: str, basket_id: str, qr_payload: dict[str, Any],
) -> OutboundEmail:
    body = (
        f"Hi {name},\n\n"
        f"You have been assigned cleanroom basket {basket_id}.\n"
        "Print the attached basket label and keep it on the basket at all times.\n"
        + progress_footer(5)
    )
    label = Attachment(
        filename=f"Basket {basket_id} {qr_payload.get('assigned', '')} {name}.json",
        content=json.dumps(qr_payload).encode("utf-8"),
        mime_type="application/json",
    )
    return OutboundEmail(to, "Cleanroom Basket Assigned", body, [label])


def basket_unavailable(to: str, name: str, cleanroom: str) -> OutboundEmail:
    body = (
        f"Hi {name},\n\n"
        f"There are currently no free baskets in {cleanroom}. "
        "You will be contacted once one becomes available.\n"
    )
    return OutboundEmail(to, "No Cleanroom Basket Available", body)


def basket_purge(
    to: str, first_name: str, last_name: str, basket_id: str, url: str,
) -> OutboundEmail:
    body = (
        f"Hi {first_name} {last_name},\n\n"
        f"Basket {basket_id} is assigned to you but no tool usage has been "
        "recorded for you recently. The basket will be purged unless you "
        f"submit the correction form:\n\n  {url}\n"
    )
    return OutboundEmail(to, "Inactive Basket Purge Notification", body)


# ── Training & quiz ──

def quiz_invite(to: str, name: str, eid: str, url: str) -> OutboundEmail:
    body = f"Hi {name},\n\nPlease complete the safety quiz:\n\n  {url}\n" + progress_footer(3)
    return OutboundEmail(to, f"Quiz | Safety Training | {eid}", body)


def quiz_result(to: str, name: str, eid: str, passed: bool, url: str) -> OutboundEmail:
    if passed:
        title = "Passed Quiz"
        text = "You passed the safety quiz. Next, submit the MER user registration form:"
        step = 4
    else:
        title = "Failed Quiz"
        text = "A perfect score is required to pass. Please retake the quiz:"
        step = 3
    body = f"Hi {name},\n\n{text}\n\n  {url}\n" + progress_footer(step)
    return OutboundEmail(to, f"{title} | Safety Training | {eid}", body)


def training_request(to: str, url: str) -> OutboundEmail:
    body = (
        "Welcome to MER.\n\n"
        f"To get started, request a safety training session:\n\n  {url}\n"
        + progress_footer(1)
    )
    return OutboundEmail(to, "MER | New User Onboarding", body)


def building_access(to: str, url: str) -> OutboundEmail:
    body = (
        "Hi MER User,\n\n"
        f"Submit the MER user registration form to request building access:\n\n  {url}\n"
        + progress_footer(4)
    )
    return OutboundEmail(to, "Passed Quiz | Safety Training | MER User", body)


def cleanroom_supplies(to: str, name: str, url: str, eid: str = "MER User") -> OutboundEmail:
    body = (
        f"Hi {name},\n\n"
        f"Request your cleanroom basket and supplies here:\n\n  {url}\n"
        + progress_footer(5)
    )
    return OutboundEmail(to, f"Get Cleanroom Supplies | Safety Training | {eid}", body)


def access_control_request(to: str, payload: dict[str, Any]) -> OutboundEmail:
    body = (
        "A completed Access Control Request has been created by a new user.\n\n"
        + "\n".join(f"{key}: {value}" for key, value in payload.items())
    )
    attachment = Attachment(
        filename=(
            f"Access Control Request - {payload.get('Last Name', '')}, "
            f"{payload.get('First Name', '')} - {payload.get('UT EID', '')}.json"
        ),
        content=json.dumps(payload).encode("utf-8"),
        mime_type="application/json",
    )
    return OutboundEmail(to, "Completed: Access Control Request", body, [attachment])
