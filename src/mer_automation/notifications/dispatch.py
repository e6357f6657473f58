"""Fire-and-log delivery used after a state change has been committed."""

import logging

from mer_automation.common.exceptions import DeliveryError
from mer_automation.notifications.email_delivery import EmailSender
from mer_automation.notifications.messages import OutboundEmail

logger = logging.getLogger(__name__)


async def deliver(sender: EmailSender | None, message: OutboundEmail) -> bool:
    """Send ``message``; delivery failures are logged and reported as False."""
    if sender is None:
        logger.info("No email sender; %r for %s not sent", message.subject, message.to)
        return False
    try:
        return await sender.send(
            message.to, message.subject, message.body, message.attachments,
        )
    except DeliveryError as e:
        logger.warning("Notification not delivered: %s", e.message)
        return False
