"""Outbound notifications — email delivery and message content."""

from mer_automation.notifications.dispatch import deliver
from mer_automation.notifications.email_delivery import Attachment, EmailSender
from mer_automation.notifications.messages import OutboundEmail

__all__ = ["Attachment", "EmailSender", "OutboundEmail", "deliver"]
