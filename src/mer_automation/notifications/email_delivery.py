"""Email delivery — SendGrid / Resend integration."""

import base64
import logging
from dataclasses import dataclass

from mer_automation.common.exceptions import DeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    mime_type: str = "application/octet-stream"

    @property
    def encoded(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


class EmailSender:
    """Sends notification emails.

    Supports SendGrid and Resend via environment configuration.
    Falls back to logging if no provider is configured.
    """

    def __init__(
        self,
        provider: str = "",
        api_key: str = "",
        from_email: str = "mer-automation@example.edu",
        from_name: str = "MER Automation",
    ):
        self.provider = provider.lower()  # "sendgrid" or "resend"
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name

    async def send(
        self,
        to_email: str,
        subject: str,
        body: str,
        attachments: list[Attachment] | None = None,
    ) -> bool:
        """Send one email. Raises DeliveryError when the provider rejects it."""
        attachments = attachments or []
        if self.provider == "sendgrid":
            sent = await self._send_sendgrid(to_email, subject, body, attachments)
        elif self.provider == "resend":
            sent = await self._send_resend(to_email, subject, body, attachments)
        else:
            logger.info("No email provider configured; %r for %s not sent", subject, to_email)
            return False

        if not sent:
            raise DeliveryError(f"Could not deliver {subject!r} to {to_email}")
        return True

    async def _send_sendgrid(
        self, to: str, subject: str, body: str, attachments: list[Attachment],
    ) -> bool:
        """Send via SendGrid v3 API."""
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        }
        if attachments:
            payload["attachments"] = [
                {"content": a.encoded, "filename": a.filename, "type": a.mime_type}
                for a in attachments
            ]
        try:
            import httpx

            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    "https://api.sendgrid.com/v3/mail/send",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                    timeout=30,
                )
                if resp.status_code in (200, 202):
                    logger.info("SendGrid email sent to %s", to)
                    return True
                logger.warning("SendGrid error: %s %s", resp.status_code, resp.text)
                return False
        except Exception:
            logger.exception("SendGrid send failed")
            return False

    async def _send_resend(
        self, to: str, subject: str, body: str, attachments: list[Attachment],
    ) -> bool:
        """Send via Resend API."""
        payload = {
            "from": f"{self.from_name} <{self.from_email}>",
            "to": [to],
            "subject": subject,
            "text": body,
        }
        if attachments:
            payload["attachments"] = [
                {"filename": a.filename, "content": a.encoded} for a in attachments
            ]
        try:
            import httpx

            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    "https://api.resend.com/emails",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                    timeout=30,
                )
                if resp.status_code in (200, 201):
                    logger.info("Resend email sent to %s", to)
                    return True
                logger.warning("Resend error: %s %s", resp.status_code, resp.text)
                return False
        except Exception:
            logger.exception("Resend send failed")
            return False
