"""Email dispatch through Resend, plus the message bodies the workflows send."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import formataddr
from typing import Optional, Sequence

import pytz
import resend

from campus_events.core.config import settings
from campus_events.core.exceptions import DispatchError
from campus_events.services.calendar_invites import Attachment

logger = logging.getLogger(__name__)

# Chunk size for send_batch, the same as the Resend batch request limit
BATCH_SIZE = 100


@dataclass
class EmailMessage:
    to: str
    subject: str
    html: str
    to_name: Optional[str] = None
    attachments: list[Attachment] = field(default_factory=list)


class EmailDispatcher:
    """Thin wrapper over the Resend SDK. Construct only when an API key is set."""

    def __init__(self, api_key: str, sender_email: str, sender_name: str):
        self.api_key = api_key
        self.sender = formataddr((sender_name, sender_email))

    def _params(self, message: EmailMessage) -> dict:
        return {
            "from": self.sender,
            "to": [formataddr((message.to_name or "", message.to))],
            "subject": message.subject,
            "html": message.html,
            "attachments": [
                {
                    "filename": a.filename,
                    "content": a.content,
                    "content_type": a.content_type,
                }
                for a in message.attachments
            ],
        }

    def send(self, message: EmailMessage) -> Optional[str]:
        resend.api_key = self.api_key
        try:
            response = resend.Emails.send(self._params(message))
        except Exception as e:
            raise DispatchError(f"Failed to send email to {message.to}: {e}") from e
        logger.info("Email '%s' sent to %s", message.subject, message.to)
        return response.get("id") if isinstance(response, dict) else None

    def send_batch(self, messages: Sequence[EmailMessage]) -> int:
        """Send every message, one request each, in chunks of BATCH_SIZE.

        Resend's batch endpoint drops attachments, so messages carrying an
        invite go out individually. Stops at the first failure.
        """
        sent = 0
        for i in range(0, len(messages), BATCH_SIZE):
            chunk = messages[i:i + BATCH_SIZE]
            logger.info("Sending chunk %d (%d emails)", i // BATCH_SIZE + 1, len(chunk))
            for message in chunk:
                try:
                    self.send(message)
                except DispatchError as e:
                    raise DispatchError(f"Batch stopped after {sent} of {len(messages)} emails: {e}") from e
                sent += 1
        return sent


def get_dispatcher() -> Optional[EmailDispatcher]:
    """Return the configured dispatcher, or None when no API key is set."""
    if not settings.RESEND_API_KEY:
        return None
    return EmailDispatcher(settings.RESEND_API_KEY, settings.SENDER_EMAIL, settings.SENDER_NAME)


def format_local(value: Optional[datetime]) -> str:
    """Medium date, short time in the display timezone, e.g. '1 Mar 2024, 8:00 pm'."""
    if value is None:
        return ""
    local = value.astimezone(pytz.timezone(settings.DISPLAY_TIMEZONE))
    hour = local.hour % 12 or 12
    return f"{local.day} {local.strftime('%b %Y')}, {hour}:{local.minute:02d} {'am' if local.hour < 12 else 'pm'}"


def registration_subject(status: str, title: str) -> str:
    if status == "confirmed":
        return f"Registration Confirmed: {title}"
    return f"Waitlist Confirmation: {title}"


def registration_html(
    name: Optional[str],
    status: str,
    title: str,
    start: Optional[datetime],
    end: Optional[datetime],
    location_name: Optional[str],
) -> str:
    return f"""
    <p>Hi {name or 'there'},</p>
    <p>Your registration status: <strong>{status.upper()}</strong></p>
    <p><strong>{title}</strong><br/>
       {format_local(start)} – {format_local(end)}<br/>
       {location_name or ''}</p>
    <p>See attached calendar invite.</p>
    <p>{settings.SENDER_NAME}</p>"""


def reminder_subject(title: str, start: Optional[datetime]) -> str:
    return f"Reminder: {title} starts {format_local(start)}".rstrip()


def reminder_html(title: str, start: Optional[datetime], end: Optional[datetime], where: str) -> str:
    return f"""
    <p>Hi,</p>
    <p>This is a friendly reminder that <strong>{title}</strong> is starting soon.</p>
    <p><strong>When:</strong> {format_local(start)} – {format_local(end)}<br/>
       <strong>Where:</strong> {where}</p>
    <p>Please find the calendar invite attached.</p>
    <p>{settings.SENDER_NAME}</p>"""
