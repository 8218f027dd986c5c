import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from campus_events.core.exceptions import InvalidArgumentError, NotFoundError, UnauthenticatedError
from campus_events.models.events import Event
from campus_events.models.fields import parse_timestamp
from campus_events.models.registrations import Registration, RegistrationStatus
from campus_events.services.calendar_invites import build_ics, ics_attachment
from campus_events.services.notifications import EmailMessage, get_dispatcher, reminder_html, reminder_subject

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class ReminderResult:
    sent: int
    only_confirmed: Optional[bool] = None
    message: Optional[str] = None


def send_event_reminder(
    db: Session,
    caller: Optional[dict],
    event_id: Optional[str],
    only_confirmed: bool = True,
    dispatcher=_UNSET,
) -> ReminderResult:
    """Email every registrant (or only confirmed ones) a reminder with one shared invite."""
    if not caller:
        raise UnauthenticatedError("Login required.")
    if not event_id:
        raise InvalidArgumentError("eventId is required.")

    event = db.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event not found.")

    query = select(Registration).where(Registration.event_id == event_id)
    if only_confirmed:
        query = query.where(Registration.status == RegistrationStatus.CONFIRMED.value)
    recipients = [
        (r.email, r.name or "Participant")
        for r in db.scalars(query.order_by(Registration.created_at, Registration.user_id))
        if r.email
    ]
    logger.info("Reminder for event %s: %d recipients", event_id, len(recipients))

    if dispatcher is _UNSET:
        dispatcher = get_dispatcher()
    if dispatcher is None:
        logger.warning("RESEND_API_KEY not set; skip emailing.")
        return ReminderResult(sent=0, message="Email dispatcher not configured")

    start = parse_timestamp(event.start_at)
    end = parse_timestamp(event.end_at)
    location = event.location_name or event.location_address or ""
    ics = build_ics(
        seed=f"bulk-{event.id}",
        title=event.title,
        start=start,
        end=end,
        location_name=location,
        description=event.description,
    )
    attachment = ics_attachment(event.title, ics)
    subject = reminder_subject(event.title, start)
    html = reminder_html(event.title, start, end, location or "See event page")

    messages = [
        EmailMessage(to=email, to_name=name, subject=subject, html=html, attachments=[attachment])
        for email, name in recipients
    ]
    dispatcher.send_batch(messages)
    logger.info("Reminder for event %s sent to %d recipients", event_id, len(messages))
    return ReminderResult(sent=len(messages), only_confirmed=only_confirmed)
