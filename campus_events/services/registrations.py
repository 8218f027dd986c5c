"""Registration lifecycle: what happens when a registration is created or deleted.

The creation and deletion handlers are driven by Celery tasks that may be
delivered more than once, so both are safe to replay: the seat decision is
made once per registration and ``mailed_at`` guards the email.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from campus_events.core.exceptions import AlreadyExistsError, NotFoundError
from campus_events.models.events import Event
from campus_events.models.fields import parse_seat_count, parse_timestamp
from campus_events.models.registrations import Registration, RegistrationStatus
from campus_events.services.allocation import allocate_seat, release_seat, run_in_transaction
from campus_events.services.calendar_invites import build_ics, ics_attachment
from campus_events.services.notifications import (
    EmailDispatcher,
    EmailMessage,
    get_dispatcher,
    registration_html,
    registration_subject,
)

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class NotificationOutcome:
    status: str
    mailed: bool
    skipped: Optional[str] = None


def create_registration(
    db: Session, *, event_id: str, user_id: str, name: Optional[str], email: Optional[str]
) -> Registration:
    if db.get(Event, event_id) is None:
        raise NotFoundError(f"Event {event_id} not found")
    if db.get(Registration, (event_id, user_id)) is not None:
        raise AlreadyExistsError(f"User {user_id} is already registered for event {event_id}")

    registration = Registration(
        event_id=event_id,
        user_id=user_id,
        name=name,
        email=email,
        status=RegistrationStatus.PENDING.value,
    )
    db.add(registration)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise AlreadyExistsError(f"User {user_id} is already registered for event {event_id}") from e
    db.refresh(registration)
    return registration


def delete_registration(db: Session, *, event_id: str, user_id: str) -> str:
    """Delete a registration and return the status it had when deleted.

    The version check on delete makes sure the returned status is the one
    that was actually removed, even if an allocation commits concurrently.
    """

    def _delete(s: Session) -> str:
        registration = s.get(Registration, (event_id, user_id), populate_existing=True)
        if registration is None:
            raise NotFoundError(f"Registration {event_id}/{user_id} not found")
        status = registration.status
        s.delete(registration)
        return status

    return run_in_transaction(db, _delete, label=f"delete {event_id}/{user_id}")


def handle_registration_created(
    db: Session, event_id: str, user_id: str, dispatcher=_UNSET
) -> Optional[NotificationOutcome]:
    """Decide the seat, then email the registrant once.

    Returns None when the email step was skipped because the rows vanished or
    the registrant was already mailed.
    """
    if dispatcher is _UNSET:
        dispatcher = get_dispatcher()

    decision = allocate_seat(db, event_id, user_id)

    event = db.get(Event, event_id, populate_existing=True)
    registration = db.get(Registration, (event_id, user_id), populate_existing=True)
    if event is None or registration is None:
        logger.info("Registration %s/%s vanished before notification", event_id, user_id)
        return None
    if registration.mailed_at is not None:
        logger.info("Registration %s/%s already mailed at %s", event_id, user_id, registration.mailed_at)
        return None

    outcome = _notify(dispatcher, event, registration, decision.status)

    registration.mailed_at = datetime.now(timezone.utc)
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.info("Registration %s/%s changed while mailing; mailed_at not recorded", event_id, user_id)
    return outcome


def _notify(
    dispatcher: Optional[EmailDispatcher], event: Event, registration: Registration, status: str
) -> NotificationOutcome:
    start = parse_timestamp(event.start_at)
    end = parse_timestamp(event.end_at)

    if dispatcher is None:
        logger.warning("RESEND_API_KEY not set; skip emailing %s/%s", event.id, registration.user_id)
        return NotificationOutcome(status=status, mailed=False, skipped="dispatcher not configured")
    if not registration.email:
        logger.warning("Registration %s/%s has no email address", event.id, registration.user_id)
        return NotificationOutcome(status=status, mailed=False, skipped="no email address")

    ics = build_ics(
        seed=registration.user_id,
        title=event.title,
        start=start,
        end=end,
        location_name=event.location_name,
        description=event.description,
    )
    message = EmailMessage(
        to=registration.email,
        to_name=registration.name,
        subject=registration_subject(status, event.title),
        html=registration_html(registration.name, status, event.title, start, end, event.location_name),
        attachments=[ics_attachment(event.title, ics)],
    )
    dispatcher.send(message)
    return NotificationOutcome(status=status, mailed=True)


def handle_registration_deleted(db: Session, event_id: str, previous_status: Optional[str]) -> Optional[int]:
    """Release the seat held by a deleted registration, if it held one."""
    if previous_status != RegistrationStatus.CONFIRMED.value:
        logger.info("Deleted registration on %s was %s; no seat to release", event_id, previous_status)
        return None
    return release_seat(db, event_id)


def get_event_stats(db: Session, event_id: str) -> dict:
    event = db.get(Event, event_id)
    if not event:
        return {}

    rows = db.execute(
        select(Registration.status, func.count())
        .where(Registration.event_id == event_id)
        .group_by(Registration.status)
    ).all()
    counts = {status: count for status, count in rows}
    capacity = parse_seat_count(event.capacity, default=0)

    return {
        "event_id": event.id,
        "capacity": capacity,
        "seats_left": parse_seat_count(event.seats_left, default=capacity),
        "confirmed_count": int(counts.get(RegistrationStatus.CONFIRMED.value, 0)),
        "waitlist_count": int(counts.get(RegistrationStatus.WAITLIST.value, 0)),
        "pending_count": int(counts.get(RegistrationStatus.PENDING.value, 0)),
    }
