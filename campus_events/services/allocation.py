"""Seat allocation: the only code allowed to change ``Event.seats_left``.

Every change runs through :func:`run_in_transaction`. Both ``Event`` and
``Registration`` carry a version counter, so a concurrent writer makes the
flush fail with ``StaleDataError`` and the whole unit is replayed from fresh
reads.
"""
import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from campus_events.core.config import settings
from campus_events.core.exceptions import ConflictError, NotFoundError
from campus_events.models.events import Event
from campus_events.models.fields import parse_seat_count
from campus_events.models.registrations import Registration, RegistrationStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE serialization_failure, deadlock_detected, lock_not_available
_RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03"}
_RETRYABLE_MESSAGES = ("database is locked", "database table is locked", "deadlock", "lock wait timeout")


@dataclass(frozen=True)
class AllocationDecision:
    status: str
    changed: bool
    seats_left: Optional[int] = None


def is_lock_conflict(exc: OperationalError) -> bool:
    """True when the driver reports a lock or serialization failure, not an outage."""
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    message = str(orig).lower()
    return any(m in message for m in _RETRYABLE_MESSAGES)


def run_in_transaction(
    db: Session,
    work: Callable[[Session], T],
    *,
    max_attempts: Optional[int] = None,
    label: str = "transaction",
) -> T:
    """Run ``work`` and commit, replaying it on write conflicts.

    ``work`` must do all of its reads inside the call so a replay sees the
    current rows. Only version mismatches and lock errors are replayed; other
    database errors propagate. Raises ConflictError once ``max_attempts`` is
    exhausted.
    """
    attempts = max_attempts or settings.ALLOCATION_MAX_ATTEMPTS
    if db.in_transaction():
        db.commit()

    for attempt in range(1, attempts + 1):
        try:
            result = work(db)
            db.commit()
            return result
        except (StaleDataError, OperationalError) as exc:
            db.rollback()
            if isinstance(exc, OperationalError) and not is_lock_conflict(exc):
                raise
            logger.warning("%s conflict on attempt %d/%d: %s", label, attempt, attempts, exc)
            if attempt < attempts:
                time.sleep(random.uniform(0, 0.005 * 2**attempt))
        except Exception:
            db.rollback()
            raise

    raise ConflictError(f"{label} did not commit after {attempts} attempts")


def _load_event(db: Session, event_id: str) -> Optional[Event]:
    return db.get(Event, event_id, populate_existing=True)


def _load_registration(db: Session, event_id: str, user_id: str) -> Optional[Registration]:
    return db.get(Registration, (event_id, user_id), populate_existing=True)


def _decide(db: Session, event_id: str, user_id: str) -> AllocationDecision:
    event = _load_event(db, event_id)
    if event is None:
        raise NotFoundError(f"Event {event_id} not found")
    registration = _load_registration(db, event_id, user_id)
    if registration is None:
        raise NotFoundError(f"Registration {event_id}/{user_id} missing")

    if registration.status != RegistrationStatus.PENDING.value:
        return AllocationDecision(status=registration.status, changed=False)

    capacity = parse_seat_count(event.capacity, default=0)
    seats_left = parse_seat_count(event.seats_left, default=capacity)

    if seats_left > 0:
        status = RegistrationStatus.CONFIRMED.value
        seats_left -= 1
        event.seats_left = seats_left
        event.updated_at = datetime.now(timezone.utc)
    else:
        status = RegistrationStatus.WAITLIST.value

    registration.status = status
    return AllocationDecision(status=status, changed=True, seats_left=seats_left)


def allocate_seat(db: Session, event_id: str, user_id: str) -> AllocationDecision:
    """Confirm or waitlist a pending registration.

    Calling it again for a decided registration returns the stored status
    without writing anything.
    """
    decision = run_in_transaction(
        db, lambda s: _decide(s, event_id, user_id), label=f"allocate {event_id}/{user_id}"
    )
    if decision.changed:
        logger.info(
            "Registration %s/%s %s (seats_left=%s)", event_id, user_id, decision.status, decision.seats_left
        )
    return decision


def _increment(db: Session, event_id: str) -> Optional[int]:
    event = _load_event(db, event_id)
    if event is None:
        return None
    capacity = parse_seat_count(event.capacity, default=0)
    seats_left = parse_seat_count(event.seats_left, default=0)
    event.seats_left = min(seats_left + 1, capacity)
    event.updated_at = datetime.now(timezone.utc)
    return event.seats_left


def release_seat(db: Session, event_id: str) -> Optional[int]:
    """Give one seat back to the event. Returns the new count, or None if the event is gone."""
    seats_left = run_in_transaction(db, lambda s: _increment(s, event_id), label=f"release {event_id}")
    if seats_left is None:
        logger.info("Event %s no longer exists; nothing to release", event_id)
    else:
        logger.info("Released seat on event %s (seats_left=%d)", event_id, seats_left)
    return seats_left
