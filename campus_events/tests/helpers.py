"""Row factories shared by the test modules."""
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from campus_events.models.events import Event
from campus_events.models.registrations import Registration, RegistrationStatus


def make_event(db: Session, event_id: str = "evt-1", capacity: int = 10, **kwargs) -> Event:
    kwargs.setdefault("seats_left", capacity)
    kwargs.setdefault("title", "Healthy Cooking Workshop")
    kwargs.setdefault("description", "Learn to cook.\nBring an apron.")
    kwargs.setdefault("location_name", "Campus Kitchen")
    kwargs.setdefault("start_at", datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc))
    kwargs.setdefault("end_at", datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc))
    event = Event(id=event_id, capacity=capacity, **kwargs)
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def make_registration(
    db: Session, event_id: str, user_id: str, status: str = RegistrationStatus.PENDING.value, **kwargs
) -> Registration:
    kwargs.setdefault("name", f"Student {user_id}")
    kwargs.setdefault("email", f"{user_id}@example.edu")
    registration = Registration(event_id=event_id, user_id=user_id, status=status, **kwargs)
    db.add(registration)
    db.commit()
    db.refresh(registration)
    return registration
