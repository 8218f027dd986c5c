from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from campus_events.core.security import get_current_caller
from campus_events.database.db import get_db
from campus_events.schemas.reminders import EventReminderRequest, ReminderOut, ReminderRequest
from campus_events.services.reminders import send_event_reminder

router = APIRouter(tags=["reminders"])


@router.post("/reminders", response_model=ReminderOut, response_model_exclude_none=True)
def send_reminder(
    payload: Optional[ReminderRequest] = None,
    db: Session = Depends(get_db),
    caller: Optional[dict] = Depends(get_current_caller),
):
    """Callable form: ``{"eventId": ..., "onlyConfirmed": true}``."""
    payload = payload or ReminderRequest()
    return send_event_reminder(db, caller, payload.event_id, payload.only_confirmed)


@router.post("/events/{event_id}/reminders", response_model=ReminderOut, response_model_exclude_none=True)
def send_reminder_for_event(
    event_id: str,
    payload: Optional[EventReminderRequest] = None,
    db: Session = Depends(get_db),
    caller: Optional[dict] = Depends(get_current_caller),
):
    only_confirmed = payload.only_confirmed if payload else True
    return send_event_reminder(db, caller, event_id, only_confirmed)
