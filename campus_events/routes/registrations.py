import logging

from fastapi import APIRouter, Depends, HTTPException, status
from kombu.exceptions import OperationalError as BrokerError
from sqlalchemy.orm import Session

from campus_events.core.security import require_api_key
from campus_events.database.db import get_db
from campus_events.models.registrations import Registration
from campus_events.schemas.registrations import RegistrationCreate, RegistrationOut
from campus_events.services.registrations import create_registration, delete_registration
from campus_events.tasks import registration_created_task, registration_deleted_task

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/events/{event_id}/registrations",
    tags=["registrations"],
    dependencies=[Depends(require_api_key)],
)


def _enqueue(task, *args):
    """Hand the trigger to the worker; run it in-process if the broker is down."""
    try:
        task.delay(*args)
    except BrokerError:
        logger.exception("Broker unavailable, running %s inline", task.name)
        task.apply(args=args)


@router.post("", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED)
def register(event_id: str, payload: RegistrationCreate, db: Session = Depends(get_db)):
    registration = create_registration(
        db, event_id=event_id, user_id=payload.user_id, name=payload.name, email=payload.email
    )
    out = RegistrationOut.model_validate(registration)
    _enqueue(registration_created_task, event_id, payload.user_id)
    return out


@router.get("/{user_id}", response_model=RegistrationOut)
def get_registration(event_id: str, user_id: str, db: Session = Depends(get_db)):
    registration = db.get(Registration, (event_id, user_id))
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")
    return registration


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def unregister(event_id: str, user_id: str, db: Session = Depends(get_db)):
    previous_status = delete_registration(db, event_id=event_id, user_id=user_id)
    _enqueue(registration_deleted_task, event_id, user_id, previous_status)
