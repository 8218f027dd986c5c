from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from campus_events.database.db import get_db
from campus_events.models.events import Event
from campus_events.schemas.events import EventCreate, EventOut, EventStatsOut
from campus_events.services.registrations import get_event_stats

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    event = Event(**payload.model_dump(), seats_left=payload.capacity)
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    event = db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("/{event_id}/stats", response_model=EventStatsOut)
def event_stats(event_id: str, db: Session = Depends(get_db)):
    stats = get_event_stats(db, event_id)
    if not stats:
        raise HTTPException(status_code=404, detail="Event not found")
    return stats
