"""Calendar invite generation (RFC 5545) for registration and reminder emails."""
import base64
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from icalendar import Calendar, Event

PRODID = "-//NutriLife Campus//Events//EN"
UID_DOMAIN = "nutrilife-campus"


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: str  # base64
    content_type: str = "text/calendar"
    disposition: str = "attachment"


def build_ics(
    seed: str,
    title: str,
    start: Optional[datetime],
    end: Optional[datetime],
    location_name: Optional[str] = None,
    description: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Build a single-event VCALENDAR document.

    Args:
        seed: Identity the UID is derived from (registrant or event id)
        title: Event summary
        start: Event start; rendered in UTC. Omitted when unknown.
        end: Event end; rendered in UTC. Omitted when unknown.
        location_name: Venue name, empty when unknown
        description: Free text; newlines are escaped by the encoder
        now: Generation time, used for DTSTAMP and the UID

    Returns:
        str: The calendar document with CRLF line endings
    """
    now = _utc(now) or datetime.now(timezone.utc)

    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")

    event = Event()
    event.add("uid", f"{seed}-{int(now.timestamp() * 1000)}@{UID_DOMAIN}")
    event.add("dtstamp", now.replace(microsecond=0))
    if start is not None:
        event.add("dtstart", _utc(start).replace(microsecond=0))
    if end is not None:
        event.add("dtend", _utc(end).replace(microsecond=0))
    event.add("summary", title or "")
    event.add("location", location_name or "")
    event.add("description", description or "")
    cal.add_component(event)

    return cal.to_ical().decode("utf-8")


def ics_attachment(filename_stem: str, ics: str) -> Attachment:
    return Attachment(
        filename=f"{filename_stem}.ics",
        content=base64.b64encode(ics.encode("utf-8")).decode("ascii"),
    )


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
