from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    category: Optional[str] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    capacity: int = Field(ge=0)
    status: str = Field(default="open", pattern="^(open|closed)$")

    @model_validator(mode="after")
    def check_times(self):
        if self.start_at and self.end_at and self.end_at < self.start_at:
            raise ValueError("end_at must not be before start_at")
        return self


class EventOut(BaseModel):
    id: str
    title: str
    description: str
    category: Optional[str] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    capacity: int
    seats_left: Optional[int] = None
    status: str

    model_config = {"from_attributes": True}


class EventStatsOut(BaseModel):
    event_id: str
    capacity: int
    seats_left: int
    confirmed_count: int
    waitlist_count: int
    pending_count: int
