from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReminderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: Optional[str] = Field(default=None, alias="eventId")
    only_confirmed: bool = Field(default=True, alias="onlyConfirmed")


class EventReminderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    only_confirmed: bool = Field(default=True, alias="onlyConfirmed")


class ReminderOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sent: int
    only_confirmed: Optional[bool] = Field(default=None, serialization_alias="onlyConfirmed")
    message: Optional[str] = None
