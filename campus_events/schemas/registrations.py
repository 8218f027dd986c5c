from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RegistrationCreate(BaseModel):
    user_id: str = Field(min_length=1, max_length=128)
    name: Optional[str] = Field(default=None, max_length=200)
    email: Optional[str] = Field(default=None, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")


class RegistrationOut(BaseModel):
    event_id: str
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    status: str
    mailed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
