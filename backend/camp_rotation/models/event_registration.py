from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from camp_rotation.models.event import Event


class RegistrationStatus(str, Enum):
    confirmed = "confirmed"
    pending = "pending"
    cancelled = "cancelled"


class EventRegistration(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    registrant_name: str
    status: str = Field(default=RegistrationStatus.confirmed.value, max_length=20)
    age_category_id: Optional[int] = Field(default=None)  # Resolved upstream from birth date
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    event: "Event" = Relationship(back_populates="registrations")
