from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from camp_rotation.models.event_group import EventGroup
    from camp_rotation.models.event_registration import EventRegistration
    from camp_rotation.models.event_station import EventStation


class Event(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    event_date: Optional[date] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    registrations: List["EventRegistration"] = Relationship(back_populates="event")
    groups: List["EventGroup"] = Relationship(back_populates="event")
    stations: List["EventStation"] = Relationship(back_populates="event")
