from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from camp_rotation.models.event import Event

DEFAULT_STATION_COLOR = "#10b981"


class EventStation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    name: str
    description: Optional[str] = None
    color: str = Field(default=DEFAULT_STATION_COLOR, max_length=7)
    # {"instructions": str, "staff_instructions": str, "materials": [...], "attachments": [...]}
    content: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    capacity: Optional[int] = Field(default=None)
    zone_id: Optional[int] = Field(default=None)
    location_notes: Optional[str] = None
    sort_order: int = Field(default=0)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    event: "Event" = Relationship(back_populates="stations")
    staff: List["EventStationStaff"] = Relationship(back_populates="station")


class EventStationStaff(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("station_id", "staff_id", name="uq_station_staff"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    station_id: int = Field(foreign_key="eventstation.id", index=True)
    staff_id: int
    role_at_station: Optional[str] = Field(default=None, max_length=100)
    is_primary: bool = Field(default=False)
    notes: Optional[str] = None

    # Relationships
    station: "EventStation" = Relationship(back_populates="staff")
