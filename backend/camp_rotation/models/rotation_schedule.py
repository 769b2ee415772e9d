from datetime import date, datetime, time
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from camp_rotation.models.time_block import EventTimeBlock


class RotationSchedule(SQLModel, table=True):
    # One schedule per event; a concurrent first generation loses on this constraint
    __table_args__ = (SAUniqueConstraint("event_id", name="uq_rotation_schedule_event"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    name: Optional[str] = None
    schedule_date: date
    start_time: time
    end_time: time
    default_rotation_duration: int = Field(default=30)
    total_rotations: int = Field(default=0)
    is_published: bool = Field(default=False)
    is_locked: bool = Field(default=False)
    needs_regeneration: bool = Field(default=False)
    version: int = Field(default=1)  # Optimistic concurrency token, bumped by every mutation
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    time_blocks: List["EventTimeBlock"] = Relationship(back_populates="schedule")
