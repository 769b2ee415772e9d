from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from camp_rotation.models.event import Event

DEFAULT_GROUP_COLOR = "#6366f1"


class EventGroup(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("event_id", "name", name="uq_event_group_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    name: str
    description: Optional[str] = None
    color: str = Field(default=DEFAULT_GROUP_COLOR, max_length=7)
    sort_order: int = Field(default=0)
    leader_id: Optional[int] = Field(default=None)  # Staff member leading the group
    max_capacity: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    event: "Event" = Relationship(back_populates="groups")
    members: List["EventGroupMember"] = Relationship(back_populates="group")


class EventGroupMember(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("group_id", "registration_id", name="uq_group_member"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="eventgroup.id", index=True)
    registration_id: int = Field(foreign_key="eventregistration.id")
    sort_order: int = Field(default=0)
    assigned_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    group: "EventGroup" = Relationship(back_populates="members")
