from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from camp_rotation.models.time_block import EventTimeBlock


class RotationAssignment(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("time_block_id", "group_id", name="uq_assignment_block_group"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    time_block_id: int = Field(foreign_key="eventtimeblock.id", index=True)
    group_id: int = Field(foreign_key="eventgroup.id")
    station_id: int = Field(foreign_key="eventstation.id")
    notes: Optional[str] = None

    # Relationships
    time_block: "EventTimeBlock" = Relationship(back_populates="assignments")
