from datetime import time
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from camp_rotation.models.rotation_assignment import RotationAssignment
    from camp_rotation.models.rotation_schedule import RotationSchedule


class BlockType(str, Enum):
    STATION_ROTATION = "station_rotation"
    BREAK = "break"
    GENERAL_ACTIVITY = "general_activity"


INTERRUPTION_TYPES = (BlockType.BREAK, BlockType.GENERAL_ACTIVITY)

BLOCK_COLORS = {
    BlockType.BREAK: "#9ca3af",
    BlockType.GENERAL_ACTIVITY: "#f59e0b",
}


class EventTimeBlock(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    schedule_id: int = Field(foreign_key="rotationschedule.id", index=True)
    block_order: int
    block_type: str = Field(max_length=20)  # BlockType value
    name: Optional[str] = None
    description: Optional[str] = None
    start_time: time
    end_time: time
    duration_minutes: int
    rotation_number: Optional[int] = Field(default=None)  # station_rotation blocks only
    zone_id: Optional[int] = Field(default=None)
    color: Optional[str] = Field(default=None, max_length=7)

    # Relationships
    schedule: "RotationSchedule" = Relationship(back_populates="time_blocks")
    assignments: List["RotationAssignment"] = Relationship(back_populates="time_block")

    @property
    def is_rotation(self) -> bool:
        return self.block_type == BlockType.STATION_ROTATION.value
