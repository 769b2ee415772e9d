"""
Time Partitioner - Splits an event window into rotation and interruption blocks

Walks the window from its start. Whenever an interruption (break or general
activity) begins at the cursor it is emitted as-is; otherwise a station
rotation block is emitted that runs for the default rotation duration or
until the next interruption / window end, whichever comes first. Rotations
are never longer than the default duration but may be shorter near a
boundary.

Also provides the splice used when a single break is inserted into an
already generated schedule.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence, Union

from camp_rotation.errors import InvalidInterruption, InvalidWindow
from camp_rotation.models.time_block import INTERRUPTION_TYPES, BlockType

MIN_ROTATION_MINUTES = 5
MAX_ROTATION_MINUTES = 180


# ============================================================================
# Block Types
# ============================================================================


@dataclass(frozen=True)
class Interruption:
    """A fixed-time break or general activity requested by the organizer"""

    start: datetime
    end: datetime
    block_type: BlockType
    name: str
    description: Optional[str] = None
    zone_id: Optional[int] = None


@dataclass(frozen=True)
class RotationBlock:
    """A block during which every group is at some station"""

    block_order: int
    start: datetime
    end: datetime
    rotation_number: int
    block_id: Optional[int] = None  # Persisted row, when planned from an existing schedule
    source_block_id: Optional[int] = None  # Row whose pairing a split remainder inherits

    @property
    def block_type(self) -> BlockType:
        return BlockType.STATION_ROTATION

    @property
    def duration_minutes(self) -> int:
        return _minutes(self.end - self.start)


@dataclass(frozen=True)
class InterruptionBlock:
    """A break or general activity that pauses rotation for all groups"""

    block_order: int
    start: datetime
    end: datetime
    block_type: BlockType
    name: str
    description: Optional[str] = None
    zone_id: Optional[int] = None
    block_id: Optional[int] = None

    @property
    def duration_minutes(self) -> int:
        return _minutes(self.end - self.start)


PlannedBlock = Union[RotationBlock, InterruptionBlock]


def _minutes(delta: timedelta) -> int:
    return int(round(delta.total_seconds() / 60))


def combine(schedule_date: date, moment: time) -> datetime:
    """Anchor a wall-clock time on the schedule date"""
    return datetime.combine(schedule_date, moment)


def _on_minute(moment: datetime) -> bool:
    return moment.second == 0 and moment.microsecond == 0


# ============================================================================
# Validation
# ============================================================================


def validate_window(start: datetime, end: datetime, rotation_duration_minutes: int) -> None:
    if start >= end:
        raise InvalidWindow(
            f"start_time ({start.time()}) must be before end_time ({end.time()})",
            {"start_time": start.isoformat(), "end_time": end.isoformat()},
        )
    if not (_on_minute(start) and _on_minute(end)):
        raise InvalidWindow(
            f"start_time ({start.time()}) and end_time ({end.time()}) must fall on whole minutes",
            {"start_time": start.isoformat(), "end_time": end.isoformat()},
        )
    if not MIN_ROTATION_MINUTES <= rotation_duration_minutes <= MAX_ROTATION_MINUTES:
        raise InvalidWindow(
            f"rotation duration must be between {MIN_ROTATION_MINUTES} and {MAX_ROTATION_MINUTES} minutes, "
            f"got {rotation_duration_minutes}",
            {"rotation_duration_minutes": rotation_duration_minutes},
        )


def validate_interruptions(
    interruptions: Sequence[Interruption], window_start: datetime, window_end: datetime
) -> List[Interruption]:
    """
    Check every interruption and return them sorted by start.

    Raises:
        InvalidInterruption: wrong type, empty/negative duration, off a whole
            minute, outside the window, or overlapping another interruption
    """
    ordered = sorted(interruptions, key=lambda i: (i.start, i.end))

    for interruption in ordered:
        if interruption.block_type not in INTERRUPTION_TYPES:
            raise InvalidInterruption(
                f"'{interruption.name}' has block type '{interruption.block_type}'; "
                "only break and general_activity blocks can interrupt rotations",
                {"name": interruption.name},
            )
        if interruption.start >= interruption.end:
            raise InvalidInterruption(
                f"'{interruption.name}' must end after it starts",
                {"name": interruption.name},
            )
        if not (_on_minute(interruption.start) and _on_minute(interruption.end)):
            raise InvalidInterruption(
                f"'{interruption.name}' ({interruption.start.time()}-{interruption.end.time()}) must start and end "
                "on whole minutes",
                {"name": interruption.name},
            )
        if interruption.start < window_start or interruption.end > window_end:
            raise InvalidInterruption(
                f"'{interruption.name}' ({interruption.start.time()}-{interruption.end.time()}) lies outside the "
                f"event window ({window_start.time()}-{window_end.time()})",
                {"name": interruption.name},
            )

    for previous, current in zip(ordered, ordered[1:]):
        if current.start < previous.end:
            raise InvalidInterruption(
                f"'{previous.name}' and '{current.name}' overlap",
                {"first": previous.name, "second": current.name},
            )

    return ordered


# ============================================================================
# Partitioning
# ============================================================================


def partition_time_window(
    schedule_date: date,
    start_time: time,
    end_time: time,
    rotation_duration_minutes: int,
    interruptions: Optional[Sequence[Interruption]] = None,
) -> List[PlannedBlock]:
    """
    Partition [start_time, end_time) into an ordered block sequence.

    Args:
        schedule_date: Day the event takes place
        start_time: Window start (wall clock)
        end_time: Window end (wall clock, same day)
        rotation_duration_minutes: Default rotation length (5-180)
        interruptions: Fixed-time breaks and general activities

    Returns:
        Blocks with block_order 0..n-1 covering the window with no gaps or
        overlaps; rotation blocks numbered 1..k in order

    Raises:
        InvalidWindow: start >= end, times off a whole minute, or rotation
            duration out of range
        InvalidInterruption: see validate_interruptions
    """
    window_start = combine(schedule_date, start_time)
    window_end = combine(schedule_date, end_time)
    validate_window(window_start, window_end, rotation_duration_minutes)
    pending = validate_interruptions(interruptions or [], window_start, window_end)

    rotation_length = timedelta(minutes=rotation_duration_minutes)
    blocks: List[PlannedBlock] = []
    cursor = window_start
    next_index = 0
    rotation_number = 0

    while cursor < window_end:
        upcoming = pending[next_index] if next_index < len(pending) else None

        if upcoming is not None and upcoming.start == cursor:
            blocks.append(
                InterruptionBlock(
                    block_order=len(blocks),
                    start=upcoming.start,
                    end=upcoming.end,
                    block_type=upcoming.block_type,
                    name=upcoming.name,
                    description=upcoming.description,
                    zone_id=upcoming.zone_id,
                )
            )
            cursor = upcoming.end
            next_index += 1
            continue

        block_end = min(cursor + rotation_length, window_end)
        if upcoming is not None and upcoming.start < block_end:
            block_end = upcoming.start

        rotation_number += 1
        blocks.append(
            RotationBlock(
                block_order=len(blocks),
                start=cursor,
                end=block_end,
                rotation_number=rotation_number,
            )
        )
        cursor = block_end

    return blocks


# ============================================================================
# Splicing
# ============================================================================


def splice_interruption(
    blocks: Sequence[PlannedBlock],
    interruption: Interruption,
    window_start: datetime,
    window_end: datetime,
) -> List[PlannedBlock]:
    """
    Insert an interruption into an existing block sequence.

    Rotation blocks fully covered by the interruption are dropped, partially
    covered ones are trimmed, and a rotation block that encloses the
    interruption is split: the first piece keeps its block_id, the remainder
    gets source_block_id so its pairing can be copied. Existing
    interruptions are never moved.

    The result is sorted by start but not renumbered; pass it to
    renumber_blocks.

    Raises:
        InvalidInterruption: outside the window or overlapping an existing
            break/general activity
    """
    existing_interruptions = [
        Interruption(
            start=b.start,
            end=b.end,
            block_type=b.block_type,
            name=b.name,
        )
        for b in blocks
        if isinstance(b, InterruptionBlock)
    ]
    validate_interruptions(existing_interruptions + [interruption], window_start, window_end)

    spliced: List[PlannedBlock] = []
    for block in blocks:
        if isinstance(block, InterruptionBlock):
            spliced.append(block)
            continue

        if block.end <= interruption.start or block.start >= interruption.end:
            spliced.append(block)
            continue

        if block.start < interruption.start:
            spliced.append(replace(block, end=interruption.start))
            if block.end > interruption.end:
                spliced.append(
                    replace(
                        block,
                        start=interruption.end,
                        block_id=None,
                        source_block_id=block.block_id,
                    )
                )
        elif block.end > interruption.end:
            spliced.append(replace(block, start=interruption.end))
        # Fully covered rotation blocks are dropped

    spliced.append(
        InterruptionBlock(
            block_order=-1,
            start=interruption.start,
            end=interruption.end,
            block_type=interruption.block_type,
            name=interruption.name,
            description=interruption.description,
            zone_id=interruption.zone_id,
        )
    )
    spliced.sort(key=lambda b: (b.start, b.end))
    return spliced


def renumber_blocks(blocks: Sequence[PlannedBlock]) -> List[PlannedBlock]:
    """Sort by start and reassign block_order 0..n-1 and rotation_number 1..k"""
    renumbered: List[PlannedBlock] = []
    rotation_number = 0
    for order, block in enumerate(sorted(blocks, key=lambda b: (b.start, b.end))):
        if isinstance(block, RotationBlock):
            rotation_number += 1
            renumbered.append(replace(block, block_order=order, rotation_number=rotation_number))
        else:
            renumbered.append(replace(block, block_order=order))
    return renumbered


def rotation_blocks(blocks: Sequence[PlannedBlock]) -> List[RotationBlock]:
    return [b for b in blocks if isinstance(b, RotationBlock)]
