"""
Schedule Safety Guards

Reusable guards for the rotation schedule aggregate:
- Existence lookups that raise NotFound
- Locked schedules reject every structural mutation
- Optional client-supplied version checks (optimistic concurrency)
"""

from typing import Optional

from sqlmodel import Session

from camp_rotation.errors import Conflict, NotFound, ScheduleLocked
from camp_rotation.models.rotation_schedule import RotationSchedule
from camp_rotation.models.time_block import EventTimeBlock


def get_schedule_or_404(session: Session, schedule_id: int, event_id: Optional[int] = None) -> RotationSchedule:
    """
    Get a rotation schedule or raise NotFound.

    Args:
        session: Database session
        schedule_id: Schedule ID
        event_id: Optional event ID for ownership validation

    Raises:
        NotFound: Schedule not found or doesn't belong to the event
    """
    schedule = session.get(RotationSchedule, schedule_id)

    if not schedule:
        raise NotFound("Schedule not found", {"schedule_id": schedule_id})

    if event_id is not None and schedule.event_id != event_id:
        raise NotFound(
            f"Schedule {schedule_id} does not belong to event {event_id}",
            {"schedule_id": schedule_id, "event_id": event_id},
        )

    return schedule


def get_time_block_or_404(session: Session, block_id: int) -> EventTimeBlock:
    block = session.get(EventTimeBlock, block_id)
    if not block:
        raise NotFound("Time block not found", {"block_id": block_id})
    return block


def require_unlocked_schedule(schedule: RotationSchedule) -> RotationSchedule:
    """
    Raises:
        ScheduleLocked: schedule.is_locked is set
    """
    if schedule.is_locked:
        raise ScheduleLocked(
            f"Schedule {schedule.id} is locked and cannot be modified",
            {"schedule_id": schedule.id},
        )
    return schedule


def require_expected_version(schedule: Optional[RotationSchedule], expected_version: Optional[int]) -> None:
    """
    Reject a mutation made against a stale read.

    Raises:
        Conflict: expected_version was given and does not match
    """
    if expected_version is None:
        return
    current = schedule.version if schedule is not None else None
    if current != expected_version:
        raise Conflict(
            f"Schedule was modified concurrently (expected version {expected_version}, current {current}); "
            "reload and retry",
            {"expected_version": expected_version, "current_version": current},
        )
