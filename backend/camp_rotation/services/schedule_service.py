"""
Schedule Service - Rotation schedule aggregate

Composes the time partitioner and rotation assigner into the persisted
RotationSchedule -> EventTimeBlock -> RotationAssignment aggregate, one per
event.

Execution rules:
1. Every precondition is checked before the first write; a failed
   operation leaves no trace.
2. Every structural mutation claims the schedule row with a
   compare-and-set on its version column, so at most one
   generate/regenerate/add/delete per event can win a race; the loser gets
   Conflict and retries the whole operation.
3. Locked schedules reject every mutation except unlock.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from camp_rotation.errors import (
    Conflict,
    InvalidAssignment,
    InvalidInterruption,
    MissingResources,
    NotFound,
    ScheduleLocked,
    UnbalancedCapacity,
)
from camp_rotation.models.event import Event
from camp_rotation.models.event_group import EventGroup
from camp_rotation.models.event_station import EventStation
from camp_rotation.models.rotation_assignment import RotationAssignment
from camp_rotation.models.rotation_schedule import RotationSchedule
from camp_rotation.models.time_block import BLOCK_COLORS, INTERRUPTION_TYPES, BlockType, EventTimeBlock
from camp_rotation.services.rotation_assigner import build_rotation_assignments, is_balanced
from camp_rotation.services.time_partitioner import (
    Interruption,
    InterruptionBlock,
    PlannedBlock,
    RotationBlock,
    combine,
    partition_time_window,
    renumber_blocks,
    rotation_blocks,
    splice_interruption,
)
from camp_rotation.utils.schedule_guards import (
    get_schedule_or_404,
    get_time_block_or_404,
    require_expected_version,
    require_unlocked_schedule,
)

logger = logging.getLogger(__name__)


@dataclass
class ScheduleParams:
    """Inputs for generate/regenerate"""

    schedule_date: date
    start_time: time
    end_time: time
    rotation_duration_minutes: int
    interruptions: Optional[List[Interruption]] = None  # None on regenerate keeps the current breaks
    name: Optional[str] = None
    notes: Optional[str] = None


def rotation_block_name(rotation_number: int) -> str:
    return f"Rotation {rotation_number}"


# ============================================================================
# Loading
# ============================================================================


def get_event_or_404(session: Session, event_id: int) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise NotFound("Event not found", {"event_id": event_id})
    return event


def get_schedule_for_event(session: Session, event_id: int) -> Optional[RotationSchedule]:
    return session.exec(select(RotationSchedule).where(RotationSchedule.event_id == event_id)).first()


def list_time_blocks(session: Session, schedule_id: int) -> List[EventTimeBlock]:
    return list(
        session.exec(
            select(EventTimeBlock)
            .where(EventTimeBlock.schedule_id == schedule_id)
            .order_by(EventTimeBlock.block_order, EventTimeBlock.id)
        ).all()
    )


def list_assignments(session: Session, block_ids: Iterable[int]) -> List[RotationAssignment]:
    block_ids = list(block_ids)
    if not block_ids:
        return []
    return list(
        session.exec(
            select(RotationAssignment)
            .where(RotationAssignment.time_block_id.in_(block_ids))
            .order_by(RotationAssignment.time_block_id, RotationAssignment.id)
        ).all()
    )


def load_roster(session: Session, event_id: int) -> Tuple[List[EventGroup], List[EventStation]]:
    """Groups and active stations in the fixed order the assigner indexes them"""
    groups = session.exec(
        select(EventGroup).where(EventGroup.event_id == event_id).order_by(EventGroup.sort_order, EventGroup.id)
    ).all()
    stations = session.exec(
        select(EventStation)
        .where(EventStation.event_id == event_id, EventStation.is_active == True)  # noqa: E712
        .order_by(EventStation.sort_order, EventStation.id)
    ).all()
    return list(groups), list(stations)


def planned_blocks_from_rows(schedule: RotationSchedule, rows: Sequence[EventTimeBlock]) -> List[PlannedBlock]:
    planned: List[PlannedBlock] = []
    for row in rows:
        start = combine(schedule.schedule_date, row.start_time)
        end = combine(schedule.schedule_date, row.end_time)
        if row.is_rotation:
            planned.append(
                RotationBlock(
                    block_order=row.block_order,
                    start=start,
                    end=end,
                    rotation_number=row.rotation_number or 0,
                    block_id=row.id,
                )
            )
        else:
            planned.append(
                InterruptionBlock(
                    block_order=row.block_order,
                    start=start,
                    end=end,
                    block_type=BlockType(row.block_type),
                    name=row.name or "",
                    description=row.description,
                    zone_id=row.zone_id,
                    block_id=row.id,
                )
            )
    return planned


def interruptions_from_rows(schedule_date: date, rows: Sequence[EventTimeBlock]) -> List[Interruption]:
    """Break/activity rows re-anchored on schedule_date"""
    return [
        Interruption(
            start=combine(schedule_date, row.start_time),
            end=combine(schedule_date, row.end_time),
            block_type=BlockType(row.block_type),
            name=row.name or "",
            description=row.description,
            zone_id=row.zone_id,
        )
        for row in rows
        if not row.is_rotation
    ]


# ============================================================================
# Concurrency
# ============================================================================


def claim_schedule(session: Session, schedule: RotationSchedule) -> RotationSchedule:
    """
    Compare-and-set the schedule version.

    Bumps version only if nobody else did since this session read the row.

    Raises:
        Conflict: the row changed or disappeared under us
    """
    seen = schedule.version
    result = session.execute(
        update(RotationSchedule)
        .where(RotationSchedule.id == schedule.id, RotationSchedule.version == seen)
        .values(version=seen + 1, updated_at=datetime.utcnow())
    )
    if result.rowcount != 1:
        session.rollback()
        logger.warning("Version conflict on schedule %s (seen version %s)", schedule.id, seen)
        raise Conflict(
            f"Schedule {schedule.id} was modified by another request; reload and retry",
            {"schedule_id": schedule.id, "seen_version": seen},
        )
    schedule.version = seen + 1
    return schedule


def _commit(session: Session, action: str) -> None:
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning("Integrity conflict during %s: %s", action, e)
        raise Conflict(f"Concurrent {action} detected; retry the operation", {"action": action})


# ============================================================================
# Row Helpers
# ============================================================================


def _delete_schedule_rows(session: Session, schedule: RotationSchedule) -> None:
    """Delete a schedule in child->parent order: assignments, blocks, schedule"""
    blocks = list_time_blocks(session, schedule.id)
    for assignment in list_assignments(session, [b.id for b in blocks]):
        session.delete(assignment)
    session.flush()

    for block in blocks:
        session.delete(block)
    session.flush()

    session.delete(schedule)
    session.flush()


def _block_row(schedule_id: int, block: PlannedBlock) -> EventTimeBlock:
    if isinstance(block, RotationBlock):
        return EventTimeBlock(
            schedule_id=schedule_id,
            block_order=block.block_order,
            block_type=BlockType.STATION_ROTATION.value,
            name=rotation_block_name(block.rotation_number),
            start_time=block.start.time(),
            end_time=block.end.time(),
            duration_minutes=block.duration_minutes,
            rotation_number=block.rotation_number,
        )
    return EventTimeBlock(
        schedule_id=schedule_id,
        block_order=block.block_order,
        block_type=BlockType(block.block_type).value,
        name=block.name,
        description=block.description,
        start_time=block.start.time(),
        end_time=block.end.time(),
        duration_minutes=block.duration_minutes,
        zone_id=block.zone_id,
        color=BLOCK_COLORS.get(BlockType(block.block_type)),
    )


def _window_end(schedule_date: date, end_time: time) -> datetime:
    return combine(schedule_date, end_time)


# ============================================================================
# Generate / Regenerate
# ============================================================================


def _require_balanced_roster(groups: Sequence[EventGroup], stations: Sequence[EventStation]) -> None:
    if not groups or not stations:
        missing = "groups" if not groups else "active stations"
        raise MissingResources(
            f"No {missing} defined for this event (groups={len(groups)}, stations={len(stations)})",
            {"group_count": len(groups), "station_count": len(stations)},
        )
    if not is_balanced(len(groups), len(stations)):
        raise UnbalancedCapacity(
            f"Number of groups ({len(groups)}) must match number of stations ({len(stations)})",
            {"group_count": len(groups), "station_count": len(stations)},
        )


def _replace_schedule(
    session: Session,
    event_id: int,
    params: ScheduleParams,
    groups: Sequence[EventGroup],
    stations: Sequence[EventStation],
    previous: Optional[RotationSchedule],
) -> RotationSchedule:
    """Build and flush a new schedule aggregate, replacing previous (no commit)"""
    _require_balanced_roster(groups, stations)

    blocks = partition_time_window(
        params.schedule_date,
        params.start_time,
        params.end_time,
        params.rotation_duration_minutes,
        params.interruptions,
    )
    rotations = rotation_blocks(blocks)
    matrix = build_rotation_assignments(len(rotations), [g.id for g in groups], [s.id for s in stations])

    next_version = 1
    name = params.name
    notes = params.notes
    if previous is not None:
        require_unlocked_schedule(previous)
        claim_schedule(session, previous)
        next_version = previous.version
        name = name if name is not None else previous.name
        notes = notes if notes is not None else previous.notes
        _delete_schedule_rows(session, previous)

    schedule = RotationSchedule(
        event_id=event_id,
        name=name,
        schedule_date=params.schedule_date,
        start_time=params.start_time,
        end_time=params.end_time,
        default_rotation_duration=params.rotation_duration_minutes,
        total_rotations=len(rotations),
        version=next_version,
        notes=notes,
    )
    session.add(schedule)
    session.flush()

    rows = [_block_row(schedule.id, block) for block in blocks]
    for row in rows:
        session.add(row)
    session.flush()

    rotation_rows = [row for row in rows if row.is_rotation]
    for row, pairs in zip(rotation_rows, matrix):
        for group_id, station_id in pairs:
            session.add(RotationAssignment(time_block_id=row.id, group_id=group_id, station_id=station_id))
    session.flush()

    logger.info(
        "Built schedule %s for event %s: %d blocks, %d rotations, %d groups x %d stations (version %d)",
        schedule.id,
        event_id,
        len(rows),
        len(rotations),
        len(groups),
        len(stations),
        schedule.version,
    )
    return schedule


def generate_schedule(
    session: Session,
    event_id: int,
    params: ScheduleParams,
    expected_version: Optional[int] = None,
) -> RotationSchedule:
    """
    Generate an event's rotation schedule, replacing any unlocked one.

    Raises:
        NotFound: event does not exist
        MissingResources: no groups or no active stations
        UnbalancedCapacity: group count != station count
        InvalidWindow / InvalidInterruption: from the partitioner
        ScheduleLocked: the existing schedule is locked
        Conflict: lost a concurrent update
    """
    get_event_or_404(session, event_id)
    previous = get_schedule_for_event(session, event_id)
    if previous is not None:
        require_unlocked_schedule(previous)
    if expected_version is not None:
        require_expected_version(previous, expected_version)

    groups, stations = load_roster(session, event_id)
    schedule = _replace_schedule(session, event_id, params, groups, stations, previous)
    _commit(session, "schedule generation")
    session.refresh(schedule)
    return schedule


def params_from_schedule(session: Session, schedule: RotationSchedule) -> ScheduleParams:
    """Stored parameters with the current breaks/activities kept"""
    return ScheduleParams(
        schedule_date=schedule.schedule_date,
        start_time=schedule.start_time,
        end_time=schedule.end_time,
        rotation_duration_minutes=schedule.default_rotation_duration,
        interruptions=interruptions_from_rows(schedule.schedule_date, list_time_blocks(session, schedule.id)),
        name=schedule.name,
        notes=schedule.notes,
    )


def regenerate_schedule(
    session: Session,
    event_id: int,
    params: Optional[ScheduleParams] = None,
    expected_version: Optional[int] = None,
) -> RotationSchedule:
    """
    Rebuild an existing schedule from scratch.

    Without params the stored window and rotation duration are reused;
    without params.interruptions the current breaks and general activities
    are kept (re-anchored on the new date). Freed time from deleted breaks
    is reclaimed here.

    Raises:
        NotFound: event or schedule does not exist
        ScheduleLocked: schedule is locked
        plus everything generate_schedule raises
    """
    get_event_or_404(session, event_id)
    previous = get_schedule_for_event(session, event_id)
    if previous is None:
        raise NotFound("No schedule exists for this event; generate one first", {"event_id": event_id})
    require_unlocked_schedule(previous)
    require_expected_version(previous, expected_version)

    if params is None:
        params = params_from_schedule(session, previous)
    elif params.interruptions is None:
        params.interruptions = interruptions_from_rows(params.schedule_date, list_time_blocks(session, previous.id))

    groups, stations = load_roster(session, event_id)
    schedule = _replace_schedule(session, event_id, params, groups, stations, previous)
    _commit(session, "schedule regeneration")
    session.refresh(schedule)
    return schedule


# ============================================================================
# Time Block Editing
# ============================================================================


def add_time_block(
    session: Session,
    schedule_id: int,
    block_type: BlockType,
    name: str,
    start_time: time,
    duration_minutes: int,
    description: Optional[str] = None,
    zone_id: Optional[int] = None,
    expected_version: Optional[int] = None,
) -> EventTimeBlock:
    """
    Insert a break or general activity into a generated schedule.

    Rotation blocks under the new block are trimmed, split or dropped and
    every later block_order/rotation_number shifts. Pairings on surviving
    rotations are untouched; the remainder of a split rotation copies the
    pairing of the rotation it was split from.

    Raises:
        NotFound: schedule does not exist
        ScheduleLocked: schedule is locked
        InvalidInterruption: wrong type, non-positive duration, outside the
            window, or overlapping another break/activity
        Conflict: lost a concurrent update
    """
    schedule = get_schedule_or_404(session, schedule_id)
    require_unlocked_schedule(schedule)
    require_expected_version(schedule, expected_version)

    if block_type not in INTERRUPTION_TYPES:
        raise InvalidInterruption(
            f"Only break and general_activity blocks can be inserted, got '{block_type}'",
            {"block_type": str(block_type)},
        )
    if duration_minutes < 1:
        raise InvalidInterruption(
            f"duration_minutes must be positive, got {duration_minutes}", {"duration_minutes": duration_minutes}
        )

    window_start = combine(schedule.schedule_date, schedule.start_time)
    window_end = _window_end(schedule.schedule_date, schedule.end_time)
    start = combine(schedule.schedule_date, start_time)
    interruption = Interruption(
        start=start,
        end=start + timedelta(minutes=duration_minutes),
        block_type=BlockType(block_type),
        name=name,
        description=description,
        zone_id=zone_id,
    )

    rows = list_time_blocks(session, schedule.id)
    spliced = renumber_blocks(
        splice_interruption(planned_blocks_from_rows(schedule, rows), interruption, window_start, window_end)
    )

    claim_schedule(session, schedule)

    rows_by_id: Dict[int, EventTimeBlock] = {row.id: row for row in rows}
    pairs_by_block: Dict[int, List[Tuple[int, int]]] = {}
    for assignment in list_assignments(session, rows_by_id):
        pairs_by_block.setdefault(assignment.time_block_id, []).append((assignment.group_id, assignment.station_id))

    kept_ids = {b.block_id for b in spliced if b.block_id is not None}
    dropped = [row for row in rows if row.id not in kept_ids]
    for assignment in list_assignments(session, [row.id for row in dropped]):
        session.delete(assignment)
    session.flush()
    for row in dropped:
        session.delete(row)
    session.flush()

    inserted: Optional[EventTimeBlock] = None
    for block in spliced:
        if block.block_id is not None:
            row = rows_by_id[block.block_id]
            if isinstance(block, RotationBlock):
                if row.name is None or row.name == rotation_block_name(row.rotation_number or 0):
                    row.name = rotation_block_name(block.rotation_number)
                row.rotation_number = block.rotation_number
            row.block_order = block.block_order
            row.start_time = block.start.time()
            row.end_time = block.end.time()
            row.duration_minutes = block.duration_minutes
            session.add(row)
            continue

        row = _block_row(schedule.id, block)
        session.add(row)
        session.flush()

        if isinstance(block, RotationBlock):
            for group_id, station_id in pairs_by_block.get(block.source_block_id, []):
                session.add(RotationAssignment(time_block_id=row.id, group_id=group_id, station_id=station_id))
        else:
            inserted = row

    schedule.total_rotations = len(rotation_blocks(spliced))
    session.add(schedule)
    _commit(session, "time block insertion")
    session.refresh(inserted)

    logger.info(
        "Inserted %s '%s' %s-%s into schedule %s (%d blocks dropped, %d rotations now)",
        interruption.block_type.value,
        name,
        interruption.start.time(),
        interruption.end.time(),
        schedule.id,
        len(dropped),
        schedule.total_rotations,
    )
    return inserted


def delete_time_block(session: Session, block_id: int, expected_version: Optional[int] = None) -> None:
    """
    Remove a break or general activity.

    The freed time is not given back to the neighbouring rotations; an
    explicit regenerate reclaims it. Later block_order values are compacted.

    Raises:
        NotFound: block does not exist
        ScheduleLocked: schedule is locked
        InvalidInterruption: block is a station rotation
        Conflict: lost a concurrent update
    """
    block = get_time_block_or_404(session, block_id)
    schedule = get_schedule_or_404(session, block.schedule_id)
    require_unlocked_schedule(schedule)
    require_expected_version(schedule, expected_version)

    if block.is_rotation:
        raise InvalidInterruption(
            "Station rotation blocks cannot be deleted individually; regenerate the schedule instead",
            {"block_id": block_id},
        )

    block_type = block.block_type
    claim_schedule(session, schedule)
    session.delete(block)
    session.flush()

    for order, row in enumerate(list_time_blocks(session, schedule.id)):
        if row.block_order != order:
            row.block_order = order
            session.add(row)

    _commit(session, "time block deletion")
    logger.info("Deleted %s block %s from schedule %s", block_type, block_id, schedule.id)


def update_time_block(
    session: Session,
    block_id: int,
    changes: Dict[str, object],
    expected_version: Optional[int] = None,
) -> EventTimeBlock:
    """Edit cosmetic fields (name, description, zone_id, color); timing is owned by the partitioner"""
    block = get_time_block_or_404(session, block_id)
    schedule = get_schedule_or_404(session, block.schedule_id)
    require_unlocked_schedule(schedule)
    require_expected_version(schedule, expected_version)

    claim_schedule(session, schedule)
    for field, value in changes.items():
        setattr(block, field, value)
    session.add(block)
    _commit(session, "time block update")
    session.refresh(block)
    return block


# ============================================================================
# Schedule State
# ============================================================================


def update_schedule_details(
    session: Session,
    schedule_id: int,
    changes: Dict[str, object],
    expected_version: Optional[int] = None,
) -> RotationSchedule:
    schedule = get_schedule_or_404(session, schedule_id)
    require_unlocked_schedule(schedule)
    require_expected_version(schedule, expected_version)

    claim_schedule(session, schedule)
    for field, value in changes.items():
        setattr(schedule, field, value)
    session.add(schedule)
    _commit(session, "schedule update")
    session.refresh(schedule)
    return schedule


def _set_flag(session: Session, schedule_id: int, field: str, value: bool, allow_locked: bool = False) -> RotationSchedule:
    schedule = get_schedule_or_404(session, schedule_id)
    if not allow_locked:
        require_unlocked_schedule(schedule)
    if getattr(schedule, field) == value:
        return schedule

    claim_schedule(session, schedule)
    setattr(schedule, field, value)
    session.add(schedule)
    _commit(session, f"schedule {field} change")
    session.refresh(schedule)
    logger.info("Schedule %s %s=%s", schedule_id, field, value)
    return schedule


def publish_schedule(session: Session, schedule_id: int) -> RotationSchedule:
    return _set_flag(session, schedule_id, "is_published", True, allow_locked=True)


def unpublish_schedule(session: Session, schedule_id: int) -> RotationSchedule:
    return _set_flag(session, schedule_id, "is_published", False, allow_locked=True)


def lock_schedule(session: Session, schedule_id: int) -> RotationSchedule:
    return _set_flag(session, schedule_id, "is_locked", True, allow_locked=True)


def unlock_schedule(session: Session, schedule_id: int) -> RotationSchedule:
    return _set_flag(session, schedule_id, "is_locked", False, allow_locked=True)


def delete_schedule(session: Session, event_id: int) -> None:
    """
    Raises:
        NotFound: no schedule for the event
        ScheduleLocked: schedule is locked
    """
    schedule = get_schedule_for_event(session, event_id)
    if schedule is None:
        raise NotFound("Schedule not found", {"event_id": event_id})
    require_unlocked_schedule(schedule)

    claim_schedule(session, schedule)
    _delete_schedule_rows(session, schedule)
    _commit(session, "schedule deletion")
    logger.info("Deleted schedule for event %s", event_id)


# ============================================================================
# Manual Assignment Overrides
# ============================================================================


def _editable_rotation_block(
    session: Session, block_id: int, expected_version: Optional[int]
) -> Tuple[EventTimeBlock, RotationSchedule]:
    block = get_time_block_or_404(session, block_id)
    schedule = get_schedule_or_404(session, block.schedule_id)
    require_unlocked_schedule(schedule)
    require_expected_version(schedule, expected_version)
    if not block.is_rotation:
        raise InvalidAssignment(
            f"Block {block_id} is a {block.block_type} block; only station rotations carry assignments",
            {"block_id": block_id},
        )
    return block, schedule


def _validate_pairs(session: Session, event_id: int, pairs: Sequence[Tuple[int, int]]) -> None:
    groups, _ = load_roster(session, event_id)
    group_ids = {g.id for g in groups}
    station_ids = {
        s.id for s in session.exec(select(EventStation).where(EventStation.event_id == event_id)).all()
    }

    seen_groups = set()
    for group_id, station_id in pairs:
        if group_id not in group_ids:
            raise InvalidAssignment(f"Group {group_id} does not belong to event {event_id}", {"group_id": group_id})
        if station_id not in station_ids:
            raise InvalidAssignment(
                f"Station {station_id} does not belong to event {event_id}", {"station_id": station_id}
            )
        if group_id in seen_groups:
            raise InvalidAssignment(f"Group {group_id} is assigned twice in one block", {"group_id": group_id})
        seen_groups.add(group_id)


def set_assignment(
    session: Session,
    block_id: int,
    group_id: int,
    station_id: int,
    notes: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> RotationAssignment:
    """Upsert one group's station for a rotation block"""
    block, schedule = _editable_rotation_block(session, block_id, expected_version)
    _validate_pairs(session, schedule.event_id, [(group_id, station_id)])

    claim_schedule(session, schedule)
    assignment = session.exec(
        select(RotationAssignment).where(
            RotationAssignment.time_block_id == block.id, RotationAssignment.group_id == group_id
        )
    ).first()
    if assignment is None:
        assignment = RotationAssignment(time_block_id=block.id, group_id=group_id, station_id=station_id)
    assignment.station_id = station_id
    assignment.notes = notes
    session.add(assignment)
    _commit(session, "assignment update")
    session.refresh(assignment)
    return assignment


def bulk_set_assignments(
    session: Session,
    block_id: int,
    pairs: Sequence[Tuple[int, int]],
    expected_version: Optional[int] = None,
) -> List[RotationAssignment]:
    """Replace every assignment of a rotation block"""
    block, schedule = _editable_rotation_block(session, block_id, expected_version)
    _validate_pairs(session, schedule.event_id, pairs)

    claim_schedule(session, schedule)
    for assignment in list_assignments(session, [block.id]):
        session.delete(assignment)
    session.flush()

    created = []
    for group_id, station_id in pairs:
        assignment = RotationAssignment(time_block_id=block.id, group_id=group_id, station_id=station_id)
        session.add(assignment)
        created.append(assignment)
    _commit(session, "assignment replacement")
    for assignment in created:
        session.refresh(assignment)
    return created


def clear_assignments(session: Session, block_id: int, expected_version: Optional[int] = None) -> int:
    block, schedule = _editable_rotation_block(session, block_id, expected_version)

    claim_schedule(session, schedule)
    existing = list_assignments(session, [block.id])
    for assignment in existing:
        session.delete(assignment)
    _commit(session, "assignment clearing")
    return len(existing)


# ============================================================================
# Roster Changes
# ============================================================================


def _referencing_assignments(
    session: Session, schedule: RotationSchedule, group_ids: Sequence[int], station_ids: Sequence[int]
) -> List[RotationAssignment]:
    if not group_ids and not station_ids:
        return []
    group_ids, station_ids = set(group_ids), set(station_ids)
    block_ids = [b.id for b in list_time_blocks(session, schedule.id)]
    return [a for a in list_assignments(session, block_ids) if a.group_id in group_ids or a.station_id in station_ids]


def ensure_roster_change_allowed(
    session: Session, event_id: int, group_ids: Sequence[int] = (), station_ids: Sequence[int] = ()
) -> None:
    """
    Raises:
        ScheduleLocked: a locked schedule has assignments for these groups/stations
    """
    schedule = get_schedule_for_event(session, event_id)
    if schedule is None or not schedule.is_locked:
        return
    if _referencing_assignments(session, schedule, group_ids, station_ids):
        raise ScheduleLocked(
            f"Schedule {schedule.id} is locked and references the groups/stations being removed",
            {"schedule_id": schedule.id, "group_ids": list(group_ids), "station_ids": list(station_ids)},
        )


def remove_roster_references(
    session: Session, event_id: int, group_ids: Sequence[int] = (), station_ids: Sequence[int] = ()
) -> int:
    """Delete assignments pointing at groups/stations about to disappear (no commit)"""
    schedule = get_schedule_for_event(session, event_id)
    if schedule is None:
        return 0
    orphaned = _referencing_assignments(session, schedule, group_ids, station_ids)
    for assignment in orphaned:
        session.delete(assignment)
    session.flush()
    return len(orphaned)


def reconcile_after_roster_change(session: Session, event_id: int) -> Optional[RotationSchedule]:
    """
    Bring an unlocked schedule back in line with the current groups/stations (no commit).

    Balanced rosters trigger a full regeneration with the stored parameters
    and current breaks; anything else flags needs_regeneration.
    """
    schedule = get_schedule_for_event(session, event_id)
    if schedule is None or schedule.is_locked:
        return schedule

    groups, stations = load_roster(session, event_id)
    if is_balanced(len(groups), len(stations)):
        logger.info("Roster changed for event %s; regenerating schedule %s", event_id, schedule.id)
        return _replace_schedule(session, event_id, params_from_schedule(session, schedule), groups, stations, schedule)

    claim_schedule(session, schedule)
    schedule.needs_regeneration = True
    session.add(schedule)
    session.flush()
    logger.info(
        "Roster for event %s is unbalanced (groups=%d, stations=%d); schedule %s flagged for regeneration",
        event_id,
        len(groups),
        len(stations),
        schedule.id,
    )
    return schedule


def flag_roster_reordered(session: Session, event_id: int) -> Optional[RotationSchedule]:
    """
    Mark an unlocked schedule stale after groups/stations change order (no commit).

    The assigner follows (sort_order, id), so existing pairings no longer
    match what regenerate would produce.
    """
    schedule = get_schedule_for_event(session, event_id)
    if schedule is None or schedule.is_locked or schedule.needs_regeneration:
        return schedule

    claim_schedule(session, schedule)
    schedule.needs_regeneration = True
    session.add(schedule)
    session.flush()
    logger.info("Roster order changed for event %s; schedule %s flagged for regeneration", event_id, schedule.id)
    return schedule
