"""
Rotation Schedule API Routes

Generate / regenerate an event's rotation schedule, edit its breaks and
general activities, override individual assignments and flip its
publish/lock state.

Every mutating endpoint accepts an optional expected_version. When given,
the request fails with 409 CONFLICT unless it matches the schedule's current
version.
"""

import re
from datetime import date, datetime, time
from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import Session, select

from camp_rotation.database import get_session
from camp_rotation.errors import RotationError
from camp_rotation.models.event_group import EventGroupMember
from camp_rotation.models.rotation_assignment import RotationAssignment
from camp_rotation.models.rotation_schedule import RotationSchedule
from camp_rotation.models.time_block import BlockType, EventTimeBlock
from camp_rotation.services import schedule_service
from camp_rotation.services.rotation_assigner import is_balanced
from camp_rotation.services.schedule_service import ScheduleParams
from camp_rotation.services.time_partitioner import Interruption, combine
from camp_rotation.utils.http_errors import to_http_exception
from camp_rotation.utils.schedule_guards import get_schedule_or_404

router = APIRouter()

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


class RotationStrategy(str, Enum):
    sequential = "sequential"


# ============================================================================
# Request Models
# ============================================================================


class InterruptionIn(BaseModel):
    name: str = Field(max_length=200)
    start_time: time
    end_time: time
    description: Optional[str] = Field(default=None, max_length=2000)
    zone_id: Optional[int] = None


class GenerateScheduleRequest(BaseModel):
    schedule_date: date
    start_time: time
    end_time: time
    rotation_duration: int = 30  # 5-180, checked by the partitioner
    breaks: List[InterruptionIn] = []
    general_activities: List[InterruptionIn] = []
    rotation_strategy: RotationStrategy = RotationStrategy.sequential
    name: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None
    expected_version: Optional[int] = None


class RegenerateScheduleRequest(BaseModel):
    """All fields optional; omitted ones keep their stored values"""

    schedule_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    rotation_duration: Optional[int] = None
    breaks: Optional[List[InterruptionIn]] = None
    general_activities: Optional[List[InterruptionIn]] = None
    expected_version: Optional[int] = None


class ScheduleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None
    expected_version: Optional[int] = None


class AddTimeBlockRequest(BaseModel):
    block_type: BlockType = BlockType.BREAK
    name: str = Field(max_length=200)
    start_time: time
    duration_minutes: int
    description: Optional[str] = Field(default=None, max_length=2000)
    zone_id: Optional[int] = None
    expected_version: Optional[int] = None


class TimeBlockUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    zone_id: Optional[int] = None
    color: Optional[str] = None
    expected_version: Optional[int] = None

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        if v is not None and not HEX_COLOR.match(v):
            raise ValueError("Invalid color format")
        return v


class SetAssignmentRequest(BaseModel):
    group_id: int
    station_id: int
    notes: Optional[str] = Field(default=None, max_length=500)
    expected_version: Optional[int] = None


class AssignmentPair(BaseModel):
    group_id: int
    station_id: int


class BulkAssignmentsRequest(BaseModel):
    assignments: List[AssignmentPair]
    expected_version: Optional[int] = None


# ============================================================================
# Response Models
# ============================================================================


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    time_block_id: int
    group_id: int
    station_id: int
    notes: Optional[str] = None


class TimeBlockResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    schedule_id: int
    block_order: int
    block_type: str
    name: Optional[str] = None
    description: Optional[str] = None
    start_time: time
    end_time: time
    duration_minutes: int
    rotation_number: Optional[int] = None
    zone_id: Optional[int] = None
    color: Optional[str] = None


class TimeBlockDetailResponse(TimeBlockResponse):
    assignments: List[AssignmentResponse] = []


class ScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    name: Optional[str] = None
    schedule_date: date
    start_time: time
    end_time: time
    default_rotation_duration: int
    total_rotations: int
    is_published: bool
    is_locked: bool
    needs_regeneration: bool
    version: int
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ScheduleDetailResponse(ScheduleResponse):
    time_blocks: List[TimeBlockDetailResponse] = []


class ClearAssignmentsResponse(BaseModel):
    time_block_id: int
    cleared: int


class OverviewGroup(BaseModel):
    id: int
    name: str
    color: str
    sort_order: int
    member_count: int


class OverviewStation(BaseModel):
    id: int
    name: str
    color: str
    sort_order: int
    capacity: Optional[int] = None


class RotationOverviewResponse(BaseModel):
    event_id: int
    groups: List[OverviewGroup]
    stations: List[OverviewStation]
    is_balanced: bool
    schedule: Optional[ScheduleDetailResponse] = None


# ============================================================================
# Helpers
# ============================================================================


def _block_detail(block: EventTimeBlock, assignments: List[RotationAssignment]) -> TimeBlockDetailResponse:
    data = TimeBlockResponse.model_validate(block).model_dump()
    data["assignments"] = [AssignmentResponse.model_validate(a) for a in assignments]
    return TimeBlockDetailResponse(**data)


def _block_details(session: Session, schedule_id: int) -> List[TimeBlockDetailResponse]:
    blocks = schedule_service.list_time_blocks(session, schedule_id)
    by_block = {}
    for assignment in schedule_service.list_assignments(session, [b.id for b in blocks]):
        by_block.setdefault(assignment.time_block_id, []).append(assignment)
    return [_block_detail(b, by_block.get(b.id, [])) for b in blocks]


def _schedule_detail(session: Session, schedule: RotationSchedule) -> ScheduleDetailResponse:
    data = ScheduleResponse.model_validate(schedule).model_dump()
    data["time_blocks"] = _block_details(session, schedule.id)
    return ScheduleDetailResponse(**data)


def _interruptions(
    schedule_date: date, breaks: List[InterruptionIn], general_activities: List[InterruptionIn]
) -> List[Interruption]:
    requested = [(BlockType.BREAK, b) for b in breaks] + [(BlockType.GENERAL_ACTIVITY, a) for a in general_activities]
    return [
        Interruption(
            start=combine(schedule_date, item.start_time),
            end=combine(schedule_date, item.end_time),
            block_type=block_type,
            name=item.name,
            description=item.description,
            zone_id=item.zone_id,
        )
        for block_type, item in requested
    ]


# ============================================================================
# Generate / Regenerate
# ============================================================================


@router.post("/events/{event_id}/rotation/schedule/generate", response_model=ScheduleDetailResponse)
def generate_schedule(event_id: int, data: GenerateScheduleRequest, session: Session = Depends(get_session)):
    """
    Generate the event's rotation schedule, replacing any unlocked one.

    Requires as many groups as active stations. Breaks and general
    activities are placed at their fixed times; the rest of the window is
    cut into rotations of rotation_duration minutes (shorter next to a
    boundary).
    """
    params = ScheduleParams(
        schedule_date=data.schedule_date,
        start_time=data.start_time,
        end_time=data.end_time,
        rotation_duration_minutes=data.rotation_duration,
        interruptions=_interruptions(data.schedule_date, data.breaks, data.general_activities),
        name=data.name,
        notes=data.notes,
    )
    try:
        schedule = schedule_service.generate_schedule(session, event_id, params, data.expected_version)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)

    return _schedule_detail(session, schedule)


@router.post("/events/{event_id}/rotation/schedule/regenerate", response_model=ScheduleDetailResponse)
def regenerate_schedule(
    event_id: int,
    data: Optional[RegenerateScheduleRequest] = None,
    session: Session = Depends(get_session),
):
    """
    Rebuild the existing schedule from scratch.

    Omitted window fields keep their stored values. When neither breaks nor
    general_activities is sent, the current ones are kept; sending either
    replaces the whole interruption list.
    """
    data = data or RegenerateScheduleRequest()
    overrides = data.model_dump(exclude_unset=True, exclude={"expected_version"})

    params = None
    existing = schedule_service.get_schedule_for_event(session, event_id)
    if existing is not None and overrides:
        schedule_date = data.schedule_date if data.schedule_date is not None else existing.schedule_date
        interruptions = None
        if data.breaks is not None or data.general_activities is not None:
            interruptions = _interruptions(schedule_date, data.breaks or [], data.general_activities or [])
        params = ScheduleParams(
            schedule_date=schedule_date,
            start_time=data.start_time if data.start_time is not None else existing.start_time,
            end_time=data.end_time if data.end_time is not None else existing.end_time,
            rotation_duration_minutes=(
                data.rotation_duration if data.rotation_duration is not None else existing.default_rotation_duration
            ),
            interruptions=interruptions,
            name=existing.name,
            notes=existing.notes,
        )

    try:
        schedule = schedule_service.regenerate_schedule(session, event_id, params, data.expected_version)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)

    return _schedule_detail(session, schedule)


# ============================================================================
# Schedule Read / Update / Delete
# ============================================================================


@router.get("/events/{event_id}/rotation/schedule", response_model=ScheduleDetailResponse)
def get_schedule(event_id: int, session: Session = Depends(get_session)):
    schedule = schedule_service.get_schedule_for_event(session, event_id)
    if schedule is None:
        raise HTTPException(status_code=404, detail="NOT_FOUND: Schedule not found")
    return _schedule_detail(session, schedule)


@router.delete("/events/{event_id}/rotation/schedule", status_code=204)
def delete_schedule(event_id: int, session: Session = Depends(get_session)):
    try:
        schedule_service.delete_schedule(session, event_id)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)
    return None


@router.patch("/rotation/schedules/{schedule_id}", response_model=ScheduleResponse)
def update_schedule(schedule_id: int, data: ScheduleUpdate, session: Session = Depends(get_session)):
    changes = data.model_dump(exclude_unset=True, exclude={"expected_version"})
    try:
        return schedule_service.update_schedule_details(session, schedule_id, changes, data.expected_version)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)


@router.post("/rotation/schedules/{schedule_id}/publish", response_model=ScheduleResponse)
def publish_schedule(schedule_id: int, session: Session = Depends(get_session)):
    try:
        return schedule_service.publish_schedule(session, schedule_id)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)


@router.post("/rotation/schedules/{schedule_id}/unpublish", response_model=ScheduleResponse)
def unpublish_schedule(schedule_id: int, session: Session = Depends(get_session)):
    try:
        return schedule_service.unpublish_schedule(session, schedule_id)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)


@router.post("/rotation/schedules/{schedule_id}/lock", response_model=ScheduleResponse)
def lock_schedule(schedule_id: int, session: Session = Depends(get_session)):
    """Lock the schedule; every further mutation except unlock is refused"""
    try:
        return schedule_service.lock_schedule(session, schedule_id)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)


@router.post("/rotation/schedules/{schedule_id}/unlock", response_model=ScheduleResponse)
def unlock_schedule(schedule_id: int, session: Session = Depends(get_session)):
    try:
        return schedule_service.unlock_schedule(session, schedule_id)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)


# ============================================================================
# Time Blocks
# ============================================================================


@router.get("/rotation/schedules/{schedule_id}/time-blocks", response_model=List[TimeBlockDetailResponse])
def list_time_blocks(schedule_id: int, session: Session = Depends(get_session)):
    """Blocks in block_order with their assignments"""
    try:
        schedule = get_schedule_or_404(session, schedule_id)
    except RotationError as e:
        raise to_http_exception(e)
    return _block_details(session, schedule.id)


@router.post(
    "/rotation/schedules/{schedule_id}/time-blocks", response_model=TimeBlockResponse, status_code=201
)
def add_time_block(schedule_id: int, data: AddTimeBlockRequest, session: Session = Depends(get_session)):
    """
    Insert a break or general activity into a generated schedule.

    Overlapped rotations are trimmed, split or dropped and later rotations
    are renumbered. Existing pairings are kept.
    """
    try:
        return schedule_service.add_time_block(
            session,
            schedule_id,
            block_type=data.block_type,
            name=data.name,
            start_time=data.start_time,
            duration_minutes=data.duration_minutes,
            description=data.description,
            zone_id=data.zone_id,
            expected_version=data.expected_version,
        )
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)


@router.patch("/rotation/time-blocks/{block_id}", response_model=TimeBlockResponse)
def update_time_block(block_id: int, data: TimeBlockUpdate, session: Session = Depends(get_session)):
    changes = data.model_dump(exclude_unset=True, exclude={"expected_version"})
    try:
        return schedule_service.update_time_block(session, block_id, changes, data.expected_version)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)


@router.delete("/rotation/time-blocks/{block_id}", status_code=204)
def delete_time_block(
    block_id: int,
    expected_version: Optional[int] = Query(None),
    session: Session = Depends(get_session),
):
    """Remove a break or general activity; the freed time stays empty until regenerate"""
    try:
        schedule_service.delete_time_block(session, block_id, expected_version)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)
    return None


# ============================================================================
# Assignment Overrides
# ============================================================================


@router.post("/rotation/time-blocks/{block_id}/assignments", response_model=AssignmentResponse)
def set_assignment(block_id: int, data: SetAssignmentRequest, session: Session = Depends(get_session)):
    try:
        return schedule_service.set_assignment(
            session, block_id, data.group_id, data.station_id, data.notes, data.expected_version
        )
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)


@router.put("/rotation/time-blocks/{block_id}/assignments", response_model=List[AssignmentResponse])
def bulk_set_assignments(block_id: int, data: BulkAssignmentsRequest, session: Session = Depends(get_session)):
    pairs = [(a.group_id, a.station_id) for a in data.assignments]
    try:
        return schedule_service.bulk_set_assignments(session, block_id, pairs, data.expected_version)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)


@router.delete("/rotation/time-blocks/{block_id}/assignments", response_model=ClearAssignmentsResponse)
def clear_assignments(
    block_id: int,
    expected_version: Optional[int] = Query(None),
    session: Session = Depends(get_session),
):
    try:
        cleared = schedule_service.clear_assignments(session, block_id, expected_version)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)
    return ClearAssignmentsResponse(time_block_id=block_id, cleared=cleared)


# ============================================================================
# Overview
# ============================================================================


@router.get("/events/{event_id}/rotation/overview", response_model=RotationOverviewResponse)
def get_rotation_overview(event_id: int, session: Session = Depends(get_session)):
    """Groups, active stations and the schedule (if any) in one payload"""
    try:
        schedule_service.get_event_or_404(session, event_id)
    except RotationError as e:
        raise to_http_exception(e)

    groups, stations = schedule_service.load_roster(session, event_id)
    member_counts = {}
    if groups:
        for member in session.exec(
            select(EventGroupMember).where(EventGroupMember.group_id.in_([g.id for g in groups]))
        ).all():
            member_counts[member.group_id] = member_counts.get(member.group_id, 0) + 1

    schedule = schedule_service.get_schedule_for_event(session, event_id)
    return RotationOverviewResponse(
        event_id=event_id,
        groups=[
            OverviewGroup(
                id=g.id, name=g.name, color=g.color, sort_order=g.sort_order, member_count=member_counts.get(g.id, 0)
            )
            for g in groups
        ],
        stations=[
            OverviewStation(id=s.id, name=s.name, color=s.color, sort_order=s.sort_order, capacity=s.capacity)
            for s in stations
        ],
        is_balanced=is_balanced(len(groups), len(stations)),
        schedule=_schedule_detail(session, schedule) if schedule is not None else None,
    )
