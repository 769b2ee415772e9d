"""
Event Group API Routes
CRUD for athlete groups, membership management and auto-assignment.

Adding or removing a group changes the rotation roster, so the event's
schedule is reconciled in the same transaction.
"""

import re
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from camp_rotation.database import get_session
from camp_rotation.errors import RotationError
from camp_rotation.models.event import Event
from camp_rotation.models.event_group import DEFAULT_GROUP_COLOR, EventGroup, EventGroupMember
from camp_rotation.models.event_registration import EventRegistration
from camp_rotation.services import schedule_service
from camp_rotation.services.group_auto_assigner import GroupStrategy, auto_assign_groups
from camp_rotation.utils.http_errors import to_http_exception

router = APIRouter()

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _validate_color(v):
    if v is not None and not HEX_COLOR.match(v):
        raise ValueError("Invalid color format")
    return v


# ============================================================================
# Request/Response Models
# ============================================================================


class GroupCreate(BaseModel):
    name: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    color: str = DEFAULT_GROUP_COLOR
    sort_order: int = 0
    leader_id: Optional[int] = None
    max_capacity: Optional[int] = Field(default=None, gt=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return _validate_color(v)


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    color: Optional[str] = None
    sort_order: Optional[int] = None
    leader_id: Optional[int] = None
    max_capacity: Optional[int] = Field(default=None, gt=0)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return _validate_color(v)


class GroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    name: str
    description: Optional[str] = None
    color: str
    sort_order: int
    leader_id: Optional[int] = None
    max_capacity: Optional[int] = None
    created_at: datetime
    member_registration_ids: List[int] = []


class AssignMembersRequest(BaseModel):
    registration_ids: List[int]


class AssignMembersResponse(BaseModel):
    success: bool
    assigned: int


class AutoAssignRequest(BaseModel):
    number_of_groups: int  # Range and registration count are checked by the auto-assigner
    strategy: GroupStrategy = GroupStrategy.random
    seed: Optional[int] = None


class AutoAssignResponse(BaseModel):
    groups: List[GroupResponse]
    total_assigned: int
    group_sizes: List[int]


# ============================================================================
# Helpers
# ============================================================================


def _member_ids(session: Session, group_id: int) -> List[int]:
    members = session.exec(
        select(EventGroupMember)
        .where(EventGroupMember.group_id == group_id)
        .order_by(EventGroupMember.sort_order, EventGroupMember.id)
    ).all()
    return [m.registration_id for m in members]


def _group_response(session: Session, group: EventGroup) -> GroupResponse:
    response = GroupResponse.model_validate(group)
    response.member_registration_ids = _member_ids(session, group.id)
    return response


def _get_group_or_404(session: Session, group_id: int) -> EventGroup:
    group = session.get(EventGroup, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    return group


# ============================================================================
# Group CRUD Endpoints
# ============================================================================


@router.get("/events/{event_id}/groups", response_model=List[GroupResponse])
def list_groups(event_id: int, session: Session = Depends(get_session)):
    """Get all groups for an event in rotation order (sort_order, id)"""
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    groups = session.exec(
        select(EventGroup).where(EventGroup.event_id == event_id).order_by(EventGroup.sort_order, EventGroup.id)
    ).all()
    return [_group_response(session, g) for g in groups]


@router.get("/groups/{group_id}", response_model=GroupResponse)
def get_group(group_id: int, session: Session = Depends(get_session)):
    return _group_response(session, _get_group_or_404(session, group_id))


@router.post("/events/{event_id}/groups", response_model=GroupResponse, status_code=201)
def create_group(event_id: int, data: GroupCreate, session: Session = Depends(get_session)):
    """
    Create a group.

    Constraints:
    - (event_id, name) must be unique
    """
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    group = EventGroup(event_id=event_id, **data.model_dump())
    try:
        session.add(group)
        session.flush()
        schedule_service.reconcile_after_roster_change(session, event_id)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="A group with this name already exists for this event")
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)

    session.refresh(group)
    return _group_response(session, group)


@router.patch("/groups/{group_id}", response_model=GroupResponse)
def update_group(group_id: int, data: GroupUpdate, session: Session = Depends(get_session)):
    group = _get_group_or_404(session, group_id)

    update_dict = data.model_dump(exclude_unset=True)
    if "name" in update_dict and (update_dict["name"] is None or not update_dict["name"].strip()):
        raise HTTPException(status_code=400, detail="Name is required")
    reordered = "sort_order" in update_dict and update_dict["sort_order"] != group.sort_order
    for field, value in update_dict.items():
        setattr(group, field, value)

    try:
        session.add(group)
        session.flush()
        if reordered:
            schedule_service.flag_roster_reordered(session, group.event_id)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="A group with this name already exists for this event")
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)

    session.refresh(group)
    return _group_response(session, group)


@router.delete("/groups/{group_id}", status_code=204)
def delete_group(group_id: int, session: Session = Depends(get_session)):
    """
    Delete a group and its memberships.

    Refused when a locked schedule still assigns the group; otherwise its
    assignments are removed and the schedule is reconciled.
    """
    group = _get_group_or_404(session, group_id)
    event_id = group.event_id

    try:
        schedule_service.ensure_roster_change_allowed(session, event_id, group_ids=[group.id])
        schedule_service.remove_roster_references(session, event_id, group_ids=[group.id])

        for member in session.exec(select(EventGroupMember).where(EventGroupMember.group_id == group.id)).all():
            session.delete(member)
        session.flush()
        session.delete(group)
        session.flush()

        schedule_service.reconcile_after_roster_change(session, event_id)
        session.commit()
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)

    return None


# ============================================================================
# Membership Endpoints
# ============================================================================


@router.post("/groups/{group_id}/members", response_model=AssignMembersResponse)
def assign_members(group_id: int, data: AssignMembersRequest, session: Session = Depends(get_session)):
    """Add registrations to a group (already-present members are skipped)"""
    group = _get_group_or_404(session, group_id)

    requested = list(dict.fromkeys(data.registration_ids))
    registrations = session.exec(
        select(EventRegistration).where(
            EventRegistration.id.in_(requested), EventRegistration.event_id == group.event_id
        )
    ).all()
    if len(registrations) != len(requested):
        raise HTTPException(status_code=400, detail="Some registrations are invalid or do not belong to this event")

    existing = set(_member_ids(session, group.id))
    sort_order = len(existing)

    assigned = 0
    for registration_id in requested:
        if registration_id in existing:
            continue
        session.add(EventGroupMember(group_id=group.id, registration_id=registration_id, sort_order=sort_order))
        sort_order += 1
        assigned += 1

    session.commit()
    return AssignMembersResponse(success=True, assigned=assigned)


@router.delete("/groups/{group_id}/members/{registration_id}", status_code=204)
def remove_member(group_id: int, registration_id: int, session: Session = Depends(get_session)):
    _get_group_or_404(session, group_id)

    member = session.exec(
        select(EventGroupMember).where(
            EventGroupMember.group_id == group_id, EventGroupMember.registration_id == registration_id
        )
    ).first()
    if not member:
        raise HTTPException(status_code=404, detail="Member not found in group")

    session.delete(member)
    session.commit()
    return None


# ============================================================================
# Auto-Assign Endpoint
# ============================================================================


@router.post("/events/{event_id}/groups/auto-assign", response_model=AutoAssignResponse)
def auto_assign(event_id: int, data: AutoAssignRequest, session: Session = Depends(get_session)):
    """
    Replace the event's groups with number_of_groups balanced groups.

    Strategies:
    - random: shuffle (pass seed for repeatable output), then deal round-robin
    - alphabetical: sort by name, then deal round-robin (interleaved, not contiguous ranges)
    - age_category: spread each age category evenly across groups

    Group sizes always differ by at most one.
    """
    try:
        result = auto_assign_groups(session, event_id, data.number_of_groups, data.strategy, data.seed)
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)

    return AutoAssignResponse(
        groups=[_group_response(session, g) for g in result.groups],
        total_assigned=result.total_assigned,
        group_sizes=result.group_sizes,
    )
