"""
Event Station API Routes
CRUD for training stations (content, capacity, zone) and station staff.

Creating, deleting or (de)activating a station changes the rotation roster,
so the event's schedule is reconciled in the same transaction.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from camp_rotation.database import get_session
from camp_rotation.errors import RotationError
from camp_rotation.models.event import Event
from camp_rotation.models.event_station import DEFAULT_STATION_COLOR, EventStation, EventStationStaff
from camp_rotation.services import schedule_service
from camp_rotation.utils.http_errors import to_http_exception

router = APIRouter()

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


# ============================================================================
# Request/Response Models
# ============================================================================


class StationMaterial(BaseModel):
    name: str
    quantity: int = Field(gt=0)
    checked: bool = False


class StationAttachment(BaseModel):
    key: str
    name: str
    type: str


class StationContent(BaseModel):
    instructions: Optional[str] = None
    staff_instructions: Optional[str] = None
    materials: List[StationMaterial] = []
    attachments: List[StationAttachment] = []


class StationCreate(BaseModel):
    name: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    color: str = DEFAULT_STATION_COLOR
    content: Optional[StationContent] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    zone_id: Optional[int] = None
    location_notes: Optional[str] = Field(default=None, max_length=500)
    sort_order: int = 0

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        if not HEX_COLOR.match(v):
            raise ValueError("Invalid color format")
        return v


class StationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    color: Optional[str] = None
    content: Optional[StationContent] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    zone_id: Optional[int] = None
    location_notes: Optional[str] = Field(default=None, max_length=500)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        if v is not None and not HEX_COLOR.match(v):
            raise ValueError("Invalid color format")
        return v


class StaffResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    station_id: int
    staff_id: int
    role_at_station: Optional[str] = None
    is_primary: bool
    notes: Optional[str] = None


class StationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    name: str
    description: Optional[str] = None
    color: str
    content: Optional[Dict[str, Any]] = None
    capacity: Optional[int] = None
    zone_id: Optional[int] = None
    location_notes: Optional[str] = None
    sort_order: int
    is_active: bool
    created_at: datetime
    staff: List[StaffResponse] = []


class AssignStaffRequest(BaseModel):
    staff_id: int
    role_at_station: Optional[str] = Field(default=None, max_length=100)
    is_primary: bool = False
    notes: Optional[str] = Field(default=None, max_length=500)


# ============================================================================
# Helpers
# ============================================================================


def _station_response(session: Session, station: EventStation) -> StationResponse:
    response = StationResponse.model_validate(station)
    staff = session.exec(
        select(EventStationStaff).where(EventStationStaff.station_id == station.id).order_by(EventStationStaff.id)
    ).all()
    response.staff = [StaffResponse.model_validate(s) for s in staff]
    return response


def _get_station_or_404(session: Session, station_id: int) -> EventStation:
    station = session.get(EventStation, station_id)
    if not station:
        raise HTTPException(status_code=404, detail="Station not found")
    return station


# ============================================================================
# Station CRUD Endpoints
# ============================================================================


@router.get("/events/{event_id}/stations", response_model=List[StationResponse])
def list_stations(
    event_id: int,
    include_inactive: bool = Query(False, description="Include deactivated stations"),
    session: Session = Depends(get_session),
):
    """Get an event's stations in rotation order (sort_order, id)"""
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    query = select(EventStation).where(EventStation.event_id == event_id)
    if not include_inactive:
        query = query.where(EventStation.is_active == True)  # noqa: E712
    stations = session.exec(query.order_by(EventStation.sort_order, EventStation.id)).all()
    return [_station_response(session, s) for s in stations]


@router.get("/stations/{station_id}", response_model=StationResponse)
def get_station(station_id: int, session: Session = Depends(get_session)):
    return _station_response(session, _get_station_or_404(session, station_id))


@router.post("/events/{event_id}/stations", response_model=StationResponse, status_code=201)
def create_station(event_id: int, data: StationCreate, session: Session = Depends(get_session)):
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    payload = data.model_dump()
    station = EventStation(event_id=event_id, **payload)
    try:
        session.add(station)
        session.flush()
        schedule_service.reconcile_after_roster_change(session, event_id)
        session.commit()
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)

    session.refresh(station)
    return _station_response(session, station)


@router.patch("/stations/{station_id}", response_model=StationResponse)
def update_station(station_id: int, data: StationUpdate, session: Session = Depends(get_session)):
    """
    Update a station.

    Deactivating a station removes it from the rotation roster exactly like
    deleting it; reactivating adds it back. Reordering an active station
    flags the schedule for regeneration.
    """
    station = _get_station_or_404(session, station_id)
    update_dict = data.model_dump(exclude_unset=True)
    if "name" in update_dict and (update_dict["name"] is None or not update_dict["name"].strip()):
        raise HTTPException(status_code=400, detail="Name is required")

    roster_changed = "is_active" in update_dict and update_dict["is_active"] != station.is_active
    reordered = "sort_order" in update_dict and update_dict["sort_order"] != station.sort_order

    try:
        if roster_changed and not update_dict["is_active"]:
            schedule_service.ensure_roster_change_allowed(session, station.event_id, station_ids=[station.id])
            schedule_service.remove_roster_references(session, station.event_id, station_ids=[station.id])

        for field, value in update_dict.items():
            setattr(station, field, value)
        session.add(station)
        session.flush()

        if roster_changed:
            schedule_service.reconcile_after_roster_change(session, station.event_id)
        elif reordered and station.is_active:
            schedule_service.flag_roster_reordered(session, station.event_id)
        session.commit()
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)

    session.refresh(station)
    return _station_response(session, station)


@router.delete("/stations/{station_id}", status_code=204)
def delete_station(station_id: int, session: Session = Depends(get_session)):
    """
    Delete a station and its staff links.

    Refused when a locked schedule still sends a group there; otherwise its
    assignments are removed and the schedule is reconciled.
    """
    station = _get_station_or_404(session, station_id)
    event_id = station.event_id

    try:
        schedule_service.ensure_roster_change_allowed(session, event_id, station_ids=[station.id])
        schedule_service.remove_roster_references(session, event_id, station_ids=[station.id])

        for link in session.exec(select(EventStationStaff).where(EventStationStaff.station_id == station.id)).all():
            session.delete(link)
        session.flush()
        session.delete(station)
        session.flush()

        schedule_service.reconcile_after_roster_change(session, event_id)
        session.commit()
    except RotationError as e:
        session.rollback()
        raise to_http_exception(e)

    return None


# ============================================================================
# Station Staff Endpoints
# ============================================================================


@router.post("/stations/{station_id}/staff", response_model=StaffResponse, status_code=201)
def assign_staff(station_id: int, data: AssignStaffRequest, session: Session = Depends(get_session)):
    _get_station_or_404(session, station_id)

    link = EventStationStaff(station_id=station_id, **data.model_dump())
    try:
        session.add(link)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Staff member is already assigned to this station")

    session.refresh(link)
    return link


@router.delete("/stations/{station_id}/staff/{staff_id}", status_code=204)
def remove_staff(station_id: int, staff_id: int, session: Session = Depends(get_session)):
    _get_station_or_404(session, station_id)

    link = session.exec(
        select(EventStationStaff).where(
            EventStationStaff.station_id == station_id, EventStationStaff.staff_id == staff_id
        )
    ).first()
    if not link:
        raise HTTPException(status_code=404, detail="Staff member is not assigned to this station")

    session.delete(link)
    session.commit()
    return None
