"""
Event & Registration API Routes
Minimal event records and the registrations the group auto-assigner reads.
"""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from camp_rotation.database import get_session
from camp_rotation.models.event import Event
from camp_rotation.models.event_registration import EventRegistration, RegistrationStatus

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class EventCreate(BaseModel):
    name: str
    event_date: Optional[date] = None
    location: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name must not be empty")
        return v.strip()


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    event_date: Optional[date] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class RegistrationCreate(BaseModel):
    registrant_name: str
    status: RegistrationStatus = RegistrationStatus.confirmed
    age_category_id: Optional[int] = None

    @field_validator("registrant_name")
    @classmethod
    def validate_registrant_name(cls, v):
        if not v or not v.strip():
            raise ValueError("registrant_name must not be empty")
        return v.strip()


class RegistrationUpdate(BaseModel):
    registrant_name: Optional[str] = None
    status: Optional[RegistrationStatus] = None
    age_category_id: Optional[int] = None


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    registrant_name: str
    status: str
    age_category_id: Optional[int] = None
    created_at: datetime


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/events", response_model=EventResponse, status_code=201)
def create_event(data: EventCreate, session: Session = Depends(get_session)):
    """Create a camp/clinic event"""
    event = Event(**data.model_dump())
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(event_id: int, session: Session = Depends(get_session)):
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("/events/{event_id}/registrations", response_model=List[RegistrationResponse])
def list_registrations(
    event_id: int,
    status: Optional[RegistrationStatus] = Query(None, description="Only registrations with this status"),
    session: Session = Depends(get_session),
):
    """Get an event's registrations in id order"""
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    query = select(EventRegistration).where(EventRegistration.event_id == event_id)
    if status is not None:
        query = query.where(EventRegistration.status == status.value)
    return session.exec(query.order_by(EventRegistration.id)).all()


@router.post("/events/{event_id}/registrations", response_model=RegistrationResponse, status_code=201)
def create_registration(event_id: int, data: RegistrationCreate, session: Session = Depends(get_session)):
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    registration = EventRegistration(
        event_id=event_id,
        registrant_name=data.registrant_name,
        status=data.status.value,
        age_category_id=data.age_category_id,
    )
    session.add(registration)
    session.commit()
    session.refresh(registration)
    return registration


@router.patch("/registrations/{registration_id}", response_model=RegistrationResponse)
def update_registration(registration_id: int, data: RegistrationUpdate, session: Session = Depends(get_session)):
    registration = session.get(EventRegistration, registration_id)
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")

    update_dict = data.model_dump(exclude_unset=True)
    if "status" in update_dict:
        if update_dict["status"] is None:
            raise HTTPException(status_code=400, detail="status must not be null")
        update_dict["status"] = update_dict["status"].value
    for field, value in update_dict.items():
        setattr(registration, field, value)

    session.add(registration)
    session.commit()
    session.refresh(registration)
    return registration
