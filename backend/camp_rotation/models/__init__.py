from camp_rotation.models.event import Event
from camp_rotation.models.event_group import EventGroup, EventGroupMember
from camp_rotation.models.event_registration import EventRegistration, RegistrationStatus
from camp_rotation.models.event_station import EventStation, EventStationStaff
from camp_rotation.models.rotation_assignment import RotationAssignment
from camp_rotation.models.rotation_schedule import RotationSchedule
from camp_rotation.models.time_block import BlockType, EventTimeBlock

__all__ = [
    "Event",
    "EventRegistration",
    "RegistrationStatus",
    "EventGroup",
    "EventGroupMember",
    "EventStation",
    "EventStationStaff",
    "RotationSchedule",
    "EventTimeBlock",
    "BlockType",
    "RotationAssignment",
]
