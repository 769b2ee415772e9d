# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from camp_rotation.models.event import Event  # noqa: F401
from camp_rotation.models.event_group import EventGroup, EventGroupMember  # noqa: F401
from camp_rotation.models.event_registration import EventRegistration  # noqa: F401
from camp_rotation.models.event_station import EventStation, EventStationStaff  # noqa: F401
from camp_rotation.models.rotation_assignment import RotationAssignment  # noqa: F401
from camp_rotation.models.rotation_schedule import RotationSchedule  # noqa: F401
from camp_rotation.models.time_block import EventTimeBlock  # noqa: F401
