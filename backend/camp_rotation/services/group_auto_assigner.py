"""
Group Auto-Assigner - Balanced athlete grouping

Distributes an event's confirmed registrations into N groups. Every
strategy orders the registrations first and then deals them round-robin, so
group sizes never differ by more than one:

- random: seedable Fisher-Yates shuffle, then deal
- alphabetical: sort by display name, then deal (interleaves by rank; it
  does not produce contiguous name ranges)
- age_category: bucket by age category, deal each bucket in turn with the
  deal cursor carried over, so every group gets an even spread of each
  category
"""

import logging
import random
from enum import Enum
from typing import Dict, List, Optional, Sequence

from sqlmodel import Session, select

from camp_rotation.errors import InvalidGroupCount, NoRegistrations, NotFound
from camp_rotation.models.event import Event
from camp_rotation.models.event_group import EventGroup, EventGroupMember
from camp_rotation.models.event_registration import EventRegistration, RegistrationStatus
from camp_rotation.services import schedule_service
from camp_rotation.utils.schedule_guards import require_unlocked_schedule

logger = logging.getLogger(__name__)

MIN_GROUPS = 2
MAX_GROUPS = 50

GROUP_COLORS = [
    "#6366f1",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#06b6d4",
    "#ec4899",
    "#84cc16",
]


class GroupStrategy(str, Enum):
    random = "random"
    alphabetical = "alphabetical"
    age_category = "age_category"


# ============================================================================
# Naming
# ============================================================================


def group_label_for(index: int) -> str:
    """Spreadsheet-style label: 0 -> A, 25 -> Z, 26 -> AA"""
    label = ""
    n = index + 1
    while n > 0:
        n, remainder = divmod(n - 1, 26)
        label = chr(65 + remainder) + label
    return label


def group_name_for(index: int) -> str:
    return f"Group {group_label_for(index)}"


def group_color_for(index: int) -> str:
    return GROUP_COLORS[index % len(GROUP_COLORS)]


# ============================================================================
# Pure Distribution
# ============================================================================


def validate_group_count(number_of_groups: int, registration_count: int) -> None:
    """
    Raises:
        NoRegistrations: registration_count is zero
        InvalidGroupCount: outside [2, 50] or more groups than registrations
    """
    if registration_count == 0:
        raise NoRegistrations("No confirmed registrations found for this event", {"registration_count": 0})
    if not MIN_GROUPS <= number_of_groups <= MAX_GROUPS:
        raise InvalidGroupCount(
            f"number_of_groups must be between {MIN_GROUPS} and {MAX_GROUPS}, got {number_of_groups}",
            {"number_of_groups": number_of_groups},
        )
    if number_of_groups > registration_count:
        raise InvalidGroupCount(
            f"Cannot split {registration_count} registrations into {number_of_groups} groups",
            {"number_of_groups": number_of_groups, "registration_count": registration_count},
        )


def _deal(ordered: Sequence[EventRegistration], groups: List[List[EventRegistration]], cursor: int = 0) -> int:
    for registration in ordered:
        groups[cursor % len(groups)].append(registration)
        cursor += 1
    return cursor


def distribute_registrations(
    registrations: Sequence[EventRegistration],
    number_of_groups: int,
    strategy: GroupStrategy = GroupStrategy.random,
    rng: Optional[random.Random] = None,
) -> List[List[EventRegistration]]:
    """
    Partition registrations into number_of_groups balanced lists.

    Args:
        registrations: Registrations in a stable order (by id)
        number_of_groups: Target group count
        strategy: Ordering applied before dealing
        rng: Random source for the random strategy (seed it for repeatable output)

    Returns:
        number_of_groups lists whose sizes differ by at most one and whose
        union is exactly the input
    """
    validate_group_count(number_of_groups, len(registrations))
    groups: List[List[EventRegistration]] = [[] for _ in range(number_of_groups)]

    if strategy == GroupStrategy.random:
        ordered = list(registrations)
        (rng or random.Random()).shuffle(ordered)
        _deal(ordered, groups)

    elif strategy == GroupStrategy.alphabetical:
        ordered = sorted(registrations, key=lambda r: (r.registrant_name.casefold(), r.id or 0))
        _deal(ordered, groups)

    elif strategy == GroupStrategy.age_category:
        buckets: Dict[Optional[int], List[EventRegistration]] = {}
        for registration in registrations:
            buckets.setdefault(registration.age_category_id, []).append(registration)

        # Known categories ascending, unknown last
        cursor = 0
        for category_id in sorted(buckets, key=lambda c: (c is None, c if c is not None else 0)):
            cursor = _deal(buckets[category_id], groups, cursor)

    else:
        raise ValueError(f"Unknown grouping strategy: {strategy}")

    return groups


# ============================================================================
# Persistence
# ============================================================================


class AutoAssignResult:
    """Result of auto-assigning an event's registrations to groups"""

    def __init__(self, event_id: int, groups: List[EventGroup], total_assigned: int, group_sizes: List[int]):
        self.event_id = event_id
        self.groups = groups
        self.total_assigned = total_assigned
        self.group_sizes = group_sizes


def auto_assign_groups(
    session: Session,
    event_id: int,
    number_of_groups: int,
    strategy: GroupStrategy = GroupStrategy.random,
    seed: Optional[int] = None,
) -> AutoAssignResult:
    """
    Replace an event's groups with number_of_groups freshly dealt groups.

    Existing groups and their memberships are deleted. The event's rotation
    schedule, if any, is reconciled with the new roster in the same
    transaction.

    Raises:
        NotFound: event does not exist
        NoRegistrations / InvalidGroupCount: see validate_group_count
        ScheduleLocked: the event has a locked schedule
    """
    event = session.get(Event, event_id)
    if not event:
        raise NotFound(f"Event {event_id} not found")

    registrations = session.exec(
        select(EventRegistration)
        .where(
            EventRegistration.event_id == event_id,
            EventRegistration.status == RegistrationStatus.confirmed.value,
        )
        .order_by(EventRegistration.id)
    ).all()

    dealt = distribute_registrations(registrations, number_of_groups, strategy, random.Random(seed))

    schedule = schedule_service.get_schedule_for_event(session, event_id)
    if schedule is not None:
        require_unlocked_schedule(schedule)

    existing_groups = session.exec(select(EventGroup).where(EventGroup.event_id == event_id)).all()
    existing_ids = [g.id for g in existing_groups]
    schedule_service.remove_roster_references(session, event_id, group_ids=existing_ids)

    # Delete memberships first (child records), then groups
    if existing_ids:
        members = session.exec(select(EventGroupMember).where(EventGroupMember.group_id.in_(existing_ids))).all()
        for member in members:
            session.delete(member)
        session.flush()
        for group in existing_groups:
            session.delete(group)
        session.flush()

    groups: List[EventGroup] = []
    for index, registrations_in_group in enumerate(dealt):
        group = EventGroup(
            event_id=event_id,
            name=group_name_for(index),
            color=group_color_for(index),
            sort_order=index,
        )
        session.add(group)
        session.flush()

        for position, registration in enumerate(registrations_in_group):
            session.add(EventGroupMember(group_id=group.id, registration_id=registration.id, sort_order=position))
        groups.append(group)

    session.flush()
    schedule_service.reconcile_after_roster_change(session, event_id)
    session.commit()
    for group in groups:
        session.refresh(group)

    group_sizes = [len(g) for g in dealt]
    logger.info(
        "Auto-assigned %d registrations for event %d into %d groups (strategy=%s, sizes=%s)",
        len(registrations),
        event_id,
        number_of_groups,
        strategy.value if isinstance(strategy, GroupStrategy) else strategy,
        group_sizes,
    )

    return AutoAssignResult(
        event_id=event_id,
        groups=groups,
        total_assigned=len(registrations),
        group_sizes=group_sizes,
    )
