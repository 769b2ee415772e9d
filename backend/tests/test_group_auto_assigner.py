"""
Tests for balanced group auto-assignment

Pure distribution is checked on unsaved registrations; the persistence path
runs against the in-memory session.
"""

import random

import pytest
from sqlmodel import Session, select

from camp_rotation.errors import InvalidGroupCount, NoRegistrations, NotFound, ScheduleLocked
from camp_rotation.models.event import Event
from camp_rotation.models.event_group import EventGroup, EventGroupMember
from camp_rotation.models.event_registration import EventRegistration, RegistrationStatus
from camp_rotation.models.rotation_schedule import RotationSchedule
from camp_rotation.services.group_auto_assigner import (
    GroupStrategy,
    auto_assign_groups,
    distribute_registrations,
    group_color_for,
    group_name_for,
    validate_group_count,
)


def make_registrations(count, age_categories=None):
    names = ["Zoe", "adam", "Maya", "Luis", "beth", "Omar", "Kai", "Ines", "Noor", "Eli"]
    return [
        EventRegistration(
            id=i + 1,
            event_id=1,
            registrant_name=f"{names[i % len(names)]} {i:02d}",
            age_category_id=age_categories[i] if age_categories else None,
        )
        for i in range(count)
    ]


# ============================================================================
# Pure Distribution
# ============================================================================


def test_seventeen_registrations_into_four_random_groups():
    groups = distribute_registrations(make_registrations(17), 4, GroupStrategy.random, random.Random(7))

    assert sorted(len(g) for g in groups) == [4, 4, 4, 5]


@pytest.mark.parametrize("strategy", list(GroupStrategy))
@pytest.mark.parametrize("count,n", [(2, 2), (10, 3), (23, 5), (50, 50)])
def test_every_strategy_is_balanced_and_complete(strategy, count, n):
    registrations = make_registrations(count, [i % 3 if i % 4 else None for i in range(count)])
    groups = distribute_registrations(registrations, n, strategy, random.Random(1))

    sizes = [len(g) for g in groups]
    assert len(groups) == n
    assert max(sizes) - min(sizes) <= 1

    ids = [r.id for g in groups for r in g]
    assert sorted(ids) == [r.id for r in registrations]


def test_same_seed_gives_same_groups():
    registrations = make_registrations(20)
    first = distribute_registrations(registrations, 4, GroupStrategy.random, random.Random(42))
    second = distribute_registrations(registrations, 4, GroupStrategy.random, random.Random(42))

    assert [[r.id for r in g] for g in first] == [[r.id for r in g] for g in second]


def test_alphabetical_interleaves_by_rank():
    registrations = [
        EventRegistration(id=i + 1, event_id=1, registrant_name=name)
        for i, name in enumerate(["delta", "Alpha", "charlie", "Bravo", "echo", "Foxtrot"])
    ]
    groups = distribute_registrations(registrations, 2, GroupStrategy.alphabetical)

    assert [r.registrant_name for r in groups[0]] == ["Alpha", "charlie", "echo"]
    assert [r.registrant_name for r in groups[1]] == ["Bravo", "delta", "Foxtrot"]


def test_age_category_spreads_each_category():
    # 4 of category 1, 4 of category 2, 2 unknown
    categories = [1, 2, 1, 2, 1, 2, 1, 2, None, None]
    groups = distribute_registrations(make_registrations(10, categories), 2, GroupStrategy.age_category)

    for group in groups:
        in_group = [r.age_category_id for r in group]
        assert in_group.count(1) == 2
        assert in_group.count(2) == 2
        assert in_group.count(None) == 1


def test_validate_group_count():
    with pytest.raises(NoRegistrations):
        validate_group_count(4, 0)
    with pytest.raises(InvalidGroupCount):
        validate_group_count(1, 10)
    with pytest.raises(InvalidGroupCount):
        validate_group_count(51, 100)
    with pytest.raises(InvalidGroupCount) as exc_info:
        validate_group_count(6, 5)
    assert exc_info.value.context == {"number_of_groups": 6, "registration_count": 5}
    validate_group_count(5, 5)


def test_group_naming():
    assert group_name_for(0) == "Group A"
    assert group_name_for(25) == "Group Z"
    assert group_name_for(26) == "Group AA"
    assert group_color_for(0) == group_color_for(8)


# ============================================================================
# Persistence
# ============================================================================


def _event_with_registrations(session: Session, count: int, pending: int = 0) -> int:
    event = Event(name="Summer Camp")
    session.add(event)
    session.commit()
    session.refresh(event)
    for i in range(count):
        session.add(EventRegistration(event_id=event.id, registrant_name=f"Athlete {i:02d}"))
    for i in range(pending):
        session.add(
            EventRegistration(
                event_id=event.id, registrant_name=f"Pending {i}", status=RegistrationStatus.pending.value
            )
        )
    session.commit()
    return event.id


def test_auto_assign_creates_groups_and_members(session: Session):
    event_id = _event_with_registrations(session, 17, pending=3)

    result = auto_assign_groups(session, event_id, 4, GroupStrategy.random, seed=3)

    assert result.total_assigned == 17
    assert sorted(result.group_sizes) == [4, 4, 4, 5]
    groups = session.exec(select(EventGroup).where(EventGroup.event_id == event_id).order_by(EventGroup.sort_order)).all()
    assert [g.name for g in groups] == ["Group A", "Group B", "Group C", "Group D"]
    assert [g.sort_order for g in groups] == [0, 1, 2, 3]
    members = session.exec(select(EventGroupMember)).all()
    assert len(members) == 17
    assert len({m.registration_id for m in members}) == 17


def test_auto_assign_replaces_existing_groups(session: Session):
    event_id = _event_with_registrations(session, 12)
    auto_assign_groups(session, event_id, 4, seed=1)

    auto_assign_groups(session, event_id, 3, seed=1)

    groups = session.exec(select(EventGroup).where(EventGroup.event_id == event_id)).all()
    assert len(groups) == 3
    assert len(session.exec(select(EventGroupMember)).all()) == 12


def test_auto_assign_is_repeatable_with_seed(session: Session):
    event_id = _event_with_registrations(session, 15)

    def membership():
        groups = session.exec(
            select(EventGroup).where(EventGroup.event_id == event_id).order_by(EventGroup.sort_order)
        ).all()
        return [
            sorted(m.registration_id for m in session.exec(select(EventGroupMember).where(EventGroupMember.group_id == g.id)).all())
            for g in groups
        ]

    auto_assign_groups(session, event_id, 3, GroupStrategy.random, seed=99)
    first = membership()
    auto_assign_groups(session, event_id, 3, GroupStrategy.random, seed=99)
    assert membership() == first


def test_auto_assign_without_registrations(session: Session):
    event_id = _event_with_registrations(session, 0, pending=2)
    with pytest.raises(NoRegistrations):
        auto_assign_groups(session, event_id, 2)


def test_auto_assign_unknown_event(session: Session):
    with pytest.raises(NotFound):
        auto_assign_groups(session, 999, 2)


def test_auto_assign_refused_when_schedule_locked(session: Session):
    from datetime import date, time

    event_id = _event_with_registrations(session, 6)
    session.add(
        RotationSchedule(
            event_id=event_id,
            schedule_date=date(2026, 7, 4),
            start_time=time(9, 0),
            end_time=time(12, 0),
            is_locked=True,
        )
    )
    session.commit()

    with pytest.raises(ScheduleLocked):
        auto_assign_groups(session, event_id, 2)
    assert session.exec(select(EventGroup)).all() == []
