"""Initial migration: create event, registration, group, station and rotation schedule tables

Revision ID: 001_rotation_tables
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_rotation_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "event",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "eventregistration",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("registrant_name", sa.String(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="confirmed"),
        sa.Column("age_category_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
    )
    op.create_index("ix_eventregistration_event_id", "eventregistration", ["event_id"])

    op.create_table(
        "eventgroup",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("color", sa.String(length=7), nullable=False, server_default="#6366f1"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("leader_id", sa.Integer(), nullable=True),
        sa.Column("max_capacity", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
        sa.UniqueConstraint("event_id", "name", name="uq_event_group_name"),
    )
    op.create_index("ix_eventgroup_event_id", "eventgroup", ["event_id"])

    op.create_table(
        "eventgroupmember",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("registration_id", sa.Integer(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("assigned_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["group_id"], ["eventgroup.id"]),
        sa.ForeignKeyConstraint(["registration_id"], ["eventregistration.id"]),
        sa.UniqueConstraint("group_id", "registration_id", name="uq_group_member"),
    )
    op.create_index("ix_eventgroupmember_group_id", "eventgroupmember", ["group_id"])

    op.create_table(
        "eventstation",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("color", sa.String(length=7), nullable=False, server_default="#10b981"),
        sa.Column("content", sa.JSON(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("zone_id", sa.Integer(), nullable=True),
        sa.Column("location_notes", sa.String(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
    )
    op.create_index("ix_eventstation_event_id", "eventstation", ["event_id"])

    op.create_table(
        "eventstationstaff",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("station_id", sa.Integer(), nullable=False),
        sa.Column("staff_id", sa.Integer(), nullable=False),
        sa.Column("role_at_station", sa.String(length=100), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["station_id"], ["eventstation.id"]),
        sa.UniqueConstraint("station_id", "staff_id", name="uq_station_staff"),
    )
    op.create_index("ix_eventstationstaff_station_id", "eventstationstaff", ["station_id"])

    # One schedule per event; the unique constraint is what turns two racing
    # first generations into a conflict
    op.create_table(
        "rotationschedule",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("schedule_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("default_rotation_duration", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("total_rotations", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("needs_regeneration", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
        sa.UniqueConstraint("event_id", name="uq_rotation_schedule_event"),
    )
    op.create_index("ix_rotationschedule_event_id", "rotationschedule", ["event_id"])

    op.create_table(
        "eventtimeblock",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("schedule_id", sa.Integer(), nullable=False),
        sa.Column("block_order", sa.Integer(), nullable=False),
        sa.Column("block_type", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("rotation_number", sa.Integer(), nullable=True),
        sa.Column("zone_id", sa.Integer(), nullable=True),
        sa.Column("color", sa.String(length=7), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["schedule_id"], ["rotationschedule.id"]),
    )
    op.create_index("ix_eventtimeblock_schedule_id", "eventtimeblock", ["schedule_id"])

    op.create_table(
        "rotationassignment",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("time_block_id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("station_id", sa.Integer(), nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["time_block_id"], ["eventtimeblock.id"]),
        sa.ForeignKeyConstraint(["group_id"], ["eventgroup.id"]),
        sa.ForeignKeyConstraint(["station_id"], ["eventstation.id"]),
        sa.UniqueConstraint("time_block_id", "group_id", name="uq_assignment_block_group"),
    )
    op.create_index("ix_rotationassignment_time_block_id", "rotationassignment", ["time_block_id"])


def downgrade() -> None:
    op.drop_index("ix_rotationassignment_time_block_id", table_name="rotationassignment")
    op.drop_table("rotationassignment")
    op.drop_index("ix_eventtimeblock_schedule_id", table_name="eventtimeblock")
    op.drop_table("eventtimeblock")
    op.drop_index("ix_rotationschedule_event_id", table_name="rotationschedule")
    op.drop_table("rotationschedule")
    op.drop_index("ix_eventstationstaff_station_id", table_name="eventstationstaff")
    op.drop_table("eventstationstaff")
    op.drop_index("ix_eventstation_event_id", table_name="eventstation")
    op.drop_table("eventstation")
    op.drop_index("ix_eventgroupmember_group_id", table_name="eventgroupmember")
    op.drop_table("eventgroupmember")
    op.drop_index("ix_eventgroup_event_id", table_name="eventgroup")
    op.drop_table("eventgroup")
    op.drop_index("ix_eventregistration_event_id", table_name="eventregistration")
    op.drop_table("eventregistration")
    op.drop_table("event")
