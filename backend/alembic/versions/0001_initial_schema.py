"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for the Community Hub application:
users, communities, community_members, events, event_rsvps,
community_activities, event_embeddings, user_interest_vectors.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("interests", sa.JSON, nullable=False),
        sa.Column("custom_interests", sa.JSON, nullable=False),
        sa.Column("fitness_goals", sa.JSON, nullable=False),
        sa.Column("experience_level", sa.String(50), nullable=True),
        sa.Column("age_range", sa.String(20), nullable=True),
        sa.Column("location", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- communities ---
    op.create_table(
        "communities",
        sa.Column("community_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("deactivated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deactivated_by", sa.String(36), sa.ForeignKey("users.user_id"), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(36), sa.ForeignKey("users.user_id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_communities_is_active", "communities", ["is_active"])

    # --- community_members ---
    op.create_table(
        "community_members",
        sa.Column("community_id", sa.String(36), sa.ForeignKey("communities.community_id"), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), primary_key=True),
        sa.Column(
            "role",
            sa.Enum("admin", "co-admin", "member", name="communityrole"),
            nullable=False,
            server_default="member",
        ),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- events ---
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("community_id", sa.String(36), sa.ForeignKey("communities.community_id"), nullable=False),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column("start_time_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time_utc", sa.DateTime(timezone=True), nullable=True),
        sa.Column("capacity", sa.Integer, nullable=True),
        sa.Column("is_online", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("meeting_url", sa.String(500), nullable=True),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=True),
        sa.Column("cancel_reason", sa.String(500), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("capacity IS NULL OR capacity > 0", name="check_event_capacity_positive"),
    )
    op.create_index("ix_events_community_id", "events", ["community_id"])
    op.create_index("ix_events_start_time", "events", ["start_time_utc"])

    # --- event_rsvps ---
    op.create_table(
        "event_rsvps",
        sa.Column("rsvp_id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("status", sa.Enum("going", "maybe", "not_going", name="rsvpstatus"), nullable=False),
        sa.Column("guests_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("comment", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_rsvp_user"),
        sa.CheckConstraint("guests_count >= 0", name="check_rsvp_guests_non_negative"),
    )
    op.create_index("ix_event_rsvps_event_status", "event_rsvps", ["event_id", "status"])
    op.create_index("ix_event_rsvps_user_id", "event_rsvps", ["user_id"])

    # --- community_activities ---
    op.create_table(
        "community_activities",
        sa.Column("activity_id", sa.String(36), primary_key=True),
        sa.Column("community_id", sa.String(36), sa.ForeignKey("communities.community_id"), nullable=False),
        sa.Column("actor_user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column(
            "activity_type",
            sa.Enum(
                "event_created", "event_updated", "event_cancelled", "member_joined",
                "community_deactivated", "community_reactivated", "community_deleted",
                name="activitytype",
            ),
            nullable=False,
        ),
        sa.Column("subject_id", sa.String(36), nullable=True),
        sa.Column("payload", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_community_activities_community_id", "community_activities", ["community_id"])

    # --- embeddings ---
    op.create_table(
        "event_embeddings",
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), primary_key=True),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("vector", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "user_interest_vectors",
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), primary_key=True),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("vector", sa.JSON, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("user_interest_vectors")
    op.drop_table("event_embeddings")
    op.drop_table("community_activities")
    op.drop_table("event_rsvps")
    op.drop_table("events")
    op.drop_table("community_members")
    op.drop_table("communities")
    op.drop_table("users")
    sa.Enum(name="activitytype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="rsvpstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="communityrole").drop(op.get_bind(), checkfirst=True)
