"""Community lifecycle: creation, membership, deactivation and soft deletion.

Deactivation and deletion cascade to the community's events without removing
any rows. Reactivation does not cascade: events stay inactive
until an admin reactivates them one by one.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.errors import InvalidState, NotFound, ValidationFailed, WriteConflict
from app.models.activity import ActivityType
from app.models.community import Community, CommunityMember, CommunityRole, MANAGER_ROLES
from app.models.event import Event
from app.models.user import User
from app.services import activity_service
from app.services.permissions import get_membership, require_role
from app.services.text_utils import dedupe_tags, generate_slug, slug_problem

logger = logging.getLogger(__name__)

# Leaves room for a "-N" suffix within the 100-char slug column.
SLUG_BASE_MAX_LENGTH = 90


def get_community(db: Session, community_id: str, include_deleted: bool = False) -> Community:
    query = db.query(Community).filter(Community.community_id == community_id)
    if not include_deleted:
        query = query.filter(Community.deleted_at.is_(None))
    community = query.first()
    if not community:
        raise NotFound("Community")
    return community


def _unique_slug(db: Session, wanted: Optional[str], name: str) -> str:
    if wanted:
        problem = slug_problem(wanted)
        if problem:
            raise ValidationFailed(problem, field="slug")
        if db.query(Community).filter(Community.slug == wanted).first():
            raise WriteConflict("Slug is already taken")
        return wanted

    base = generate_slug(name)[:SLUG_BASE_MAX_LENGTH].strip("-")
    if slug_problem(base):
        base = f"community-{base}".strip("-")
    if slug_problem(base):
        base = "community"
    slug, n = base, 2
    while db.query(Community).filter(Community.slug == slug).first():
        slug = f"{base}-{n}"
        n += 1
    return slug


def create_community(
    db: Session,
    name: str,
    created_by: str,
    description: Optional[str] = None,
    tags: Optional[list[str]] = None,
    slug: Optional[str] = None,
) -> Community:
    """Create a community; the creator is added as its admin."""
    creator = db.query(User).filter(User.user_id == created_by).first()
    if not creator:
        raise NotFound("Creator user")

    community = Community(
        name=name,
        slug=_unique_slug(db, slug, name),
        description=description,
        tags=dedupe_tags(tags or [], settings.MAX_TAG_LENGTH),
        created_by=created_by,
    )
    db.add(community)
    db.flush()

    db.add(CommunityMember(
        community_id=community.community_id,
        user_id=created_by,
        role=CommunityRole.admin,
    ))
    db.commit()
    db.refresh(community)
    logger.info("Created community '%s' (%s) by user %s", community.name, community.community_id, created_by)
    return community


def add_member(
    db: Session,
    community_id: str,
    user_id: str,
    actor_user_id: str,
    role: CommunityRole = CommunityRole.member,
) -> CommunityMember:
    """Add a member.

    A user may join by themselves as a plain member. Adding someone else needs
    an admin/co-admin; granting admin or co-admin needs an admin.
    """
    community = get_community(db, community_id)
    if not community.is_active:
        raise InvalidState("Community is deactivated and not accepting members")

    if not db.query(User).filter(User.user_id == user_id).first():
        raise NotFound("User")

    if role in MANAGER_ROLES:
        require_role(db, community_id, actor_user_id, roles={CommunityRole.admin})
    elif actor_user_id != user_id:
        require_role(db, community_id, actor_user_id)

    if get_membership(db, community_id, user_id):
        raise WriteConflict("User is already a member of this community")

    member = CommunityMember(community_id=community_id, user_id=user_id, role=role)
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info("Added user %s to community %s as %s", user_id, community_id, role.value)

    activity_service.record_activity(
        db, community_id, actor_user_id, ActivityType.member_joined,
        subject_id=user_id, payload={"role": role.value},
    )
    return member


def remove_member(db: Session, community_id: str, user_id: str, actor_user_id: str) -> None:
    """Leave (self) or remove someone else (admin/co-admin)."""
    member = get_membership(db, community_id, user_id)
    if not member:
        raise NotFound("Membership")

    if actor_user_id != user_id:
        require_role(db, community_id, actor_user_id)

    if member.role == CommunityRole.admin:
        admins = (
            db.query(CommunityMember)
            .filter(CommunityMember.community_id == community_id, CommunityMember.role == CommunityRole.admin)
            .count()
        )
        if admins <= 1:
            raise InvalidState("A community must keep at least one admin")

    db.delete(member)
    db.commit()
    logger.info("Removed user %s from community %s (by %s)", user_id, community_id, actor_user_id)


def deactivate_community(db: Session, community_id: str, actor_user_id: str) -> Community:
    """Flip the community and all its events to inactive."""
    community = get_community(db, community_id)
    require_role(db, community_id, actor_user_id)
    if not community.is_active:
        raise InvalidState("Community is already deactivated")

    now = datetime.now(timezone.utc)
    community.is_active = False
    community.deactivated_at = now
    community.deactivated_by = actor_user_id

    cascaded = (
        db.query(Event)
        .filter(Event.community_id == community_id, Event.is_active.is_(True))
        .update({Event.is_active: False}, synchronize_session=False)
    )
    db.commit()
    db.refresh(community)
    logger.info("Deactivated community %s (%d events cascaded)", community_id, cascaded)

    activity_service.record_activity(
        db, community_id, actor_user_id, ActivityType.community_deactivated,
        payload={"events_deactivated": cascaded},
    )
    return community


def reactivate_community(db: Session, community_id: str, actor_user_id: str) -> Community:
    """Reactivate the community only; its events keep their current flag."""
    community = get_community(db, community_id)
    require_role(db, community_id, actor_user_id)
    if community.is_active:
        raise InvalidState("Community is already active")

    community.is_active = True
    community.deactivated_at = None
    community.deactivated_by = None
    db.commit()
    db.refresh(community)
    logger.info("Reactivated community %s", community_id)

    activity_service.record_activity(db, community_id, actor_user_id, ActivityType.community_reactivated)
    return community


def soft_delete_community(db: Session, community_id: str, actor_user_id: str) -> Community:
    """Mark the community and every one of its events deleted at the same instant."""
    community = get_community(db, community_id, include_deleted=True)
    require_role(db, community_id, actor_user_id)
    if community.deleted_at is not None:
        raise InvalidState("Community is already deleted")

    now = datetime.now(timezone.utc)
    community.deleted_at = now
    community.deleted_by = actor_user_id
    community.is_active = False

    cascaded = (
        db.query(Event)
        .filter(Event.community_id == community_id, Event.deleted_at.is_(None))
        .update({Event.deleted_at: now, Event.is_active: False}, synchronize_session=False)
    )
    db.commit()
    db.refresh(community)
    logger.info("Soft-deleted community %s (%d events cascaded)", community_id, cascaded)

    activity_service.record_activity(
        db, community_id, actor_user_id, ActivityType.community_deleted,
        payload={"events_deleted": cascaded},
    )
    return community


def list_communities(db: Session, include_inactive: bool = False) -> list[Community]:
    query = db.query(Community).filter(Community.deleted_at.is_(None))
    if not include_inactive:
        query = query.filter(Community.is_active.is_(True))
    return query.order_by(Community.name).all()
