"""Membership / role checks: the authorization boundary for community-owned data."""
import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.errors import AuthorizationDenied
from app.models.community import CommunityMember, CommunityRole, MANAGER_ROLES

logger = logging.getLogger(__name__)


def get_membership(db: Session, community_id: str, user_id: str) -> Optional[CommunityMember]:
    return (
        db.query(CommunityMember)
        .filter(CommunityMember.community_id == community_id, CommunityMember.user_id == user_id)
        .first()
    )


def require_member(db: Session, community_id: str, user_id: str) -> CommunityMember:
    membership = get_membership(db, community_id, user_id)
    if membership is None:
        logger.warning("User %s is not a member of community %s", user_id, community_id)
        raise AuthorizationDenied("You must be a member of this community")
    return membership


def require_role(
    db: Session,
    community_id: str,
    user_id: str,
    roles: Iterable[CommunityRole] = MANAGER_ROLES,
) -> CommunityMember:
    """Membership whose role is in ``roles``; AuthorizationDenied otherwise."""
    membership = get_membership(db, community_id, user_id)
    allowed = set(roles)
    if membership is None or membership.role not in allowed:
        logger.warning(
            "User %s lacks role %s in community %s",
            user_id, sorted(r.value for r in allowed), community_id,
        )
        raise AuthorizationDenied("Only community admins may perform this action")
    return membership


def is_manager(membership: Optional[CommunityMember]) -> bool:
    return membership is not None and membership.role in MANAGER_ROLES
