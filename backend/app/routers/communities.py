"""Community API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.community import ActivityOut, CommunityCreate, CommunityOut, MemberAdd, MemberOut
from app.services import activity_service, community_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=CommunityOut, status_code=status.HTTP_201_CREATED)
def create_community(payload: CommunityCreate, db: Session = Depends(get_db)):
    """Create a new community. Creator is automatically added as admin."""
    return community_service.create_community(
        db=db,
        name=payload.name,
        created_by=payload.created_by,
        description=payload.description,
        tags=payload.tags,
        slug=payload.slug,
    )


@router.get("/", response_model=list[CommunityOut])
def list_communities(include_inactive: bool = Query(False), db: Session = Depends(get_db)):
    """List communities; deactivated ones only on request, deleted ones never."""
    return community_service.list_communities(db, include_inactive=include_inactive)


@router.get("/{community_id}", response_model=CommunityOut)
def get_community(community_id: str, db: Session = Depends(get_db)):
    """Fetch a single community by ID with members."""
    return community_service.get_community(db, community_id)


@router.post("/{community_id}/members", response_model=MemberOut, status_code=status.HTTP_201_CREATED)
def add_member(
    community_id: str,
    payload: MemberAdd,
    actor_user_id: Optional[str] = Query(None, description="Defaults to the joining user (self-join)"),
    db: Session = Depends(get_db),
):
    """Join a community, or add someone else to it (admins/co-admins)."""
    return community_service.add_member(
        db=db,
        community_id=community_id,
        user_id=payload.user_id,
        actor_user_id=actor_user_id or payload.user_id,
        role=payload.role,
    )


@router.delete("/{community_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    community_id: str,
    user_id: str,
    actor_user_id: Optional[str] = Query(None, description="Defaults to the leaving user"),
    db: Session = Depends(get_db),
):
    """Leave a community, or remove a member (admins/co-admins)."""
    community_service.remove_member(db, community_id, user_id, actor_user_id or user_id)


@router.post("/{community_id}/deactivate", response_model=CommunityOut)
def deactivate_community(
    community_id: str,
    actor_user_id: str = Query(..., description="ID of the admin performing the action"),
    db: Session = Depends(get_db),
):
    """Deactivate a community; all of its events become inactive."""
    return community_service.deactivate_community(db, community_id, actor_user_id)


@router.post("/{community_id}/reactivate", response_model=CommunityOut)
def reactivate_community(
    community_id: str,
    actor_user_id: str = Query(..., description="ID of the admin performing the action"),
    db: Session = Depends(get_db),
):
    """Reactivate a community. Its events stay as they are."""
    return community_service.reactivate_community(db, community_id, actor_user_id)


@router.delete("/{community_id}", response_model=CommunityOut)
def delete_community(
    community_id: str,
    actor_user_id: str = Query(..., description="ID of the admin performing the action"),
    db: Session = Depends(get_db),
):
    """Soft-delete a community together with all of its events."""
    return community_service.soft_delete_community(db, community_id, actor_user_id)


@router.get("/{community_id}/activity", response_model=list[ActivityOut])
def list_activity(
    community_id: str,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Most recent activity in a community, newest first."""
    community_service.get_community(db, community_id)
    return activity_service.list_activity(db, community_id, limit=limit)
