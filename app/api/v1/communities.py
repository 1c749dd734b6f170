from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.core.permissions import AuthorizationContext
from app.database import get_db
from app.dependencies import get_current_user, get_community_context
from app.models.user import User
from app.schemas.community import (
    CommunityCreate,
    CommunityUpdate,
    CommunityResponse,
    CommunityDetailResponse,
    MyCommunityResponse,
    CommunityJoinRequest,
    JoinRequestResponse,
    InviteCodeResponse,
    CommunityMemberResponse,
    RoleChangeRequest,
)
from app.schemas.result import Result
from app.schemas.user import MessageResponse
from app.services.community_service import CommunityService

router = APIRouter()


@router.post("", response_model=Result[CommunityResponse], status_code=status.HTTP_201_CREATED)
async def create_community(
    community_data: CommunityCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new community with current user as admin."""
    service = CommunityService(db)
    community = service.create_community(current_user, community_data)
    return Result.successful(data=community)


@router.get("", response_model=Result[List[MyCommunityResponse]])
async def get_my_communities(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all communities the current user is an accepted member of."""
    service = CommunityService(db)
    return Result.successful(data=service.list_my_communities(current_user.id))


@router.post("/join", response_model=Result[JoinRequestResponse])
async def join_community(
    join_data: CommunityJoinRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Request to join a community using an invite code. An admin must accept the request."""
    service = CommunityService(db)
    result = service.join_by_invite_code(current_user, join_data.invite_code)
    return Result.successful(data=result)


@router.get("/{community_id}", response_model=Result[CommunityDetailResponse])
async def get_community(
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Get community details with its members."""
    service = CommunityService(db)
    return Result.successful(data=service.get_community(ctx))


@router.put("/{community_id}", response_model=Result[CommunityResponse])
async def update_community(
    community_data: CommunityUpdate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Update community details (admin only)."""
    service = CommunityService(db)
    community = service.update_community(ctx, community_data)
    return Result.successful(data=community)


@router.delete("/{community_id}", response_model=Result[MessageResponse])
async def delete_community(
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Delete the community and everything in it (admin only)."""
    service = CommunityService(db)
    service.delete_community(ctx)
    return Result.successful(data={"message": "Community deleted"})


@router.post("/{community_id}/regenerate-code", response_model=Result[InviteCodeResponse])
async def regenerate_invite(
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Generate a new invite code; the old one stops working (admin only)."""
    service = CommunityService(db)
    new_code = service.regenerate_invite_code(ctx)
    return Result.successful(data={"invite_code": new_code})


@router.get("/{community_id}/members/pending", response_model=Result[List[CommunityMemberResponse]])
async def get_pending_members(
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """List join requests waiting for approval (admin only)."""
    service = CommunityService(db)
    return Result.successful(data=service.list_pending_members(ctx))


@router.post("/{community_id}/members/{user_id}/accept", response_model=Result[CommunityMemberResponse])
async def accept_member(
    user_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Accept a pending join request (admin only)."""
    service = CommunityService(db)
    return Result.successful(data=service.accept_member(ctx, user_id))


@router.post("/{community_id}/members/{user_id}/reject", response_model=Result[MessageResponse])
async def reject_member(
    user_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Reject a pending join request (admin only)."""
    service = CommunityService(db)
    service.reject_member(ctx, user_id)
    return Result.successful(data={"message": "Member request rejected"})


@router.put("/{community_id}/members/{user_id}/role", response_model=Result[CommunityMemberResponse])
async def change_member_role(
    user_id: int,
    role_data: RoleChangeRequest,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Change a member's role (admin only)."""
    service = CommunityService(db)
    return Result.successful(data=service.change_role(ctx, user_id, role_data.role))


@router.delete("/{community_id}/members/{user_id}", response_model=Result[MessageResponse])
async def remove_member(
    user_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Remove a member from the community (admin only)."""
    service = CommunityService(db)
    service.remove_member(ctx, user_id)
    return Result.successful(data={"message": "Member removed"})


@router.post("/{community_id}/leave", response_model=Result[MessageResponse])
async def leave_community(
    community_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Leave a community. The only admin must promote someone else first."""
    service = CommunityService(db)
    service.leave(current_user, community_id)
    return Result.successful(data={"message": "Left community"})
