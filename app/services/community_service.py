import logging
from sqlalchemy.orm import Session
from typing import List, Optional
from app.core.exception import (
    ResourceNotFoundException,
    AlreadyMemberException,
    AlreadyRequestedException,
    AlreadyAcceptedException,
    SelfDemotionException,
    LastAdminDemotionException,
    SelfRemovalException,
    SoleAdminException,
    NotMemberException,
)
from app.core.permissions import AuthorizationContext, Operation, authorize, require_member
from app.database import transaction
from app.models.community import Community, CommunityMember, MemberRole, MembershipStatus
from app.models.user import User
from app.repositories.community_repository import CommunityRepository
from app.schemas.community import CommunityCreate, CommunityUpdate

logger = logging.getLogger(__name__)


def member_to_dict(member: CommunityMember) -> dict:
    """Flatten a membership row and its user for CommunityMemberResponse."""
    return {
        "user_id": member.user_id,
        "name": member.user.name,
        "email": member.user.email,
        "phone": member.user.phone,
        "avatar_url": member.user.avatar_url,
        "role": member.role,
        "status": member.status,
        "joined_at": member.joined_at,
    }


class CommunityService:
    """Community lifecycle and the membership state machine."""

    def __init__(self, db: Session):
        self.db = db
        self.community_repo = CommunityRepository(db)

    def _get_community(self, community_id: int) -> Community:
        community = self.community_repo.get(community_id)
        if not community:
            raise ResourceNotFoundException("Community", community_id)
        return community

    def _lock_community(self, community_id: int) -> Community:
        community = self.community_repo.get_for_update(community_id)
        if not community:
            raise ResourceNotFoundException("Community", community_id)
        return community

    # Authorization

    def role_of(self, user_id: int, community_id: int) -> Optional[MemberRole]:
        """Role of the user in the community, or None unless the membership is accepted."""
        return self.community_repo.get_member_role(community_id, user_id)

    def get_context(self, user: User, community_id: int) -> AuthorizationContext:
        """
        Resolve the caller's authorization context for a community.

        Raises:
            ResourceNotFoundException: If the community does not exist
            AuthorizationException: If the caller is not an accepted member
        """
        self._get_community(community_id)
        return require_member(user, community_id, self.role_of(user.id, community_id))

    # Community lifecycle

    def create_community(self, user: User, data: CommunityCreate) -> Community:
        """
        Create a community with the creator as its first accepted admin.

        Args:
            user: Creating user
            data: Community creation data

        Returns:
            Created community
        """
        with transaction(self.db):
            community = Community(
                name=data.name,
                description=data.description,
                address=data.address,
                invite_code=self.community_repo.generate_invite_code(),
                created_by_id=user.id,
            )
            community = self.community_repo.create(community)
            self.community_repo.add_member(
                community.id, user.id, role=MemberRole.ADMIN, status=MembershipStatus.ACCEPTED
            )

        logger.info("User %s created community %s", user.id, community.id)
        return community

    def list_my_communities(self, user_id: int) -> List[dict]:
        """Accepted communities of the user, each with the user's role."""
        communities = []
        for community, role in self.community_repo.get_user_communities(user_id):
            communities.append(
                {
                    "id": community.id,
                    "uuid": community.uuid,
                    "name": community.name,
                    "description": community.description,
                    "address": community.address,
                    "invite_code": community.invite_code,
                    "created_by_id": community.created_by_id,
                    "created_at": community.created_at,
                    "updated_at": community.updated_at,
                    "role": role,
                }
            )
        return communities

    def get_community(self, ctx: AuthorizationContext) -> dict:
        """Community details with its accepted members."""
        authorize(ctx, Operation.COMMUNITY_VIEW)
        community = self._get_community(ctx.community_id)
        members = self.community_repo.get_members(community.id)
        return {
            "community": community,
            "role": ctx.role,
            "member_count": len(members),
            "members": [member_to_dict(member) for member in members],
        }

    def update_community(self, ctx: AuthorizationContext, data: CommunityUpdate) -> Community:
        """Update name, description and address (admin only)."""
        authorize(ctx, Operation.COMMUNITY_UPDATE)
        self._get_community(ctx.community_id)

        updated = self.community_repo.update(ctx.community_id, data.model_dump())
        if not updated:
            raise ResourceNotFoundException("Community", ctx.community_id)
        return updated

    def delete_community(self, ctx: AuthorizationContext) -> bool:
        """
        Delete a community (admin only).

        Memberships and every community-scoped entity go with it.
        """
        authorize(ctx, Operation.COMMUNITY_DELETE)
        self._get_community(ctx.community_id)

        deleted = self.community_repo.delete(ctx.community_id)
        logger.info("User %s deleted community %s", ctx.user_id, ctx.community_id)
        return deleted

    def regenerate_invite_code(self, ctx: AuthorizationContext) -> str:
        """Replace the invite code; the old one is invalid immediately (admin only)."""
        authorize(ctx, Operation.INVITE_CODE_REGENERATE)
        community = self._get_community(ctx.community_id)

        new_code = self.community_repo.regenerate_invite_code(community)
        logger.info("Invite code of community %s rotated by user %s", community.id, ctx.user_id)
        return new_code

    # Membership state machine

    def join_by_invite_code(self, user: User, invite_code: str) -> dict:
        """
        Request to join a community using its invite code.

        Raises:
            ResourceNotFoundException: If no community has this code
            AlreadyMemberException: If the user is already accepted
            AlreadyRequestedException: If a request is already pending
        """
        community = self.community_repo.get_by_invite_code(invite_code)
        if not community:
            raise ResourceNotFoundException("Community with invite code", invite_code)

        existing = self.community_repo.get_membership(community.id, user.id)
        if existing:
            if existing.is_accepted:
                raise AlreadyMemberException()
            raise AlreadyRequestedException()

        member = self.community_repo.add_member(
            community.id, user.id, role=MemberRole.RESIDENT, status=MembershipStatus.PENDING
        )

        logger.info("User %s requested to join community %s", user.id, community.id)
        return {
            "message": "Request sent! The community admin will review your request.",
            "community_name": community.name,
            "status": member.status,
        }

    def list_pending_members(self, ctx: AuthorizationContext) -> List[dict]:
        """Join requests awaiting a decision (admin only)."""
        authorize(ctx, Operation.MEMBER_LIST_PENDING)
        return [member_to_dict(m) for m in self.community_repo.get_pending_members(ctx.community_id)]

    def accept_member(self, ctx: AuthorizationContext, user_id: int) -> dict:
        """
        Accept a pending join request (admin only).

        Raises:
            ResourceNotFoundException: If there is no request from this user
            AlreadyAcceptedException: If the user is already a member
        """
        authorize(ctx, Operation.MEMBER_ACCEPT)

        with transaction(self.db):
            self._lock_community(ctx.community_id)
            member = self.community_repo.get_membership(ctx.community_id, user_id)
            if not member:
                raise ResourceNotFoundException("Member request", user_id)
            if member.is_accepted:
                raise AlreadyAcceptedException()

            member = self.community_repo.set_member_status(member, MembershipStatus.ACCEPTED)

        logger.info("User %s accepted into community %s", user_id, ctx.community_id)
        return member_to_dict(member)

    def reject_member(self, ctx: AuthorizationContext, user_id: int) -> None:
        """
        Reject a pending join request by deleting it (admin only).

        Raises:
            ResourceNotFoundException: If there is no pending request from this user
        """
        authorize(ctx, Operation.MEMBER_REJECT)

        with transaction(self.db):
            member = self.community_repo.get_membership(ctx.community_id, user_id)
            if not member or member.is_accepted:
                raise ResourceNotFoundException("Member request", user_id)
            self.community_repo.remove_member(ctx.community_id, user_id)

        logger.info("Join request of user %s to community %s rejected", user_id, ctx.community_id)

    def change_role(self, ctx: AuthorizationContext, user_id: int, role: MemberRole) -> dict:
        """
        Change the role of an accepted member (admin only).

        Raises:
            SelfDemotionException: If an admin tries to demote themselves
            ResourceNotFoundException: If the user is not an accepted member
            LastAdminDemotionException: If the change would leave no admin
        """
        authorize(ctx, Operation.MEMBER_CHANGE_ROLE)

        if user_id == ctx.user_id and role != MemberRole.ADMIN:
            raise SelfDemotionException()

        with transaction(self.db):
            self._lock_community(ctx.community_id)
            member = self.community_repo.get_membership(ctx.community_id, user_id)
            if not member or not member.is_accepted:
                raise ResourceNotFoundException("Member", user_id)

            if (
                member.role == MemberRole.ADMIN
                and role != MemberRole.ADMIN
                and self.community_repo.get_admin_count(ctx.community_id) <= 1
            ):
                raise LastAdminDemotionException()

            previous = member.role
            member = self.community_repo.set_member_role(member, role)

        logger.info(
            "Role of user %s in community %s changed from %s to %s by user %s",
            user_id, ctx.community_id, previous.value, role.value, ctx.user_id,
        )
        return member_to_dict(member)

    def remove_member(self, ctx: AuthorizationContext, user_id: int) -> None:
        """
        Remove a member or pending request (admin only). Admins leave instead.

        Raises:
            SelfRemovalException: If the admin targets themselves
            ResourceNotFoundException: If the user has no membership row
        """
        authorize(ctx, Operation.MEMBER_REMOVE)

        if user_id == ctx.user_id:
            raise SelfRemovalException()

        with transaction(self.db):
            self._lock_community(ctx.community_id)
            if not self.community_repo.remove_member(ctx.community_id, user_id):
                raise ResourceNotFoundException("Member", user_id)

        logger.info("User %s removed from community %s by user %s", user_id, ctx.community_id, ctx.user_id)

    def leave(self, user: User, community_id: int) -> None:
        """
        Leave a community. The last accepted admin cannot leave.

        Raises:
            ResourceNotFoundException: If the community does not exist
            NotMemberException: If the user is not an accepted member
            SoleAdminException: If the user is the only admin
        """
        with transaction(self.db):
            self._lock_community(community_id)
            member = self.community_repo.get_membership(community_id, user.id)
            if not member or not member.is_accepted:
                raise NotMemberException()

            if (
                member.role == MemberRole.ADMIN
                and self.community_repo.get_admin_count(community_id) <= 1
            ):
                raise SoleAdminException()

            self.community_repo.remove_member(community_id, user.id)

        logger.info("User %s left community %s", user.id, community_id)
