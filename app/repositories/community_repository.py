from sqlalchemy.orm import Session
from sqlalchemy import select, and_, func
from typing import List, Optional
from app.config import settings
from app.models.community import Community, CommunityMember, MemberRole, MembershipStatus
from app.models.user import User
from app.repositories.repository import BaseRepository
import secrets


class CommunityRepository(BaseRepository[Community]):
    """Repository for communities and their membership rows."""

    def __init__(self, db: Session):
        super().__init__(Community, db)

    def get_by_invite_code(self, code: str) -> Optional[Community]:
        """Find community by invite code; the comparison ignores case."""
        return (
            self.db.query(Community)
            .filter(Community.invite_code == code.strip().upper())
            .first()
        )

    def get_user_communities(self, user_id: int) -> List[tuple]:
        """
        Get the communities a user is an accepted member of.

        Returns:
            List of (Community, MemberRole) tuples, newest membership first
        """
        stmt = (
            select(Community, CommunityMember.role)
            .join(CommunityMember, CommunityMember.community_id == Community.id)
            .where(
                and_(
                    CommunityMember.user_id == user_id,
                    CommunityMember.status == MembershipStatus.ACCEPTED,
                )
            )
            .order_by(CommunityMember.joined_at.desc(), Community.id.desc())
        )
        return [(row[0], row[1]) for row in self.db.execute(stmt).all()]

    def get_membership(self, community_id: int, user_id: int) -> Optional[CommunityMember]:
        """Get the membership row for (user, community) in any status."""
        return self.db.get(CommunityMember, (user_id, community_id))

    def get_member_role(self, community_id: int, user_id: int) -> Optional[MemberRole]:
        """Role of an accepted member, or None. Pending rows count as non-members."""
        stmt = select(CommunityMember.role).where(
            and_(
                CommunityMember.community_id == community_id,
                CommunityMember.user_id == user_id,
                CommunityMember.status == MembershipStatus.ACCEPTED,
            )
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_member(
        self,
        community_id: int,
        user_id: int,
        role: MemberRole = MemberRole.RESIDENT,
        status: MembershipStatus = MembershipStatus.PENDING,
    ) -> CommunityMember:
        """Insert a membership row."""
        member = CommunityMember(
            community_id=community_id, user_id=user_id, role=role, status=status
        )
        self.db.add(member)
        self._persist()
        self.db.refresh(member)
        return member

    def set_member_status(self, member: CommunityMember, status: MembershipStatus) -> CommunityMember:
        member.status = status
        self._persist()
        self.db.refresh(member)
        return member

    def set_member_role(self, member: CommunityMember, role: MemberRole) -> CommunityMember:
        member.role = role
        self._persist()
        self.db.refresh(member)
        return member

    def remove_member(self, community_id: int, user_id: int) -> bool:
        """
        Delete a membership row.

        Returns:
            True if removed, False if there was no row
        """
        member = self.get_membership(community_id, user_id)
        if not member:
            return False

        community = member.community
        if community is not None and member in community.members:
            community.members.remove(member)
        self.db.delete(member)
        self._persist()
        return True

    def get_members(self, community_id: int) -> List[CommunityMember]:
        """Accepted members ordered by join time."""
        stmt = (
            select(CommunityMember)
            .join(User, User.id == CommunityMember.user_id)
            .where(
                and_(
                    CommunityMember.community_id == community_id,
                    CommunityMember.status == MembershipStatus.ACCEPTED,
                )
            )
            .order_by(CommunityMember.joined_at, User.name)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_pending_members(self, community_id: int) -> List[CommunityMember]:
        """Join requests waiting for an admin, oldest first."""
        stmt = (
            select(CommunityMember)
            .where(
                and_(
                    CommunityMember.community_id == community_id,
                    CommunityMember.status == MembershipStatus.PENDING,
                )
            )
            .order_by(CommunityMember.joined_at, CommunityMember.user_id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_admin_count(self, community_id: int) -> int:
        """Number of accepted admins in a community."""
        stmt = select(func.count()).select_from(CommunityMember).where(
            and_(
                CommunityMember.community_id == community_id,
                CommunityMember.role == MemberRole.ADMIN,
                CommunityMember.status == MembershipStatus.ACCEPTED,
            )
        )
        return self.db.execute(stmt).scalar_one()

    def generate_invite_code(self) -> str:
        """
        Generate a unique invite code.

        Returns:
            Upper-case hex code, INVITE_CODE_BYTES * 2 characters long
        """
        while True:
            code = secrets.token_hex(settings.INVITE_CODE_BYTES).upper()

            if not self.get_by_invite_code(code):
                return code

    def regenerate_invite_code(self, community: Community) -> str:
        """
        Replace the invite code of a community. The old code stops working at once.

        Returns:
            The new invite code
        """
        community.invite_code = self.generate_invite_code()
        self._persist()
        self.db.refresh(community)
        return community.invite_code
