"""
Community-scoped authorization.

Every community operation declares the capability it needs once, in
``OPERATION_CAPABILITIES``. Board actions accept admins and board members;
admin-only actions accept admins alone. The two checks are set membership,
not a rank comparison.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from app.core.exception import AuthorizationException
from app.models.community import MemberRole
from app.models.user import User


class Capability(str, enum.Enum):
    ADMIN_ONLY = "admin_only"
    BOARD_OR_ADMIN = "board_or_admin"
    ANY_MEMBER = "any_member"


BOARD_ROLES = frozenset({MemberRole.ADMIN, MemberRole.BOARD_MEMBER})

CAPABILITY_ROLES = {
    Capability.ADMIN_ONLY: frozenset({MemberRole.ADMIN}),
    Capability.BOARD_OR_ADMIN: BOARD_ROLES,
    Capability.ANY_MEMBER: frozenset(MemberRole),
}


class Operation(str, enum.Enum):
    """Community operations that are gated by role."""

    # Community administration
    COMMUNITY_VIEW = "community.view"
    COMMUNITY_UPDATE = "community.update"
    COMMUNITY_DELETE = "community.delete"
    INVITE_CODE_REGENERATE = "community.invite_code.regenerate"
    MEMBER_LIST_PENDING = "community.members.list_pending"
    MEMBER_ACCEPT = "community.members.accept"
    MEMBER_REJECT = "community.members.reject"
    MEMBER_CHANGE_ROLE = "community.members.change_role"
    MEMBER_REMOVE = "community.members.remove"

    # Potlucks
    POTLUCK_VIEW = "potluck.view"
    POTLUCK_CREATE = "potluck.create"
    POTLUCK_UPDATE = "potluck.update"
    POTLUCK_DELETE = "potluck.delete"
    SIGNUP_CREATE = "potluck.signup.create"

    # Suggestions
    SUGGESTION_VIEW = "suggestion.view"
    SUGGESTION_CREATE = "suggestion.create"
    SUGGESTION_SET_STATUS = "suggestion.status"
    SUGGESTION_UPVOTE = "suggestion.upvote"

    # Board questions
    QUESTION_VIEW = "question.view"
    QUESTION_CREATE = "question.create"
    QUESTION_RESPOND = "question.respond"
    QUESTION_SET_VISIBILITY = "question.visibility"

    # Calendar
    CALENDAR_VIEW = "calendar.view"
    CALENDAR_CREATE = "calendar.create"
    CALENDAR_UPDATE = "calendar.update"
    CALENDAR_DELETE = "calendar.delete"

    # Polls
    POLL_VIEW = "poll.view"
    POLL_CREATE = "poll.create"
    POLL_UPDATE = "poll.update"
    POLL_DELETE = "poll.delete"
    POLL_VOTE = "poll.vote"


OPERATION_CAPABILITIES = {
    Operation.COMMUNITY_VIEW: Capability.ANY_MEMBER,
    Operation.COMMUNITY_UPDATE: Capability.ADMIN_ONLY,
    Operation.COMMUNITY_DELETE: Capability.ADMIN_ONLY,
    Operation.INVITE_CODE_REGENERATE: Capability.ADMIN_ONLY,
    Operation.MEMBER_LIST_PENDING: Capability.ADMIN_ONLY,
    Operation.MEMBER_ACCEPT: Capability.ADMIN_ONLY,
    Operation.MEMBER_REJECT: Capability.ADMIN_ONLY,
    Operation.MEMBER_CHANGE_ROLE: Capability.ADMIN_ONLY,
    Operation.MEMBER_REMOVE: Capability.ADMIN_ONLY,

    Operation.POTLUCK_VIEW: Capability.ANY_MEMBER,
    Operation.POTLUCK_CREATE: Capability.ADMIN_ONLY,
    Operation.POTLUCK_UPDATE: Capability.ADMIN_ONLY,
    Operation.POTLUCK_DELETE: Capability.ADMIN_ONLY,
    Operation.SIGNUP_CREATE: Capability.ANY_MEMBER,

    Operation.SUGGESTION_VIEW: Capability.ANY_MEMBER,
    Operation.SUGGESTION_CREATE: Capability.ANY_MEMBER,
    Operation.SUGGESTION_SET_STATUS: Capability.BOARD_OR_ADMIN,
    Operation.SUGGESTION_UPVOTE: Capability.ANY_MEMBER,

    Operation.QUESTION_VIEW: Capability.ANY_MEMBER,
    Operation.QUESTION_CREATE: Capability.ANY_MEMBER,
    Operation.QUESTION_RESPOND: Capability.BOARD_OR_ADMIN,
    Operation.QUESTION_SET_VISIBILITY: Capability.BOARD_OR_ADMIN,

    Operation.CALENDAR_VIEW: Capability.ANY_MEMBER,
    Operation.CALENDAR_CREATE: Capability.BOARD_OR_ADMIN,
    Operation.CALENDAR_UPDATE: Capability.BOARD_OR_ADMIN,
    Operation.CALENDAR_DELETE: Capability.BOARD_OR_ADMIN,

    Operation.POLL_VIEW: Capability.ANY_MEMBER,
    Operation.POLL_CREATE: Capability.BOARD_OR_ADMIN,
    Operation.POLL_UPDATE: Capability.BOARD_OR_ADMIN,
    Operation.POLL_DELETE: Capability.BOARD_OR_ADMIN,
    Operation.POLL_VOTE: Capability.ANY_MEMBER,
}

_DENIED_MESSAGES = {
    Capability.ADMIN_ONLY: "Admin access required",
    Capability.BOARD_OR_ADMIN: "Board member access required",
    Capability.ANY_MEMBER: "You are not a member of this community",
}


@dataclass(frozen=True)
class AuthorizationContext:
    """Caller identity and accepted role within one community."""

    user: User
    community_id: int
    role: MemberRole

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_board(self) -> bool:
        return self.role in BOARD_ROLES

    def has(self, capability: Capability) -> bool:
        return self.role in CAPABILITY_ROLES[capability]

    def owns(self, owner_id: Optional[int]) -> bool:
        return owner_id is not None and owner_id == self.user.id


def require_member(user: User, community_id: int, role: Optional[MemberRole]) -> AuthorizationContext:
    """Build the context for an accepted member; pending or absent callers are refused."""
    if role is None:
        raise AuthorizationException(message=_DENIED_MESSAGES[Capability.ANY_MEMBER])
    return AuthorizationContext(user=user, community_id=community_id, role=role)


def require_capability(ctx: AuthorizationContext, capability: Capability) -> None:
    if not ctx.has(capability):
        raise AuthorizationException(message=_DENIED_MESSAGES[capability])


def authorize(ctx: AuthorizationContext, operation: Operation) -> None:
    """Check the caller against the capability declared for ``operation``."""
    require_capability(ctx, OPERATION_CAPABILITIES[operation])


def require_owner_or(
    ctx: AuthorizationContext,
    owner_id: Optional[int],
    capability: Capability,
    message: str,
) -> None:
    """Allow the owner of an entity, or any caller holding ``capability``."""
    if ctx.owns(owner_id) or ctx.has(capability):
        return
    raise AuthorizationException(message=message)
