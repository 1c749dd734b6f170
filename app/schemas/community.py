from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from app.models.community import MemberRole, MembershipStatus


class CommunityBase(BaseModel):
    """Base community schema with common fields."""
    name: str = Field(..., max_length=255, description="Community name")
    description: Optional[str] = Field(None, max_length=2000, description="Community description")
    address: Optional[str] = Field(None, max_length=500, description="Street address")

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Community name is required")
        return value


class CommunityCreate(CommunityBase):
    """Schema for creating a new community."""
    pass


class CommunityUpdate(CommunityBase):
    """Schema for updating community details. The name stays required."""
    pass


class CommunityJoinRequest(BaseModel):
    """Schema for requesting to join a community via invite code."""
    invite_code: str = Field(..., min_length=1, max_length=20, description="Community invite code")


class JoinRequestResponse(BaseModel):
    message: str
    community_name: str
    status: MembershipStatus


class InviteCodeResponse(BaseModel):
    """Schema for invite code response."""
    invite_code: str


class RoleChangeRequest(BaseModel):
    role: MemberRole


class CommunityMemberResponse(BaseModel):
    """Schema for community member information."""
    user_id: int
    name: str
    email: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    role: MemberRole
    status: MembershipStatus
    joined_at: datetime

    class Config:
        from_attributes = True


class CommunityResponse(CommunityBase):
    """Schema for community response."""
    id: int
    uuid: str
    invite_code: str
    created_by_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MyCommunityResponse(CommunityResponse):
    """A community in the caller's list, with the caller's role."""
    role: MemberRole


class CommunityDetailResponse(BaseModel):
    community: CommunityResponse
    role: MemberRole
    member_count: int
    members: List[CommunityMemberResponse]
