from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
import re


PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 8 characters and contain an uppercase letter, "
    "a lowercase letter and a number"
)


def check_password_policy(password: str) -> str:
    """Raise ValueError unless the password meets the strength policy."""
    if (
        len(password) < 8
        or not re.search(r"[A-Z]", password)
        or not re.search(r"[a-z]", password)
        or not re.search(r"\d", password)
    ):
        raise ValueError(PASSWORD_POLICY_MESSAGE)
    return password


class UserBase(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class UserCreate(UserBase):
    password: str = Field(..., max_length=100)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_policy(value)


class UserUpdate(UserBase):
    phone: Optional[str] = Field(None, max_length=50)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., max_length=100)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return check_password_policy(value)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., max_length=100)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return check_password_policy(value)


class UserResponse(BaseModel):
    id: int
    uuid: str
    email: str
    name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True  # Pydantic v2 (was orm_mode in v1)


class UserCommunity(BaseModel):
    """A community the user belongs to, with their role in it."""
    id: int
    name: str
    role: str


class UserProfileResponse(UserResponse):
    communities: List[UserCommunity] = []


class Token(BaseModel):
    access_token: str
    token_type: str
    refresh_token: Optional[str] = None  # Optional refresh token


class AuthResponse(Token):
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
