from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...schemas.user import UserUpdate, UserResponse, PasswordChange, MessageResponse
from ...schemas.result import Result
from ...services.userService import UserService
from ...dependencies import get_current_user
from app.models.user import User

router = APIRouter()


@router.get("/profile", response_model=Result[UserResponse])
async def get_profile(current_user: User = Depends(get_current_user)):
    """Get current user's profile."""
    return Result.successful(data=current_user)


@router.put("/profile", response_model=Result[UserResponse])
async def update_profile(
    user_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update name, email and phone. The email must not be used by another account."""
    user_service = UserService(db)
    updated_user = user_service.update_user(current_user.id, user_data)
    return Result.successful(data=updated_user)


@router.put("/profile/password", response_model=Result[MessageResponse])
async def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change the password after confirming the current one."""
    user_service = UserService(db)
    user_service.change_password(
        current_user.id, password_data.current_password, password_data.new_password
    )
    return Result.successful(data={"message": "Password updated successfully"})
