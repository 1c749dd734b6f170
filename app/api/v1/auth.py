from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ...core.clock import Clock, get_clock
from ...database import get_db
from ...schemas.user import (
    UserCreate,
    UserProfileResponse,
    Token,
    AuthResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse,
)
from ...schemas.result import Result
from ...services.authService import AuthService
from ...services.userService import UserService
from ...services.email_service import EmailService
from ...dependencies import get_current_user
from app.models.user import User

router = APIRouter()

FORGOT_PASSWORD_MESSAGE = "If an account exists with that email, a reset link has been sent."


@router.post(
    "/register",
    response_model=Result[AuthResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Register a new user.

    - **email**: Valid email address (unique, case-insensitive)
    - **password**: At least 8 chars with upper-case, lower-case and a digit
    - **name**: Display name

    Returns:
        Result[AuthResponse]: The created user with access and refresh tokens
    """
    auth_service = AuthService(db)
    user, token = auth_service.register(user_data)
    return Result.successful(data=AuthResponse(**token.model_dump(), user=user))


@router.post("/swagger-login", response_model=Token)
async def swagger_login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    service = AuthService(db)
    token = service.login(form_data.username, form_data.password)
    return Token(
        access_token=token.access_token,
        token_type=token.token_type
    )


@router.post("/login", response_model=Result[Token])
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)
):
    """
    Login with email (sent as the OAuth2 ``username`` field) and password.

    Returns:
        Result[Token]: Success result with access and refresh tokens
    """
    auth_service = AuthService(db)
    token = auth_service.login(form_data.username, form_data.password)
    return Result.successful(data=token)


@router.get("/me", response_model=Result[UserProfileResponse])
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get current authenticated user's profile with the communities they belong to.
    """
    communities = UserService(db).get_communities(current_user.id)
    profile = UserProfileResponse.model_validate(current_user).model_copy(
        update={"communities": communities}
    )
    return Result.successful(data=profile)


@router.post("/refresh", response_model=Result[Token])
async def refresh_token(refresh_token: str, db: Session = Depends(get_db)):
    """
    Refresh access token using refresh token.

    Returns:
        Result[Token]: Success result with new access token
    """
    auth_service = AuthService(db)
    new_token = auth_service.refresh_access_token(refresh_token)
    return Result.successful(data=new_token)


@router.post("/logout", response_model=Result[MessageResponse])
async def logout(current_user: User = Depends(get_current_user)):
    """
    Logout user.

    Tokens are stateless; the client discards them.
    """
    return Result.successful(data={"message": "Successfully logged out"})


@router.post("/forgot-password", response_model=Result[MessageResponse])
async def forgot_password(
    request: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """
    Start a password reset.

    Always answers with the same message so callers cannot discover which accounts exist.
    The reset link is mailed in the background.
    """
    issued = UserService(db, clock).create_reset_token(request.email)
    if issued:
        user, token = issued
        background_tasks.add_task(EmailService().send_password_reset, user.email, user.name, token)
    return Result.successful(data={"message": FORGOT_PASSWORD_MESSAGE})


@router.post("/reset-password", response_model=Result[MessageResponse])
async def reset_password(
    request: ResetPasswordRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Set a new password using the token from the reset e-mail."""
    UserService(db, clock).reset_password(request.token, request.new_password)
    return Result.successful(data={"message": "Password has been reset. You can now log in."})
