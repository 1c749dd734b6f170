from fastapi import Depends, Path
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .database import get_db
from .utils.security import decode_access_token
from app.core.permissions import AuthorizationContext
from app.models.user import User
from app.services.community_service import CommunityService
from .config import settings
from .core.exception import AuthenticationException

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/swagger-login")


async def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get current authenticated user.
    Raises CustomException instead of HTTPException for consistent error handling.

    Refresh tokens are refused; only access tokens identify a caller.

    Example:
        @router.get("/protected")
        async def protected_route(current_user: User = Depends(get_current_user)):
            return {"user_id": current_user.id}
    """
    payload = decode_access_token(token)
    if payload is None or payload.get("type") == "refresh":
        raise AuthenticationException("Could not validate credentials")

    user_id_str: str | None = payload.get("sub")
    if user_id_str is None:
        raise AuthenticationException("Could not validate credentials")

    try:
        user_id = int(user_id_str)
    except (ValueError, TypeError):
        raise AuthenticationException("Invalid token format")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise AuthenticationException("User not found")

    if not user.is_active:
        raise AuthenticationException("Account is deactivated")

    return user


async def get_community_context(
    community_id: int = Path(..., description="Community ID"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AuthorizationContext:
    """
    Dependency resolving the caller's role in the community named by the route.

    Unknown community gives 404, pending or absent membership gives 403.
    """
    return CommunityService(db).get_context(current_user, community_id)

