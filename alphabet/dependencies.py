from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from .database import get_session
from .errors import AuthenticationError, PermissionDeniedError
from .models.user import User
from .services.auth import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_session)
) -> User:
    """Resolve the bearer token to the account as currently stored."""
    if not credentials or not credentials.credentials:
        raise AuthenticationError("Access token required")

    user_id = decode_access_token(credentials.credentials)

    # Always re-fetch: point totals and deletions must be reflected immediately
    user = db.get(User, user_id)
    if not user:
        raise AuthenticationError("Invalid token")

    return user


async def require_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Require an admin user."""
    if not current_user.is_admin:
        raise PermissionDeniedError("Admin access required")
    return current_user
