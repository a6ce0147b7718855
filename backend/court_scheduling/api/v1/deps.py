# court_scheduling/api/v1/deps.py

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from court_scheduling.db.database import get_db
from court_scheduling.db.models import User, UserRole
from court_scheduling.core.config import settings
from court_scheduling.utils.exceptions import ForbiddenError

security = HTTPBearer()

# ============================================================================
# JWT Dependency
# ============================================================================

def create_access_token(user_id, role: Optional[str] = None, expires_minutes: Optional[int] = None) -> str:
    """Issue an HS256 token the way the identity service does (sub + exp)."""
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": str(user_id), "exp": expire}
    if role:
        payload["role"] = role
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Validate JWT token and return current user.
    """
    token = credentials.credentials

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )

        # accept either "user_id" or the standard "sub"
        user_id = payload.get("user_id") or payload.get("sub")
        if user_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token"
            )
        user_uuid = uuid.UUID(str(user_id))

    except (jwt.PyJWTError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    user = db.query(User).filter(User.id == user_uuid).first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated"
        )

    return user


def require_role(*roles: UserRole) -> Callable[..., User]:
    """
    Dependency factory restricting an endpoint to the given roles.

    Usage:
        current_user: User = Depends(require_role(UserRole.court_scheduler))
    """
    allowed = frozenset(roles)

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise ForbiddenError("Access denied for your role")
        return current_user

    return _checker
