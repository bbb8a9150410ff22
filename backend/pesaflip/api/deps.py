"""FastAPI dependencies: DB session and current user from JWT.

Supports JWT from:
1. Authorization header (for API clients)
2. httpOnly ``token`` cookie (for the web dashboard)
"""
from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from pesaflip.core.audit import AuditLog
from pesaflip.core.config import settings
from pesaflip.core.exceptions import BusinessError
from pesaflip.core.security import decode_access_token
from pesaflip.db.session import SessionLocal
from pesaflip.models.user import User

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Extract user ID from JWT token.
    Header takes precedence over cookie.
    """
    token = None
    if credentials:
        token = credentials.credentials
    elif settings.AUTH_COOKIE_NAME in request.cookies:
        token = request.cookies[settings.AUTH_COOKIE_NAME]

    if not token:
        raise BusinessError.unauthorized("Authentication required")

    claims = decode_access_token(token)
    if not claims or not claims.get("sub"):
        raise BusinessError.unauthorized("Invalid or expired token")

    return str(claims["sub"])


def get_current_user(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> User:
    """Load current user from DB."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise BusinessError.unauthorized("User not found", reason=f"token for missing user {user_id}")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        AuditLog.log_access_denied("admin", "jobs", current_user.id, "role is not admin")
        raise BusinessError.forbidden("You do not have permission to access this resource")
    return current_user
