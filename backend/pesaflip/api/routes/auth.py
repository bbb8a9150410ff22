"""Auth: register, login, logout and profile.

SECURITY FEATURES:
- Password hashing with bcrypt
- Password strength validation
- httpOnly, Secure (production), SameSite cookies
- Generic login error to prevent user enumeration
"""
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from pesaflip.api.deps import get_db, get_current_user, get_current_user_id
from pesaflip.core.audit import AuditLog
from pesaflip.core.config import settings
from pesaflip.core.exceptions import ApiError, BusinessError, success_response
from pesaflip.core.security import create_access_token, decode_access_token
from pesaflip.models.user import User
from pesaflip.schemas.user import UserCreate, UserLogin, UserResponse, UserUpdate
from pesaflip.services import user_service

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _issue_token(response: Response, user: User) -> str:
    token = create_access_token(
        subject=user.id,
        extra_claims={"phone": user.phone_number, "role": user.role},
    )
    # Set httpOnly cookie (SECURITY-CRITICAL)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_MINUTES * 60,  # seconds
        secure=settings.SECURE_COOKIES,  # HTTPS only in production
        httponly=True,  # Prevent JavaScript access (XSS protection)
        samesite=settings.SAME_SITE_COOKIE,  # CSRF protection
        path="/",
    )
    return token


def _session_payload(user: User, token: str) -> dict:
    return {"user": UserResponse.model_validate(user), "token": token}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(data: UserCreate, request: Request, response: Response, db: Session = Depends(get_db)):
    """
    Register new user with password strength validation.

    Password requirements:
    - Minimum MIN_PASSWORD_LENGTH characters
    - At least one number
    """
    try:
        user = user_service.create_user(db, data)
    except ApiError as e:
        AuditLog.log_authentication("register", data.phone_number, _client_ip(request), False, reason=e.message)
        raise

    AuditLog.log_authentication("register", user.phone_number, _client_ip(request), True)
    token = _issue_token(response, user)
    return success_response(_session_payload(user, token), "User registered successfully")


@router.post("/login")
def login(data: UserLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    """
    Login and set token in httpOnly cookie.

    The token is also returned in the body for API clients.
    """
    try:
        user = user_service.authenticate_user(db, data.phone_number, data.password)
    except ApiError:
        AuditLog.log_authentication("failed_login", data.phone_number, _client_ip(request), False,
                                    reason="invalid credentials")
        raise

    AuditLog.log_authentication("login", user.phone_number, _client_ip(request), True)
    token = _issue_token(response, user)
    return success_response(_session_payload(user, token), "Login successful")


@router.post("/logout")
def logout(request: Request, response: Response):
    """Clear the auth cookie. Safe to call without a session."""
    auth_header = request.headers.get("authorization", "")
    token = auth_header[7:] if auth_header.startswith("Bearer ") else request.cookies.get(settings.AUTH_COOKIE_NAME)
    claims = decode_access_token(token) if token else None
    if claims and claims.get("phone"):
        AuditLog.log_authentication("logout", claims["phone"], _client_ip(request), True)

    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        path="/",
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    return success_response(None, "Logged out successfully")


@router.get("/me")
def me(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Get current authenticated user."""
    user = user_service.get_user_by_id(db, user_id)
    if not user:
        raise BusinessError.not_found("User", reason=f"valid token for deleted user {user_id}")
    return success_response(UserResponse.model_validate(user))


@router.patch("/me")
def update_me(
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = user_service.update_user(db, current_user, data)
    AuditLog.log_action("update", "user", user.id, user.id, changes=data.model_dump(exclude_none=True))
    return success_response(UserResponse.model_validate(user), "Profile updated")
