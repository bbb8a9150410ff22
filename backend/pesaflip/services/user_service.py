"""User accounts: registration, authentication, profile updates."""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pesaflip.core.config import settings
from pesaflip.core.exceptions import BusinessError
from pesaflip.core.security import get_password_hash, verify_password
from pesaflip.models.user import User
from pesaflip.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def validate_password(password: str) -> None:
    """
    Password requirements:
    - At least MIN_PASSWORD_LENGTH characters
    - At least one number
    - At most 72 bytes (bcrypt limit)
    """
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise BusinessError.bad_request(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters"
        )
    if settings.REQUIRE_NUMBERS and not any(c.isdigit() for c in password):
        raise BusinessError.bad_request("Password must contain at least one number")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise BusinessError.bad_request("Password is too long")


def get_user_by_id(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_phone_number(db: Session, phone_number: str) -> User | None:
    return db.query(User).filter(User.phone_number == phone_number).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()


def create_user(db: Session, data: UserCreate) -> User:
    if get_user_by_phone_number(db, data.phone_number):
        raise BusinessError.conflict("A user with this phone number already exists")
    if data.email and get_user_by_email(db, str(data.email)):
        raise BusinessError.conflict("A user with this email already exists")

    validate_password(data.password)

    user = User(
        phone_number=data.phone_number,
        name=data.name,
        email=str(data.email) if data.email else None,
        hashed_password=get_password_hash(data.password),
        business_name=data.business_name or None,
        business_type=data.business_type or None,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration
        db.rollback()
        raise BusinessError.conflict("A user with this phone number or email already exists") from e
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


def authenticate_user(db: Session, phone_number: str, password: str) -> User:
    """Generic error either way, so callers can't tell which phone numbers exist."""
    user = get_user_by_phone_number(db, phone_number)
    if not user or not verify_password(password, user.hashed_password):
        raise BusinessError.unauthorized(
            "Invalid phone number or password",
            reason=f"failed login for {phone_number}",
        )
    return user


def update_user(db: Session, user: User, data: UserUpdate) -> User:
    if data.email is not None and str(data.email) != user.email:
        other = get_user_by_email(db, str(data.email))
        if other and other.id != user.id:
            raise BusinessError.conflict("A user with this email already exists")
        user.email = str(data.email)
    if data.name is not None:
        if not data.name.strip():
            raise BusinessError.bad_request("Name cannot be empty")
        user.name = data.name.strip()
    if data.business_name is not None:
        user.business_name = data.business_name
    if data.business_type is not None:
        user.business_type = data.business_type

    db.commit()
    db.refresh(user)
    return user
