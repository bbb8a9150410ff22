import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator

PHONE_PATTERN = re.compile(r"^\+?[0-9]{10,15}$")


def _check_phone(v: str) -> str:
    v = v.strip()
    if not PHONE_PATTERN.match(v):
        raise ValueError("Invalid phone number format")
    return v


class UserCreate(BaseModel):
    phone_number: str
    name: str
    password: str
    email: Optional[EmailStr] = None
    business_name: Optional[str] = None
    business_type: Optional[str] = None

    @field_validator("phone_number")
    @classmethod
    def phone_format(cls, v: str) -> str:
        return _check_phone(v)

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        return v or None


class UserLogin(BaseModel):
    phone_number: str
    password: str

    @field_validator("phone_number")
    @classmethod
    def phone_format(cls, v: str) -> str:
        return _check_phone(v)


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    business_name: Optional[str] = None
    business_type: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    phone_number: str
    name: str
    email: Optional[str] = None
    business_name: Optional[str] = None
    business_type: Optional[str] = None
    role: str = "user"
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
