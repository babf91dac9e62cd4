import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.user import UserRole

USN_PATTERN = re.compile(r"^[A-Z0-9]+$")


def _normalize_name(value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise ValueError("Name cannot be empty")
    return trimmed


def _normalize_usn(value: str) -> str:
    usn = value.strip().upper()
    if not USN_PATTERN.match(usn):
        raise ValueError("Invalid USN format")
    return usn


class AdminRegister(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return _normalize_name(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class AdminLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class StudentRegister(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    usn: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=6, max_length=128)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return _normalize_name(value)

    @field_validator("usn")
    @classmethod
    def normalize_usn(cls, value: str) -> str:
        return _normalize_usn(value)


class StudentLogin(BaseModel):
    usn: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("usn")
    @classmethod
    def normalize_usn(cls, value: str) -> str:
        return value.strip().upper()


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    role: UserRole
    name: str
    email: str | None = None
    usn: str | None = None
    created_at: datetime | None = None


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
