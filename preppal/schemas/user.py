import re
from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, Field

from preppal.schemas.base import CamelModel, utc_now
from preppal.schemas.session import new_id

EMAIL_PATTERN = re.compile(r"^[^<>()\[\]\\.,;:\s@\"]+(\.[^<>()\[\]\\.,;:\s@\"]+)*@([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}$")
MIN_SECRET_LENGTH = 6


class User(CamelModel):
    id: str = Field(default_factory=new_id)
    email: str
    name: str
    password: Optional[str] = None
    joined_at: datetime = Field(default_factory=utc_now)


class UserResponse(CamelModel):
    id: str
    email: str
    name: str
    joined_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, email=user.email, name=user.name, joined_at=user.joined_at)


def validate_email(value: str) -> str:
    value = value.strip()
    if not EMAIL_PATTERN.match(value.lower()):
        raise ValueError("Please enter a valid email address.")
    return value


def validate_secret(value: str) -> str:
    if len(value) < MIN_SECRET_LENGTH:
        raise ValueError(f"Password must be at least {MIN_SECRET_LENGTH} characters long.")
    return value


class LoginRequest(CamelModel):
    email: Annotated[str, AfterValidator(validate_email)]
    password: Annotated[str, AfterValidator(validate_secret)]


class RegisterRequest(LoginRequest):
    name: str = Field(min_length=1)
