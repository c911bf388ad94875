import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_serializer, field_validator

from evote.models.user_model import Role
from evote.timeutils import to_iso_millis

PASSWORD_RULE = re.compile(r"^(?=.*[A-Za-z])(?=.*\d).+$")


class RegisterRequest(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=8)

    @field_validator("password")
    @classmethod
    def letters_and_numbers(cls, v: str) -> str:
        if not PASSWORD_RULE.match(v):
            raise ValueError("Must include letters and numbers")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ApproveRequest(BaseModel):
    role: Role
    organization_id: Optional[str] = None


class UserOut(BaseModel):
    id: str
    email: EmailStr
    name: str
    role: Role
    organization_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_serializer("created_at", when_used="json-unless-none")
    def serialize_instant(self, value: datetime) -> str:
        return to_iso_millis(value)
