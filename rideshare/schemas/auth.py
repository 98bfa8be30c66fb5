import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# Albanian phone: +355 followed by 8-9 digits
ALBANIAN_PHONE_RE = re.compile(r"^\+355\s?\d{2}\s?\d{3}\s?\d{3,4}$")


class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=2)
    phone: Optional[str] = None
    locale: Literal["sq", "en"] = "sq"

    @field_validator("phone")
    @classmethod
    def _albanian_phone(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if not ALBANIAN_PHONE_RE.match(value):
            raise ValueError("Invalid Albanian phone number format")
        return value


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    phone: Optional[str] = None
    locale: str
    created_at: datetime


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
