from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
import re
import uuid


PASSWORD_SPECIALS = "@$!%*?&"
DISPLAY_NAME_PATTERN = r"^[a-zA-Z0-9 ]+$"
PLACE_PATTERN = r"^[a-zA-Z \-']+$"


def check_password_strength(password: str) -> str:
    """Enforce the account password rules, returning the password unchanged."""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter (a-z)")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter (A-Z)")
    if not re.search(r"\d", password):
        raise ValueError("Password must contain at least one number (0-9)")
    if not any(c in PASSWORD_SPECIALS for c in password):
        raise ValueError(f"Password must contain at least one special character ({PASSWORD_SPECIALS})")
    if not re.fullmatch(r"[a-zA-Z0-9@$!%*?&]+", password):
        raise ValueError("Password can only contain letters, numbers, and special characters (@$!%*?&)")
    return password


class UserCreate(BaseModel):
    display_name: str = Field(..., min_length=2, max_length=32, pattern=DISPLAY_NAME_PATTERN)
    email: EmailStr
    password: str

    @field_validator("display_name", mode="before")
    @classmethod
    def strip_display_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_strength(cls, v):
        return check_password_strength(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()


class UserUpdate(BaseModel):
    display_name: Optional[str] = Field(default=None, min_length=2, max_length=32, pattern=DISPLAY_NAME_PATTERN)
    phone_code: Optional[str] = Field(default=None, pattern=r"^\+?[0-9]{1,4}$")
    phone_number: Optional[str] = Field(default=None, pattern=r"^[0-9 \-()]{7,15}$")
    photo_url: Optional[str] = Field(default=None, max_length=500)
    city: Optional[str] = Field(default=None, max_length=50, pattern=PLACE_PATTERN)
    state: Optional[str] = Field(default=None, max_length=50, pattern=PLACE_PATTERN)
    country: Optional[str] = Field(default=None, max_length=50, pattern=PLACE_PATTERN)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, v):
        return check_password_strength(v)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password != self.new_password:
            raise ValueError("Password confirmation does not match the new password")
        return self


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    display_name: str
    phone_code: Optional[str]
    phone_number: Optional[str]
    photo_url: Optional[str]
    city: Optional[str]
    state: Optional[str]
    country: Optional[str]
    last_login: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: Optional[UserResponse] = None
