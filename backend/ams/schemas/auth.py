"""Auth-related schemas (login, refresh, logout)."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, EmailStr, Field, field_validator

from ams.core.sanitize import clean_email, clean_single_line, has_control_chars


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if has_control_chars(value):
            raise ValueError("password_contains_control_chars")
        if not value.strip():
            raise ValueError("password_required")
        return value


class TokenRefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1, max_length=256)

    @field_validator("refresh_token", mode="before")
    @classmethod
    def normalize_refresh_token(cls, value: str) -> str:
        return clean_single_line(value)


class LogoutRequest(TokenRefreshRequest):
    pass


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    access_token_expiry: dt.datetime
    refresh_token_expiry: dt.datetime
    token_type: str = "bearer"


class LoginResponse(TokenPairResponse):
    email: EmailStr
    roles: list[str]
