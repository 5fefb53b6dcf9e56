"""Pydantic schemas for user payloads and responses."""

from __future__ import annotations

import datetime as dt
import re
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ams.core.sanitize import clean_email, clean_single_line, has_control_chars

MAX_NAME_LEN = 100
MIN_PASSWORD_LEN = 8
MAX_PASSWORD_LEN = 128

_PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "password_requires_uppercase"),
    (re.compile(r"[a-z]"), "password_requires_lowercase"),
    (re.compile(r"[0-9]"), "password_requires_digit"),
    (re.compile(r"[\W_]"), "password_requires_special_character"),
)


def validate_password_policy(value: str) -> str:
    if has_control_chars(value):
        raise ValueError("password_contains_control_chars")
    for pattern, error in _PASSWORD_RULES:
        if not pattern.search(value):
            raise ValueError(error)
    return value


class UserCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=MAX_NAME_LEN)
    last_name: str = Field(min_length=1, max_length=MAX_NAME_LEN)
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=MIN_PASSWORD_LEN, max_length=MAX_PASSWORD_LEN)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return clean_single_line(value)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return validate_password_policy(value)


class UserUpdate(BaseModel):
    first_name: str = Field(min_length=1, max_length=MAX_NAME_LEN)
    last_name: str = Field(min_length=1, max_length=MAX_NAME_LEN)
    email: EmailStr = Field(max_length=255)
    is_active: bool = True

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return clean_single_line(value)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=MAX_PASSWORD_LEN)
    new_password: str = Field(min_length=MIN_PASSWORD_LEN, max_length=MAX_PASSWORD_LEN)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return validate_password_policy(value)


class UserOut(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: EmailStr
    is_active: bool
    roles: list[str] = Field(validation_alias="role_names")
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class PagedUsersOut(BaseModel):
    users: list[UserOut]
    total_count: int
    page_number: int
    page_size: int
    total_pages: int


class SessionOut(BaseModel):
    id: UUID
    issued_at: dt.datetime
    expires_at: dt.datetime
    revoked_at: dt.datetime | None = None
    reason_revoked: str | None = None
    is_revoked: bool

    model_config = ConfigDict(from_attributes=True)


class RevokeTokensRequest(BaseModel):
    reason: str = Field(default="All tokens revoked", min_length=1, max_length=500)

    @field_validator("reason", mode="before")
    @classmethod
    def normalize_reason(cls, value: str) -> str:
        return clean_single_line(value)


class RevokeTokensResponse(BaseModel):
    revoked: int
