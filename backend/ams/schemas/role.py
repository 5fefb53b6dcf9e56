"""Pydantic schemas for role payloads and responses."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ams.core.sanitize import clean_single_line


class RoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    is_active: bool = True

    @field_validator("name", "description", mode="before")
    @classmethod
    def normalize_text(cls, value: str) -> str:
        return clean_single_line(value)


class RoleUpdate(RoleCreate):
    pass


class RoleOut(BaseModel):
    id: UUID
    name: str
    description: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class PagedRolesOut(BaseModel):
    roles: list[RoleOut]
    total_count: int
    page_number: int
    page_size: int
    total_pages: int
