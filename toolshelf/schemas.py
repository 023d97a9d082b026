"""Pydantic models for the catalog — domain rows, inputs and query objects.

Split into: lifecycle, resources, listing, categories.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

MAX_PAGE_SIZE = 100

SortField = Literal["created_at", "download_count", "title"]
SortOrder = Literal["ASC", "DESC"]


# ═══════════════ LIFECYCLE ═══════════════

class Status(str, Enum):
    """Two-state lifecycle: active → inactive. Inactive is terminal."""

    ACTIVE = "active"
    INACTIVE = "inactive"


# ═══════════════ RESOURCES ═══════════════

class Resource(BaseModel):
    """A resource row joined with its category's display fields."""

    id: int
    title: str
    description: str | None = None
    category_id: int | None = None
    file_type: str | None = None
    file_size: int | None = None
    original_filename: str | None = None
    download_url: str
    download_password: str | None = None
    thumbnail_url: str | None = None
    download_count: int = 0
    tags: list[str] = Field(default_factory=list)
    status: Status = Status.ACTIVE
    created_at: str | None = None
    updated_at: str | None = None
    category_name: str | None = None
    category_icon: str | None = None


def _split_tags(value):
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return value


def _reject_null(value, info):
    # omitted fields keep their None default; only an explicit null reaches here
    if value is None:
        raise ValueError(f"{info.field_name} may be omitted but not set to null")
    return value


def _check_url(value: str | None) -> str | None:
    if value is None:
        return value
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError("download_url must be an absolute URL")
    return value


class ResourceCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    category_id: int
    download_url: str
    file_type: str = "html"
    file_size: int | None = Field(default=None, ge=0)
    original_filename: str | None = None
    file_hash: str | None = None
    download_password: str | None = None
    thumbnail_url: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_from_csv(cls, value):
        return _split_tags(value)

    @field_validator("download_url")
    @classmethod
    def _valid_url(cls, value: str) -> str:
        return _check_url(value)


class ResourceUpdate(BaseModel):
    """Partial patch — only fields explicitly set are written."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    category_id: int | None = None
    download_url: str | None = None
    file_type: str | None = None
    file_size: int | None = Field(default=None, ge=0)
    original_filename: str | None = None
    download_password: str | None = None
    thumbnail_url: str | None = None
    tags: list[str] | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_from_csv(cls, value):
        return _split_tags(value)

    @field_validator("title", "download_url")
    @classmethod
    def _required_columns(cls, value, info: ValidationInfo):
        return _reject_null(value, info)

    @field_validator("download_url")
    @classmethod
    def _valid_url(cls, value: str | None) -> str | None:
        return _check_url(value)


class DownloadTicket(BaseModel):
    download_url: str
    download_password: str | None = None


# ═══════════════ LISTING ═══════════════

class ResourceQuery(BaseModel):
    """Filter / sort / window over resource rows.

    ``sort_by`` and ``sort_order`` are closed sets: anything else fails
    validation here, before any SQL is built.
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, gt=0, le=MAX_PAGE_SIZE)
    category_id: int | None = None
    search: str | None = None
    sort_by: SortField = "created_at"
    sort_order: SortOrder = "DESC"
    status: Status = Status.ACTIVE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ResourcePage(BaseModel):
    items: list[Resource] = Field(default_factory=list)
    total: int = 0

    def total_pages(self, limit: int) -> int:
        return math.ceil(self.total / limit) if limit > 0 else 0


# ═══════════════ CATEGORIES ═══════════════

class Category(BaseModel):
    id: int
    name: str
    description: str | None = None
    icon: str | None = None
    sort_order: int = 0
    status: Status = Status.ACTIVE
    created_at: str | None = None
    updated_at: str | None = None
    resource_count: int | None = None


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    icon: str | None = None
    sort_order: int = 0


class CategoryUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    icon: str | None = None
    sort_order: int | None = None

    @field_validator("name", "sort_order")
    @classmethod
    def _required_columns(cls, value, info: ValidationInfo):
        return _reject_null(value, info)


class SortOrderUpdate(BaseModel):
    id: int
    sort_order: int


class SortOrderRequest(BaseModel):
    updates: list[SortOrderUpdate]


class CategoryStats(BaseModel):
    id: int
    name: str
    icon: str | None = None
    resource_count: int = 0
    total_downloads: int = 0
    latest_resource_date: str | None = None
