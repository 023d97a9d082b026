"""Tests for Pydantic schemas — validation of inputs and listing queries."""

import pytest
from pydantic import ValidationError

from toolshelf.schemas import (
    Category,
    CategoryUpdate,
    ResourceCreate,
    ResourcePage,
    ResourceQuery,
    ResourceUpdate,
    Status,
)


class TestResourceQuery:
    def test_defaults(self):
        q = ResourceQuery()
        assert q.page == 1
        assert q.limit == 20
        assert q.sort_by == "created_at"
        assert q.sort_order == "DESC"
        assert q.status == Status.ACTIVE
        assert q.offset == 0

    def test_offset(self):
        assert ResourceQuery(page=3, limit=10).offset == 20

    @pytest.mark.parametrize("fields", [
        {"sort_by": "id; DROP TABLE resources"},
        {"sort_by": "updated_at"},
        {"sort_order": "desc"},
        {"page": 0},
        {"limit": 0},
        {"limit": 101},
        {"status": "deleted"},
    ])
    def test_invalid(self, fields):
        with pytest.raises(ValidationError):
            ResourceQuery(**fields)

    def test_frozen(self):
        q = ResourceQuery()
        with pytest.raises(ValidationError):
            q.page = 2


class TestResourceCreate:
    def test_tags_from_csv(self):
        r = ResourceCreate(
            title="VLC", description="Player", category_id=1,
            download_url="https://example.com/vlc", tags="media, player, ",
        )
        assert r.tags == ["media", "player"]
        assert r.file_type == "html"

    def test_tags_from_list(self):
        r = ResourceCreate(
            title="VLC", description="Player", category_id=1,
            download_url="https://example.com/vlc", tags=["media"],
        )
        assert r.tags == ["media"]

    def test_relative_url_rejected(self):
        with pytest.raises(ValidationError):
            ResourceCreate(title="VLC", description="Player", category_id=1, download_url="/vlc")

    def test_missing_title(self):
        with pytest.raises(ValidationError):
            ResourceCreate(title="", description="Player", category_id=1, download_url="https://x.org")

    def test_description_optional(self):
        r = ResourceCreate(title="VLC", category_id=1, download_url="https://example.com/vlc")
        assert r.description is None


class TestResourceUpdate:
    def test_only_set_fields_dumped(self):
        patch = ResourceUpdate(title="New", file_size=None)
        assert patch.model_dump(exclude_unset=True) == {"title": "New", "file_size": None}

    def test_status_not_patchable(self):
        with pytest.raises(ValidationError):
            ResourceUpdate(status="inactive")

    @pytest.mark.parametrize("field", ["title", "download_url"])
    def test_null_for_required_column_rejected(self, field):
        with pytest.raises(ValidationError, match="not set to null"):
            ResourceUpdate(**{field: None})

    def test_null_for_nullable_column_allowed(self):
        patch = ResourceUpdate(description=None, thumbnail_url=None)
        assert patch.model_dump(exclude_unset=True) == {"description": None, "thumbnail_url": None}


class TestCategoryUpdate:
    @pytest.mark.parametrize("field", ["name", "sort_order"])
    def test_null_for_required_column_rejected(self, field):
        with pytest.raises(ValidationError):
            CategoryUpdate(**{field: None})

    def test_omitted_fields_not_dumped(self):
        assert CategoryUpdate(icon=None).model_dump(exclude_unset=True) == {"icon": None}


class TestResourcePage:
    @pytest.mark.parametrize("total, limit, pages", [
        (0, 10, 0),
        (25, 10, 3),
        (30, 10, 3),
        (1, 100, 1),
    ])
    def test_total_pages(self, total, limit, pages):
        assert ResourcePage(total=total).total_pages(limit) == pages


class TestCategory:
    def test_status_enum(self):
        c = Category(id=1, name="Media", status="inactive")
        assert c.status is Status.INACTIVE
        assert c.resource_count is None
