"""ResourceRepository — resource reads and writes through the QueryExecutor."""

import logging

from toolshelf.database import QueryExecutor
from toolshelf.schemas import (
    Resource,
    ResourceCreate,
    ResourcePage,
    ResourceQuery,
    ResourceUpdate,
    Status,
)
from toolshelf.services.patch_builder import PatchBuilder
from toolshelf.services.resource_listing import (
    RESOURCE_COLUMNS,
    encode_tags,
    list_resources,
    row_to_resource,
)

logger = logging.getLogger(__name__)

RESOURCE_PATCH = PatchBuilder(
    "resources",
    columns={
        "title": "title",
        "description": "description",
        "category_id": "category_id",
        "download_url": "download_url",
        "file_type": "file_type",
        "file_size": "file_size",
        "original_filename": "original_filename",
        "download_password": "download_password",
        "thumbnail_url": "thumbnail_url",
        "tags": "tags",
    },
    encoders={"tags": encode_tags},
)


class ResourceRepository:
    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    async def list_resources(self, query: ResourceQuery) -> ResourcePage:
        return await list_resources(self.executor, query)

    async def get_resource(self, resource_id: int) -> Resource | None:
        """Active resource by id; inactive (deleted) rows read as absent."""
        sql = f"""
        SELECT {RESOURCE_COLUMNS}
        FROM resources r
        LEFT JOIN categories c ON r.category_id = c.id
        WHERE r.id = ? AND r.status = ?
        """
        rows = await self.executor.execute(sql, [resource_id, Status.ACTIVE.value])
        return row_to_resource(rows[0]) if rows else None

    async def create_resource(self, data: ResourceCreate) -> int:
        sql = """
        INSERT INTO resources
        (title, description, category_id, file_type, file_size, original_filename,
         file_hash, download_url, download_password, thumbnail_url, tags, status)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        result = await self.executor.execute(sql, [
            data.title,
            data.description,
            data.category_id,
            data.file_type,
            data.file_size,
            data.original_filename,
            data.file_hash,
            data.download_url,
            data.download_password,
            data.thumbnail_url,
            encode_tags(data.tags),
            Status.ACTIVE.value,
        ])
        logger.info("Resource created | id=%s | title=%s", result.last_insert_id, data.title)
        return result.last_insert_id

    async def update_resource(self, resource_id: int, patch: ResourceUpdate) -> bool:
        """Apply the fields set on ``patch``. False if nothing to write or no such row."""
        statement = RESOURCE_PATCH.build(resource_id, patch.model_dump(exclude_unset=True))
        if statement is None:
            return False
        result = await self.executor.execute(statement.sql, statement.params)
        return result.rows_affected > 0

    async def delete_resource(self, resource_id: int) -> bool:
        """Soft delete: active → inactive. The row is never removed."""
        sql = """
        UPDATE resources SET status = ?, updated_at = CURRENT_TIMESTAMP
        WHERE id = ? AND status = ?
        """
        result = await self.executor.execute(
            sql, [Status.INACTIVE.value, resource_id, Status.ACTIVE.value],
        )
        return result.rows_affected > 0

    async def increment_download_count(self, resource_id: int) -> bool:
        sql = "UPDATE resources SET download_count = download_count + 1 WHERE id = ? AND status = ?"
        result = await self.executor.execute(sql, [resource_id, Status.ACTIVE.value])
        return result.rows_affected > 0

    async def popular_resources(self, limit: int = 10) -> list[Resource]:
        sql = f"""
        SELECT {RESOURCE_COLUMNS}
        FROM resources r
        LEFT JOIN categories c ON r.category_id = c.id
        WHERE r.status = ?
        ORDER BY r.download_count DESC, r.created_at DESC, r.id DESC
        LIMIT ?
        """
        rows = await self.executor.execute(sql, [Status.ACTIVE.value, limit])
        return [row_to_resource(row) for row in rows]
