"""CategoryRepository — category reads and writes through the QueryExecutor.

Check-then-write operations (unique names, delete guard, bulk re-ordering)
run inside a single transaction.
"""

import logging

from toolshelf.database import QueryExecutor, TransactionScope
from toolshelf.errors import CategoryInUseError, DuplicateCategoryError
from toolshelf.schemas import (
    Category,
    CategoryCreate,
    CategoryStats,
    CategoryUpdate,
    SortOrderUpdate,
    Status,
)
from toolshelf.services.patch_builder import PatchBuilder

logger = logging.getLogger(__name__)

CATEGORY_COLUMNS = """
    c.id, c.name, c.description, c.icon, c.sort_order,
    c.status, c.created_at, c.updated_at
"""

CATEGORY_PATCH = PatchBuilder(
    "categories",
    columns={
        "name": "name",
        "description": "description",
        "icon": "icon",
        "sort_order": "sort_order",
    },
)

NAME_EXISTS_SQL = "SELECT COUNT(*) AS count FROM categories WHERE name = ? AND status = ?"


async def _name_taken(runner, name: str, exclude_id: int | None = None) -> bool:
    sql = NAME_EXISTS_SQL
    params: list = [name, Status.ACTIVE.value]
    if exclude_id is not None:
        sql += " AND id != ?"
        params.append(exclude_id)
    rows = await runner.execute(sql, params)
    return rows[0]["count"] > 0


class CategoryRepository:
    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    async def list_categories(self, include_count: bool = False) -> list[Category]:
        """Active categories in display order, optionally with active resource counts."""
        sql = f"SELECT {CATEGORY_COLUMNS}"
        params: list = []
        if include_count:
            sql += ", COUNT(r.id) AS resource_count"
        sql += " FROM categories c"
        if include_count:
            sql += " LEFT JOIN resources r ON c.id = r.category_id AND r.status = ?"
            params.append(Status.ACTIVE.value)
        sql += " WHERE c.status = ?"
        params.append(Status.ACTIVE.value)
        if include_count:
            sql += " GROUP BY c.id"
        sql += " ORDER BY c.sort_order ASC, c.created_at ASC, c.id ASC"

        rows = await self.executor.execute(sql, params)
        return [Category(**row) for row in rows]

    async def get_category(self, category_id: int) -> Category | None:
        sql = f"""
        SELECT {CATEGORY_COLUMNS}, COUNT(r.id) AS resource_count
        FROM categories c
        LEFT JOIN resources r ON c.id = r.category_id AND r.status = ?
        WHERE c.id = ? AND c.status = ?
        GROUP BY c.id
        """
        rows = await self.executor.execute(
            sql, [Status.ACTIVE.value, category_id, Status.ACTIVE.value],
        )
        return Category(**rows[0]) if rows else None

    async def name_exists(self, name: str, exclude_id: int | None = None) -> bool:
        return await _name_taken(self.executor, name, exclude_id)

    async def create_category(self, data: CategoryCreate) -> int:
        """Insert a category. Raises DuplicateCategoryError if the name is taken."""

        async def work(tx: TransactionScope) -> int:
            if await _name_taken(tx, data.name):
                raise DuplicateCategoryError(data.name)
            result = await tx.execute(
                "INSERT INTO categories (name, description, icon, sort_order, status) VALUES (?, ?, ?, ?, ?)",
                [data.name, data.description, data.icon, data.sort_order, Status.ACTIVE.value],
            )
            return result.last_insert_id

        category_id = await self.executor.run_in_transaction(work)
        logger.info("Category created | id=%s | name=%s", category_id, data.name)
        return category_id

    async def update_category(self, category_id: int, patch: CategoryUpdate) -> bool:
        """Apply the fields set on ``patch``. False if nothing to write or no such row."""
        fields = patch.model_dump(exclude_unset=True)
        statement = CATEGORY_PATCH.build(category_id, fields)
        if statement is None:
            return False

        async def work(tx: TransactionScope) -> bool:
            if fields.get("name") and await _name_taken(tx, fields["name"], exclude_id=category_id):
                raise DuplicateCategoryError(fields["name"])
            result = await tx.execute(statement.sql, statement.params)
            return result.rows_affected > 0

        return await self.executor.run_in_transaction(work)

    async def delete_category(self, category_id: int) -> bool:
        """Soft delete. Raises CategoryInUseError while active resources reference it."""

        async def work(tx: TransactionScope) -> bool:
            rows = await tx.execute(
                "SELECT COUNT(*) AS count FROM resources WHERE category_id = ? AND status = ?",
                [category_id, Status.ACTIVE.value],
            )
            in_use = rows[0]["count"]
            if in_use > 0:
                raise CategoryInUseError(category_id, in_use)
            result = await tx.execute(
                "UPDATE categories SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ? AND status = ?",
                [Status.INACTIVE.value, category_id, Status.ACTIVE.value],
            )
            return result.rows_affected > 0

        return await self.executor.run_in_transaction(work)

    async def update_sort_order(self, updates: list[SortOrderUpdate]) -> bool:
        """Re-order several categories atomically."""

        async def work(tx: TransactionScope) -> bool:
            for update in updates:
                await tx.execute(
                    "UPDATE categories SET sort_order = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    [update.sort_order, update.id],
                )
            return True

        return await self.executor.run_in_transaction(work)

    async def category_stats(self) -> list[CategoryStats]:
        sql = """
        SELECT
            c.id,
            c.name,
            c.icon,
            COUNT(r.id) AS resource_count,
            COALESCE(SUM(r.download_count), 0) AS total_downloads,
            MAX(r.created_at) AS latest_resource_date
        FROM categories c
        LEFT JOIN resources r ON c.id = r.category_id AND r.status = ?
        WHERE c.status = ?
        GROUP BY c.id, c.name, c.icon
        ORDER BY resource_count DESC, c.sort_order ASC, c.id ASC
        """
        rows = await self.executor.execute(sql, [Status.ACTIVE.value, Status.ACTIVE.value])
        return [CategoryStats(**row) for row in rows]
