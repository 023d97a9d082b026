"""Resource Listing Engine — filtered, sorted, paginated resource listings.

Two statements per page, run concurrently through the QueryExecutor:
  1. COUNT(*) over resources with the filter predicate, no join.
  2. Only the ids of the requested window are selected (sorted, LIMIT/OFFSET),
     then the full rows and category display fields are joined onto that
     narrowed id set and re-sorted.

Limiting before joining keeps the per-page cost flat as the catalog grows,
given an index on the sort column.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from toolshelf.schemas import Resource, ResourcePage, ResourceQuery

logger = logging.getLogger(__name__)

RESOURCE_COLUMNS = """
    r.id, r.title, r.description, r.category_id, r.file_type,
    r.file_size, r.original_filename, r.download_url, r.download_password,
    r.thumbnail_url, r.download_count, r.tags, r.status, r.created_at,
    r.updated_at, c.name AS category_name, c.icon AS category_icon
"""

SORT_COLUMNS = {
    "created_at": "r.created_at",
    "download_count": "r.download_count",
    "title": "r.title",
}
SORT_DIRECTIONS = {"ASC": "ASC", "DESC": "DESC"}


@dataclass(frozen=True)
class ListingStatements:
    rows_sql: str
    rows_params: list[Any]
    count_sql: str
    count_params: list[Any]


def escape_like(term: str) -> str:
    """Make ``term`` match literally inside a LIKE pattern (ESCAPE '\\')."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def decode_tags(raw: str | None) -> list[str]:
    """Tags are stored as a JSON array; absent or empty means no tags."""
    if not raw:
        return []
    try:
        tags = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Unreadable tags value — treating as empty | raw=%s", raw[:80])
        return []
    if not isinstance(tags, list):
        return []
    return [str(tag) for tag in tags]


def encode_tags(tags: list[str] | None) -> str | None:
    if tags is None:
        return None
    return json.dumps(list(tags), ensure_ascii=False)


def row_to_resource(row: dict[str, Any]) -> Resource:
    return Resource(**{**row, "tags": decode_tags(row.get("tags"))})


def build_listing_statements(query: ResourceQuery) -> ListingStatements:
    """Translate a validated ResourceQuery into the count + windowed-id statements."""
    # KeyError here means validation was bypassed; never substitute a default.
    column = SORT_COLUMNS[query.sort_by]
    direction = SORT_DIRECTIONS[query.sort_order]

    where = "WHERE r.status = ?"
    params: list[Any] = [query.status.value]

    if query.category_id is not None:
        where += " AND r.category_id = ?"
        params.append(query.category_id)

    if query.search:
        where += " AND (r.title LIKE ? ESCAPE '\\' OR r.description LIKE ? ESCAPE '\\')"
        pattern = f"%{escape_like(query.search)}%"
        params.extend([pattern, pattern])

    # id tie-breaker keeps windows reproducible when sort keys collide
    order_by = f"ORDER BY {column} {direction}, r.id {direction}"

    rows_sql = f"""
    SELECT {RESOURCE_COLUMNS}
    FROM (
        SELECT r.id FROM resources r
        {where}
        {order_by}
        LIMIT ? OFFSET ?
    ) AS page_ids
    JOIN resources r ON r.id = page_ids.id
    LEFT JOIN categories c ON c.id = r.category_id
    {order_by}
    """

    count_sql = f"""
    SELECT COUNT(*) AS total
    FROM resources r
    {where}
    """

    return ListingStatements(
        rows_sql=rows_sql,
        rows_params=[*params, query.limit, query.offset],
        count_sql=count_sql,
        count_params=list(params),
    )


async def list_resources(executor, query: ResourceQuery) -> ResourcePage:
    """One page of resources plus the total number of matching rows."""
    statements = build_listing_statements(query)
    rows, counted = await asyncio.gather(
        executor.execute(statements.rows_sql, statements.rows_params),
        executor.execute(statements.count_sql, statements.count_params),
    )
    total = counted[0]["total"] if counted else 0
    return ResourcePage(items=[row_to_resource(row) for row in rows], total=total)
