"""Table-name extraction for write statements.

The executor only depends on the ``TableNameExtractor`` protocol, so the
keyword heuristic below can be swapped for a statement-aware parser without
touching the cache or executor.

Known limitation: only the first table after FROM / INTO / UPDATE is reported.
Multi-table statements, subqueries against other tables and quoted
identifiers are not resolved; entries they affect expire through the TTL.
"""

import re
from typing import Protocol

_TABLE_AFTER_KEYWORD = re.compile(r"(?:FROM|INTO|UPDATE)\s+([\w_]+)", re.IGNORECASE)
_SCHEMA_STATEMENT = re.compile(r"^\s*(?:CREATE|DROP|ALTER|PRAGMA|VACUUM|ANALYZE|REINDEX)\b", re.IGNORECASE)


class TableNameExtractor(Protocol):
    def extract(self, sql: str) -> str | None:
        """Return the table a write statement targets, or None if unknown."""
        ...


class KeywordTableExtractor:
    """First identifier following FROM, INTO or UPDATE (case-insensitive)."""

    def extract(self, sql: str) -> str | None:
        match = _TABLE_AFTER_KEYWORD.search(sql)
        return match.group(1) if match else None


def is_schema_statement(sql: str) -> bool:
    """DDL and maintenance statements never hit cached rows directly."""
    return bool(_SCHEMA_STATEMENT.match(sql))
