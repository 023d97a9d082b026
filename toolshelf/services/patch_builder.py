"""Parameterized UPDATE statements for partial patches.

Column names come only from the builder's allow-list; caller-supplied keys
are checked against it and values are always bound as ``?`` placeholders.
"""

from dataclasses import dataclass
from typing import Any, Callable, Mapping


@dataclass(frozen=True)
class UpdateStatement:
    sql: str
    params: list[Any]


class PatchBuilder:
    """Builds ``UPDATE <table> SET ... WHERE id = ?`` from a patch mapping.

    ``columns`` maps patch field -> column name. ``encoders`` optionally
    converts a field's value before binding (e.g. JSON-encoding a list).
    ``touch_column`` is set to CURRENT_TIMESTAMP on every non-empty patch.
    """

    def __init__(
        self,
        table: str,
        columns: Mapping[str, str],
        encoders: Mapping[str, Callable[[Any], Any]] | None = None,
        touch_column: str | None = "updated_at",
    ):
        self.table = table
        self.columns = dict(columns)
        self.encoders = dict(encoders or {})
        self.touch_column = touch_column

    def build(self, key: int, patch: Mapping[str, Any]) -> UpdateStatement | None:
        """Return the statement, or None when the patch sets nothing."""
        unknown = sorted(set(patch) - set(self.columns))
        if unknown:
            raise ValueError(f"Fields not allowed in {self.table} patch: {', '.join(unknown)}")

        assignments: list[str] = []
        params: list[Any] = []
        for field, column in self.columns.items():
            if field not in patch:
                continue
            value = patch[field]
            encode = self.encoders.get(field)
            assignments.append(f"{column} = ?")
            params.append(encode(value) if encode else value)

        if not assignments:
            return None
        if self.touch_column:
            assignments.append(f"{self.touch_column} = CURRENT_TIMESTAMP")

        params.append(key)
        sql = f"UPDATE {self.table} SET {', '.join(assignments)} WHERE id = ?"
        return UpdateStatement(sql=sql, params=params)
