"""Failure types raised by the data-access layer and repositories."""

from typing import Any, Sequence


class QueryFailure(Exception):
    """A storage-level error surfaced from the database, never retried here.

    The message is the storage message verbatim; the original exception is
    kept on ``orig`` and chained as ``__cause__``.
    """

    def __init__(self, sql: str, params: Sequence[Any], orig: BaseException):
        super().__init__(str(orig))
        self.sql = sql
        self.params = list(params)
        self.orig = orig


class CategoryInUseError(Exception):
    """Raised when deleting a category that active resources still reference."""

    def __init__(self, category_id: int, resource_count: int):
        super().__init__(
            f"Category {category_id} still has {resource_count} active resource(s)"
        )
        self.category_id = category_id
        self.resource_count = resource_count


class DuplicateCategoryError(Exception):
    """Raised when an active category already uses the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Category name already exists: {name}")
        self.name = name
