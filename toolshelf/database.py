"""Async storage handle and the query executor every repository goes through.

Uses SQLAlchemy 2.0 async with the aiosqlite driver. Statements are raw SQL
with ``?`` placeholders and an ordered parameter list.

Cache policy (see QueryExecutor.execute):
  - SELECT statements are reads: served from the QueryCache when fresh,
    otherwise executed and stored.
  - Everything else is a write: executed first, then every cached read that
    mentions the written table is evicted.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from toolshelf.config import settings
from toolshelf.errors import QueryFailure
from toolshelf.services.query_cache import QueryCache, compute_fingerprint
from toolshelf.services.table_names import (
    KeywordTableExtractor,
    TableNameExtractor,
    is_schema_statement,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Rows = list[dict[str, Any]]

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA cache_size = 10000",
    "PRAGMA temp_store = MEMORY",
    "PRAGMA mmap_size = 268435456",
    "PRAGMA foreign_keys = ON",
)


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the shared async engine, tuned for concurrent reads on SQLite."""
    url = database_url or settings.database_url
    engine = create_async_engine(url, echo=False)
    if url.startswith("sqlite"):
        event.listen(engine.sync_engine, "connect", _apply_sqlite_pragmas)
    return engine


def _apply_sqlite_pragmas(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


def is_read_statement(sql: str) -> bool:
    """Purely syntactic: a statement is a read iff it starts with SELECT."""
    return sql.strip().upper().startswith("SELECT")


def _preview(sql: str, limit: int = 120) -> str:
    return " ".join(sql.split())[:limit]


def _query_failure(sql: str, params: list[Any], error: SQLAlchemyError) -> QueryFailure:
    orig = getattr(error, "orig", None) or error
    logger.error("Query failed | %s | sql=%s", str(orig)[:200], _preview(sql))
    return QueryFailure(sql, params, orig)


@dataclass(frozen=True)
class WriteResult:
    last_insert_id: int | None
    rows_affected: int


async def _fetch_rows(conn: AsyncConnection, sql: str, params: list[Any]) -> Rows:
    result = await conn.exec_driver_sql(sql, tuple(params))
    return [dict(row) for row in result.mappings().all()]


async def _run_write(conn: AsyncConnection, sql: str, params: list[Any]) -> WriteResult:
    result = await conn.exec_driver_sql(sql, tuple(params))
    return WriteResult(last_insert_id=result.lastrowid, rows_affected=result.rowcount)


class TransactionScope:
    """Runs statements on the connection of one open transaction.

    Reads bypass the cache in both directions since they may observe
    uncommitted state. Writes still evict cached reads of their table.
    """

    def __init__(self, executor: "QueryExecutor", conn: AsyncConnection):
        self._executor = executor
        self._conn = conn

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> Rows | WriteResult:
        params = list(params or [])
        try:
            if is_read_statement(sql):
                return await _fetch_rows(self._conn, sql, params)
            result = await _run_write(self._conn, sql, params)
        except SQLAlchemyError as e:
            raise _query_failure(sql, params, e) from e
        self._executor.invalidate_for(sql)
        return result


class QueryExecutor:
    """Single entry point for SQL: classifies statements and applies cache policy.

    Storage errors surface as QueryFailure and are never retried here.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        cache: QueryCache | None = None,
        extractor: TableNameExtractor | None = None,
    ):
        self.engine = engine
        self.cache = cache if cache is not None else QueryCache(settings.query_cache_ttl_seconds)
        self.extractor = extractor or KeywordTableExtractor()

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> Rows | WriteResult:
        """Run one statement. Reads return row dicts, writes a WriteResult."""
        params = list(params or [])
        if is_read_statement(sql):
            return await self._read(sql, params)
        return await self._write(sql, params)

    async def _read(self, sql: str, params: list[Any]) -> Rows:
        fingerprint = compute_fingerprint(sql, params)
        entry = self.cache.get(fingerprint)
        if entry is not None:
            logger.debug("Cache HIT | key=%s", fingerprint[:20])
            return [dict(row) for row in entry.payload]

        logger.debug("Cache MISS | key=%s", fingerprint[:20])
        epoch = self.cache.epoch
        try:
            async with self.engine.connect() as conn:
                rows = await _fetch_rows(conn, sql, params)
        except SQLAlchemyError as e:
            raise _query_failure(sql, params, e) from e

        self.cache.put(fingerprint, rows, sql=sql, epoch=epoch)
        return [dict(row) for row in rows]

    async def _write(self, sql: str, params: list[Any]) -> WriteResult:
        try:
            async with self.engine.begin() as conn:
                result = await _run_write(conn, sql, params)
        except SQLAlchemyError as e:
            raise _query_failure(sql, params, e) from e

        self.invalidate_for(sql)
        return result

    async def run_in_transaction(self, work: Callable[[TransactionScope], Awaitable[T]]) -> T:
        """Run ``work`` atomically: commit on success, roll back and re-raise on failure.

        If the rollback itself fails, the failure is logged and attached as a
        note; the unit of work's own exception is what the caller sees.
        """
        try:
            conn = await self.engine.connect()
        except SQLAlchemyError as e:
            raise _query_failure("BEGIN", [], e) from e

        try:
            try:
                transaction = await conn.begin()
            except SQLAlchemyError as e:
                raise _query_failure("BEGIN", [], e) from e

            try:
                result = await work(TransactionScope(self, conn))
            except BaseException as error:
                try:
                    await transaction.rollback()
                except Exception as rollback_error:
                    logger.exception("Transaction rollback failed | original=%r", error)
                    error.add_note(f"rollback also failed: {rollback_error!r}")
                raise

            try:
                await transaction.commit()
            except SQLAlchemyError as e:
                raise _query_failure("COMMIT", [], e) from e
            return result
        finally:
            await conn.close()

    def clear_cache(self) -> int:
        """Operator-triggered reset of every cached read."""
        return self.cache.clear()

    def invalidate_for(self, sql: str) -> None:
        """Evict cached reads of the table a write statement targets."""
        table = self.extractor.extract(sql)
        if table is not None:
            self.cache.invalidate_table(table)
        elif is_schema_statement(sql):
            logger.debug("Cache invalidation skipped | schema statement | sql=%s", _preview(sql))
        else:
            logger.warning(
                "Cache invalidation miss | no table found, stale reads expire via TTL | sql=%s",
                _preview(sql),
            )


async def init_db(executor: QueryExecutor, seed: bool | None = None) -> None:
    """Create tables and indexes if missing, then optionally seed demo data."""
    from toolshelf.models import Base
    from toolshelf.utils.seed_data import seed_demo_catalog

    try:
        async with executor.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except SQLAlchemyError as e:
        raise _query_failure("CREATE SCHEMA", [], e) from e
    logger.info("Database schema ready")

    if seed is None:
        seed = settings.seed_demo_data
    if seed:
        await seed_demo_catalog(executor)


async def close_db(executor: QueryExecutor) -> None:
    """Dispose engine connections on shutdown."""
    await executor.engine.dispose()
    logger.info("Database connections closed")
