"""Tests for the query executor — cache policy, invalidation, failures, transactions."""

import asyncio
import logging

import pytest
from sqlalchemy.ext.asyncio import AsyncTransaction

from toolshelf import database
from toolshelf.database import WriteResult, is_read_statement
from toolshelf.errors import QueryFailure

SELECT_CATEGORIES = "SELECT id, name FROM categories WHERE status = ? ORDER BY id"
COUNT_CATEGORIES = "SELECT COUNT(*) AS n FROM categories"
INSERT_CATEGORY = "INSERT INTO categories (name, sort_order) VALUES (?, ?)"
INSERT_RESOURCE = "INSERT INTO resources (title, download_url) VALUES (?, ?)"


class TestClassification:
    def test_select_is_read(self):
        assert is_read_statement("SELECT 1")
        assert is_read_statement("\n    select id FROM resources")

    def test_everything_else_is_write(self):
        assert not is_read_statement("INSERT INTO categories (name) VALUES (?)")
        assert not is_read_statement("UPDATE resources SET title = ?")
        assert not is_read_statement("WITH x AS (SELECT 1) SELECT * FROM x")


# ═══════════════ READ PATH ═══════════════


class TestReadPath:
    async def test_repeat_read_served_from_cache(self, executor, statements):
        await executor.execute(INSERT_CATEGORY, ["Tools", 1])
        first = await executor.execute(SELECT_CATEGORIES, ["active"])
        second = await executor.execute(SELECT_CATEGORIES, ["active"])
        assert first == second == [{"id": 1, "name": "Tools"}]
        assert statements.count(SELECT_CATEGORIES) == 1

    async def test_different_params_miss(self, executor, statements):
        await executor.execute(SELECT_CATEGORIES, ["active"])
        await executor.execute(SELECT_CATEGORIES, ["inactive"])
        assert statements.count(SELECT_CATEGORIES) == 2

    async def test_expired_entry_reexecutes(self, executor, statements, clock):
        await executor.execute(SELECT_CATEGORIES, ["active"])
        clock.advance(299)
        await executor.execute(SELECT_CATEGORIES, ["active"])
        assert statements.count(SELECT_CATEGORIES) == 1
        clock.advance(2)
        await executor.execute(SELECT_CATEGORIES, ["active"])
        assert statements.count(SELECT_CATEGORIES) == 2

    async def test_returned_rows_are_copies(self, executor):
        await executor.execute(INSERT_CATEGORY, ["Tools", 1])
        first = await executor.execute(SELECT_CATEGORIES, ["active"])
        first[0]["name"] = "mutated"
        second = await executor.execute(SELECT_CATEGORIES, ["active"])
        assert second[0]["name"] == "Tools"

    async def test_concurrent_reads(self, executor):
        await executor.execute(INSERT_CATEGORY, ["Tools", 1])
        results = await asyncio.gather(*[
            executor.execute(SELECT_CATEGORIES, ["active"]) for _ in range(10)
        ])
        assert all(r == [{"id": 1, "name": "Tools"}] for r in results)

    async def test_clear_cache_forces_reexecution(self, executor, statements):
        await executor.execute(SELECT_CATEGORIES, ["active"])
        executor.clear_cache()
        await executor.execute(SELECT_CATEGORIES, ["active"])
        assert statements.count(SELECT_CATEGORIES) == 2

    async def test_write_during_fetch_is_not_cached_stale(self, executor, monkeypatch):
        fetched = asyncio.Event()
        release = asyncio.Event()
        fetch_rows = database._fetch_rows

        async def paused_fetch(conn, sql, params):
            rows = await fetch_rows(conn, sql, params)
            if sql == SELECT_CATEGORIES:
                fetched.set()
                await release.wait()
            return rows

        monkeypatch.setattr(database, "_fetch_rows", paused_fetch)

        in_flight = asyncio.create_task(executor.execute(SELECT_CATEGORIES, ["active"]))
        await fetched.wait()
        await executor.execute(INSERT_CATEGORY, ["Tools", 1])
        release.set()
        assert await in_flight == []

        rows = await executor.execute(SELECT_CATEGORIES, ["active"])
        assert rows == [{"id": 1, "name": "Tools"}]


# ═══════════════ WRITE PATH ═══════════════


class TestWritePath:
    async def test_write_result(self, executor):
        result = await executor.execute(INSERT_CATEGORY, ["Tools", 1])
        assert isinstance(result, WriteResult)
        assert result.last_insert_id == 1
        assert result.rows_affected == 1

    async def test_update_reports_rows_affected(self, executor):
        await executor.execute(INSERT_CATEGORY, ["A", 1])
        await executor.execute(INSERT_CATEGORY, ["B", 2])
        result = await executor.execute("UPDATE categories SET sort_order = 0")
        assert result.rows_affected == 2

    async def test_write_invalidates_cached_read(self, executor, statements):
        await executor.execute(INSERT_CATEGORY, ["Tools", 1])
        before = await executor.execute(SELECT_CATEGORIES, ["active"])
        await executor.execute(INSERT_CATEGORY, ["Media", 2])
        after = await executor.execute(SELECT_CATEGORIES, ["active"])
        assert statements.count(SELECT_CATEGORIES) == 2
        assert len(before) == 1
        assert [row["name"] for row in after] == ["Tools", "Media"]

    async def test_write_to_other_table_keeps_entry(self, executor, statements):
        await executor.execute(SELECT_CATEGORIES, ["active"])
        await executor.execute(INSERT_RESOURCE, ["Audacity", "https://example.com"])
        await executor.execute(SELECT_CATEGORIES, ["active"])
        assert statements.count(SELECT_CATEGORIES) == 1

    async def test_invalidation_miss_logged_not_raised(self, executor, caplog):
        caplog.set_level(logging.WARNING, logger="toolshelf.database")
        result = await executor.execute("VALUES (1)")
        assert isinstance(result, WriteResult)
        assert "invalidation miss" in caplog.text


# ═══════════════ FAILURES ═══════════════


class TestQueryFailure:
    async def test_malformed_read(self, executor):
        with pytest.raises(QueryFailure) as exc_info:
            await executor.execute("SELECT * FROM nowhere")
        assert "no such table" in str(exc_info.value)
        assert exc_info.value.sql == "SELECT * FROM nowhere"
        assert exc_info.value.orig is not None

    async def test_constraint_violation(self, executor):
        with pytest.raises(QueryFailure, match="NOT NULL"):
            await executor.execute(INSERT_RESOURCE, [None, "https://example.com"])

    async def test_failed_read_not_cached(self, executor, statements):
        sql = "SELECT * FROM nowhere"
        for _ in range(2):
            with pytest.raises(QueryFailure):
                await executor.execute(sql)
        assert statements.count(sql) == 2


# ═══════════════ TRANSACTIONS ═══════════════


class TestTransactions:
    async def test_commit(self, executor):
        async def work(tx):
            await tx.execute(INSERT_CATEGORY, ["A", 1])
            await tx.execute(INSERT_CATEGORY, ["B", 2])
            return "done"

        assert await executor.run_in_transaction(work) == "done"
        rows = await executor.execute(COUNT_CATEGORIES)
        assert rows[0]["n"] == 2

    async def test_rollback_reraises_original(self, executor):
        async def work(tx):
            await tx.execute(INSERT_CATEGORY, ["A", 1])
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await executor.run_in_transaction(work)
        rows = await executor.execute(COUNT_CATEGORIES)
        assert rows[0]["n"] == 0

    async def test_query_failure_inside_rolls_back(self, executor):
        async def work(tx):
            await tx.execute(INSERT_CATEGORY, ["A", 1])
            await tx.execute(INSERT_RESOURCE, [None, "x"])

        with pytest.raises(QueryFailure):
            await executor.run_in_transaction(work)
        rows = await executor.execute(COUNT_CATEGORIES)
        assert rows[0]["n"] == 0

    async def test_rollback_failure_does_not_mask_original(self, executor, monkeypatch, caplog):
        async def broken_rollback(self):
            raise RuntimeError("rollback exploded")

        monkeypatch.setattr(AsyncTransaction, "rollback", broken_rollback)
        caplog.set_level(logging.ERROR, logger="toolshelf.database")

        async def work(tx):
            raise ValueError("work failed")

        with pytest.raises(ValueError, match="work failed") as exc_info:
            await executor.run_in_transaction(work)
        assert any("rollback exploded" in note for note in exc_info.value.__notes__)
        assert "Transaction rollback failed" in caplog.text

    async def test_reads_inside_bypass_cache(self, executor, statements):
        await executor.execute(SELECT_CATEGORIES, ["active"])

        async def work(tx):
            await tx.execute(INSERT_CATEGORY, ["A", 1])
            return await tx.execute(SELECT_CATEGORIES, ["active"])

        rows = await executor.run_in_transaction(work)
        assert rows == [{"id": 1, "name": "A"}]
        assert statements.count(SELECT_CATEGORIES) == 2

    async def test_writes_inside_invalidate(self, executor, statements):
        cached = await executor.execute(SELECT_CATEGORIES, ["active"])
        assert cached == []

        async def work(tx):
            await tx.execute(INSERT_CATEGORY, ["A", 1])

        await executor.run_in_transaction(work)
        rows = await executor.execute(SELECT_CATEGORIES, ["active"])
        assert rows == [{"id": 1, "name": "A"}]
