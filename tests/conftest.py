"""Shared test fixtures and configuration."""

import os

import pytest
from sqlalchemy import event

# Never seed the demo catalog unless a test asks for it
os.environ.setdefault("SEED_DEMO_DATA", "false")

from toolshelf.database import QueryExecutor, create_engine, init_db  # noqa: E402
from toolshelf.repositories.categories import CategoryRepository  # noqa: E402
from toolshelf.repositories.resources import ResourceRepository  # noqa: E402
from toolshelf.schemas import CategoryCreate, ResourceCreate  # noqa: E402
from toolshelf.services.query_cache import QueryCache  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class StatementLog:
    """Records every statement that actually reaches SQLite."""

    def __init__(self):
        self.statements: list[str] = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)

    def count(self, sql: str) -> int:
        return sum(1 for s in self.statements if s == sql)

    def clear(self):
        self.statements.clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.sqlite'}")
    yield engine
    await engine.dispose()


@pytest.fixture
def statements(engine):
    log = StatementLog()
    event.listen(engine.sync_engine, "before_cursor_execute", log)
    yield log
    event.remove(engine.sync_engine, "before_cursor_execute", log)


@pytest.fixture
async def executor(engine, clock):
    executor = QueryExecutor(engine, QueryCache(ttl_seconds=300, clock=clock))
    await init_db(executor, seed=False)
    return executor


@pytest.fixture
def categories(executor):
    return CategoryRepository(executor)


@pytest.fixture
def resources(executor):
    return ResourceRepository(executor)


@pytest.fixture
async def category_id(categories):
    return await categories.create_category(
        CategoryCreate(name="Developer Tools", description="Dev tools", icon="🛠️", sort_order=1),
    )


def make_resource(category_id: int, title: str = "Visual Studio Code", **overrides) -> ResourceCreate:
    fields = {
        "title": title,
        "description": f"{title} description",
        "category_id": category_id,
        "download_url": "https://example.com/download",
        "tags": ["ai", "tool"],
    }
    fields.update(overrides)
    return ResourceCreate(**fields)
