"""Toolshelf backend — FastAPI application entry point.

Run with ``uvicorn toolshelf.main:app``.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from toolshelf.config import settings
from toolshelf.database import QueryExecutor, close_db, create_engine, init_db
from toolshelf.errors import QueryFailure
from toolshelf.routes import admin as admin_routes
from toolshelf.routes import categories as category_routes
from toolshelf.routes import resources as resource_routes
from toolshelf.services.query_cache import QueryCache

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("toolshelf")

SLOW_REQUEST_MS = 1000


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Toolshelf backend starting | db=%s", settings.database_url)

    executor = QueryExecutor(
        create_engine(settings.database_url),
        QueryCache(ttl_seconds=settings.query_cache_ttl_seconds),
    )
    await init_db(executor)
    app.state.executor = executor

    yield

    await close_db(executor)
    logger.info("Toolshelf backend shutting down")


# ═══════════════ APP ═══════════════

app = FastAPI(
    title="Toolshelf API",
    description="Catalog of categorized downloadable resources",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_slow_requests(request: Request, call_next):
    start = time.monotonic()
    response = await call_next(request)
    elapsed_ms = int((time.monotonic() - start) * 1000)
    if elapsed_ms > SLOW_REQUEST_MS:
        logger.warning("Slow request | %s %s | %dms", request.method, request.url.path, elapsed_ms)
    return response


@app.exception_handler(QueryFailure)
async def query_failure_handler(request: Request, exc: QueryFailure):
    logger.error("Request failed on storage | %s %s | %s", request.method, request.url.path, str(exc)[:200])
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Database error"},
    )


app.include_router(category_routes.router)
app.include_router(resource_routes.router)
app.include_router(admin_routes.router)


# ═══════════════ ENDPOINTS ═══════════════

@app.get("/health")
async def health(request: Request):
    executor = getattr(request.app.state, "executor", None)
    return {
        "status": "ok",
        "database": executor is not None,
        "cache_entries": len(executor.cache) if executor else 0,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("toolshelf.main:app", host=settings.host, port=settings.port)
