"""Operator endpoints for the query cache."""

from fastapi import APIRouter, Depends

from toolshelf.database import QueryExecutor
from toolshelf.dependencies import get_executor

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/cache")
async def cache_stats(executor: QueryExecutor = Depends(get_executor)):
    return {"success": True, "data": executor.cache.stats()}


@router.delete("/cache")
async def clear_cache(executor: QueryExecutor = Depends(get_executor)):
    dropped = executor.clear_cache()
    return {"success": True, "data": {"cleared": dropped}}
