"""FastAPI dependencies — hand out the executor owned by the app lifespan."""

from fastapi import Depends, Request

from toolshelf.database import QueryExecutor
from toolshelf.repositories.categories import CategoryRepository
from toolshelf.repositories.resources import ResourceRepository


def get_executor(request: Request) -> QueryExecutor:
    return request.app.state.executor


def get_category_repository(executor: QueryExecutor = Depends(get_executor)) -> CategoryRepository:
    return CategoryRepository(executor)


def get_resource_repository(executor: QueryExecutor = Depends(get_executor)) -> ResourceRepository:
    return ResourceRepository(executor)
