"""Category endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from toolshelf.dependencies import get_category_repository
from toolshelf.errors import CategoryInUseError, DuplicateCategoryError
from toolshelf.repositories.categories import CategoryRepository
from toolshelf.schemas import CategoryCreate, CategoryUpdate, SortOrderRequest

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
async def list_categories(
    include_count: bool = False,
    repo: CategoryRepository = Depends(get_category_repository),
):
    categories = await repo.list_categories(include_count=include_count)
    return {"success": True, "data": [c.model_dump() for c in categories]}


@router.get("/stats/overview")
async def category_stats(repo: CategoryRepository = Depends(get_category_repository)):
    stats = await repo.category_stats()
    return {"success": True, "data": [s.model_dump() for s in stats]}


@router.put("/sort/update")
async def update_sort_order(
    body: SortOrderRequest,
    repo: CategoryRepository = Depends(get_category_repository),
):
    await repo.update_sort_order(body.updates)
    return {"success": True, "message": "Category order updated"}


@router.get("/{category_id}")
async def get_category(category_id: int, repo: CategoryRepository = Depends(get_category_repository)):
    category = await repo.get_category(category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True, "data": category.model_dump()}


@router.post("", status_code=201)
async def create_category(body: CategoryCreate, repo: CategoryRepository = Depends(get_category_repository)):
    try:
        category_id = await repo.create_category(body)
    except DuplicateCategoryError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"success": True, "message": "Category created", "data": {"id": category_id}}


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    body: CategoryUpdate,
    repo: CategoryRepository = Depends(get_category_repository),
):
    try:
        updated = await repo.update_category(category_id, body)
    except DuplicateCategoryError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not updated:
        raise HTTPException(status_code=404, detail="Category not found or nothing to update")
    return {"success": True, "message": "Category updated"}


@router.delete("/{category_id}")
async def delete_category(category_id: int, repo: CategoryRepository = Depends(get_category_repository)):
    try:
        deleted = await repo.delete_category(category_id)
    except CategoryInUseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True, "message": "Category deleted"}
