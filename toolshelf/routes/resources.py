"""Resource endpoints — listing, detail, CRUD and download bookkeeping."""

from fastapi import APIRouter, Depends, HTTPException, Query

from toolshelf.config import settings
from toolshelf.dependencies import get_resource_repository
from toolshelf.repositories.resources import ResourceRepository
from toolshelf.schemas import (
    MAX_PAGE_SIZE,
    DownloadTicket,
    ResourceCreate,
    ResourceQuery,
    ResourceUpdate,
    SortField,
    SortOrder,
    Status,
)

router = APIRouter(prefix="/api/resources", tags=["resources"])


@router.get("")
async def list_resources(
    page: int = Query(1, ge=1),
    limit: int = Query(0, ge=0, le=MAX_PAGE_SIZE),
    category_id: int | None = None,
    search: str | None = None,
    sort_by: SortField = "created_at",
    sort_order: SortOrder = "DESC",
    status: Status = Status.ACTIVE,
    repo: ResourceRepository = Depends(get_resource_repository),
):
    # 0 / absent limit means "use the default page size"
    query = ResourceQuery(
        page=page,
        limit=limit or settings.default_page_size,
        category_id=category_id,
        search=search or None,
        sort_by=sort_by,
        sort_order=sort_order,
        status=status,
    )
    result = await repo.list_resources(query)
    return {
        "success": True,
        "data": [r.model_dump() for r in result.items],
        "pagination": {
            "currentPage": query.page,
            "totalPages": result.total_pages(query.limit),
            "totalItems": result.total,
            "itemsPerPage": query.limit,
        },
    }


@router.get("/popular/list")
async def popular_resources(
    limit: int = Query(0, ge=0, le=MAX_PAGE_SIZE),
    repo: ResourceRepository = Depends(get_resource_repository),
):
    resources = await repo.popular_resources(limit or settings.popular_default_limit)
    return {"success": True, "data": [r.model_dump() for r in resources]}


@router.get("/{resource_id}")
async def get_resource(resource_id: int, repo: ResourceRepository = Depends(get_resource_repository)):
    resource = await repo.get_resource(resource_id)
    if resource is None:
        raise HTTPException(status_code=404, detail="Resource not found")
    return {"success": True, "data": resource.model_dump()}


@router.post("", status_code=201)
async def create_resource(body: ResourceCreate, repo: ResourceRepository = Depends(get_resource_repository)):
    resource_id = await repo.create_resource(body)
    return {"success": True, "message": "Resource created", "data": {"id": resource_id}}


@router.put("/{resource_id}")
async def update_resource(
    resource_id: int,
    body: ResourceUpdate,
    repo: ResourceRepository = Depends(get_resource_repository),
):
    if await repo.get_resource(resource_id) is None:
        raise HTTPException(status_code=404, detail="Resource not found")
    await repo.update_resource(resource_id, body)
    resource = await repo.get_resource(resource_id)
    return {"success": True, "message": "Resource updated", "data": resource.model_dump() if resource else None}


@router.delete("/{resource_id}")
async def delete_resource(resource_id: int, repo: ResourceRepository = Depends(get_resource_repository)):
    if not await repo.delete_resource(resource_id):
        raise HTTPException(status_code=404, detail="Resource not found")
    return {"success": True, "message": "Resource deleted"}


@router.post("/{resource_id}/download")
async def record_download(resource_id: int, repo: ResourceRepository = Depends(get_resource_repository)):
    """Count a download and hand back where to fetch it from."""
    resource = await repo.get_resource(resource_id)
    if resource is None:
        raise HTTPException(status_code=404, detail="Resource not found")
    await repo.increment_download_count(resource_id)
    ticket = DownloadTicket(
        download_url=resource.download_url,
        download_password=resource.download_password,
    )
    return {"success": True, "data": ticket.model_dump()}
