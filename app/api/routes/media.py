from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_owner_id
from app.core.db import get_db
from app.core.errors import NotFoundError, ValidationError
from app.repositories.media import MediaItemRepository
from app.schemas.enums import Category, MediaType
from app.schemas.media import (
    CategoryCounts,
    MarkWatchedRequest,
    MediaItemCreateRequest,
    MediaItemOut,
    MediaItemUpdateRequest,
    MediaStats,
    MediaTypeGroup,
)

router = APIRouter(prefix="/media", tags=["media"])

NOT_FOUND = "Media item not found"


def get_media_repo(db: AsyncSession = Depends(get_db)) -> MediaItemRepository:
    return MediaItemRepository(db)


def _out(item) -> MediaItemOut:
    return MediaItemOut.model_validate(item)


def _group_out(group: dict) -> MediaTypeGroup:
    buckets = {c.value: [_out(i) for i in group[c.value]] for c in Category}
    return MediaTypeGroup(**buckets, counts=CategoryCounts(**group["counts"]))


# ------------------------------------------------------------------
# Collection queries
# ------------------------------------------------------------------

@router.get("")
async def list_media(
    type: Optional[MediaType] = Query(None),
    watched: Optional[bool] = Query(None),
    rating: Optional[int] = Query(None, ge=0, le=3),
    sortBy: Optional[str] = Query(None),
    sortOrder: Optional[str] = Query(None),
    user_id: str = Depends(get_owner_id),
    repo: MediaItemRepository = Depends(get_media_repo),
):
    items = await repo.list(
        user_id,
        {
            "media_type": type,
            "watched": watched,
            "rating": rating,
            "sort_by": sortBy,
            "sort_order": sortOrder,
        },
    )
    return {"success": True, "data": [_out(i) for i in items], "count": len(items)}


@router.get("/grouped")
async def grouped_media(
    user_id: str = Depends(get_owner_id),
    repo: MediaItemRepository = Depends(get_media_repo),
):
    grouped = await repo.group_by_category(user_id)
    return {
        "success": True,
        "data": {media_type: _group_out(group) for media_type, group in grouped.items()},
    }


@router.get("/stats")
async def media_stats(
    user_id: str = Depends(get_owner_id),
    repo: MediaItemRepository = Depends(get_media_repo),
):
    stats = await repo.stats(user_id)
    return {"success": True, "data": MediaStats(**stats)}


@router.get("/search")
async def search_media(
    q: Optional[str] = Query(None),
    user_id: str = Depends(get_owner_id),
    repo: MediaItemRepository = Depends(get_media_repo),
):
    if not q or not q.strip():
        raise ValidationError("Search query (q) is required")

    items = await repo.search(user_id, q.strip())
    return {"success": True, "data": [_out(i) for i in items], "count": len(items)}


# ------------------------------------------------------------------
# Single item
# ------------------------------------------------------------------

@router.get("/{item_id}")
async def get_media(
    item_id: str,
    user_id: str = Depends(get_owner_id),
    repo: MediaItemRepository = Depends(get_media_repo),
):
    item = await repo.find_by_id(item_id, user_id)
    if item is None:
        raise NotFoundError(NOT_FOUND)
    return {"success": True, "data": _out(item)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_media(
    payload: MediaItemCreateRequest,
    user_id: str = Depends(get_owner_id),
    repo: MediaItemRepository = Depends(get_media_repo),
):
    item = await repo.create(user_id, payload.model_dump())
    return {"success": True, "data": _out(item)}


@router.put("/{item_id}")
async def update_media(
    item_id: str,
    payload: MediaItemUpdateRequest,
    user_id: str = Depends(get_owner_id),
    repo: MediaItemRepository = Depends(get_media_repo),
):
    item = await repo.update(item_id, user_id, payload.model_dump(exclude_unset=True))
    if item is None:
        raise NotFoundError(NOT_FOUND)
    return {"success": True, "data": _out(item)}


@router.post("/{item_id}/watch")
async def mark_watched(
    item_id: str,
    payload: MarkWatchedRequest,
    user_id: str = Depends(get_owner_id),
    repo: MediaItemRepository = Depends(get_media_repo),
):
    item = await repo.mark_watched(item_id, user_id, payload.rating)
    if item is None:
        raise NotFoundError(NOT_FOUND)
    return {"success": True, "data": _out(item)}


@router.delete("/{item_id}")
async def delete_media(
    item_id: str,
    user_id: str = Depends(get_owner_id),
    repo: MediaItemRepository = Depends(get_media_repo),
):
    if not await repo.delete(item_id, user_id):
        raise NotFoundError(NOT_FOUND)
    return {"success": True, "message": "Media item deleted"}
