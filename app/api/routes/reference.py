from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.reference import Genre, MediaTypeRef, RatingScale
from app.schemas.reference import GenreOut, MediaTypeOut, RatingOut

router = APIRouter(prefix="/reference", tags=["reference"])


@router.get("/media-types")
async def list_media_types(db: AsyncSession = Depends(get_db)):
    rows = (await db.execute(select(MediaTypeRef).order_by(MediaTypeRef.id))).scalars().all()
    return {"success": True, "data": [MediaTypeOut.model_validate(r) for r in rows]}


@router.get("/ratings")
async def list_ratings(db: AsyncSession = Depends(get_db)):
    rows = (await db.execute(select(RatingScale).order_by(RatingScale.value))).scalars().all()
    return {"success": True, "data": [RatingOut.model_validate(r) for r in rows]}


@router.get("/genres")
async def list_genres(db: AsyncSession = Depends(get_db)):
    rows = (await db.execute(select(Genre).order_by(Genre.name))).scalars().all()
    return {"success": True, "data": [GenreOut.model_validate(r) for r in rows]}
