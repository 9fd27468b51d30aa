from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger
from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ValidationError
from app.models.media import MediaItem
from app.models.reference import Genre
from app.schemas.enums import Category, MEDIA_TYPES, MIN_RATING, MAX_RATING, SortOrder


# external field name -> MediaItem attribute
UPDATE_FIELDS = {
    "title": "title",
    "media_type": "media_type",
    "mediaType": "media_type",
    "note": "note",
    "reason": "reason",
    "rating": "rating",
    "watched": "watched",
    "genres": "genres",
    "watch_date": "watch_date",
    "watchDate": "watch_date",
}

SORT_FIELDS = {
    "title": MediaItem.title,
    "createdAt": MediaItem.created_at,
    "created_at": MediaItem.created_at,
    "updatedAt": MediaItem.updated_at,
    "updated_at": MediaItem.updated_at,
    "rating": MediaItem.rating,
    "watched": MediaItem.watched,
}
DEFAULT_SORT = "createdAt"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ------------------------------------------------------------
# Validation
# ------------------------------------------------------------
def _clean_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Title is required")
    return title.strip()


def _check_media_type(media_type: Any) -> str:
    value = getattr(media_type, "value", media_type)
    if value not in MEDIA_TYPES:
        raise ValidationError(f"media_type must be one of: {', '.join(MEDIA_TYPES)}")
    return value


def _check_rating(rating: Any, required: bool = False) -> Optional[int]:
    if rating is None:
        if required:
            raise ValidationError("Rating is required")
        return None
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError(f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return int(rating)


def _check_watched(watched: Any) -> bool:
    if isinstance(watched, bool):
        return watched
    if watched in (0, 1):
        return bool(watched)
    raise ValidationError("watched must be true or false")


def _sort_order(value: Any) -> SortOrder:
    # anything unrecognised sorts newest first
    if isinstance(value, SortOrder):
        return value
    try:
        return SortOrder(str(value or SortOrder.desc.value).lower())
    except ValueError:
        return SortOrder.desc


def category_of(item: MediaItem) -> Category:
    if not item.watched:
        return Category.watchlist
    if item.rating == 3:
        return Category.loved
    if item.rating == 2:
        return Category.liked
    if item.rating == 1:
        return Category.disliked
    return Category.unrated


class MediaItemRepository:
    """Data access for media items. Every query is scoped to its owner."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------- helpers ----------
    def _owned(self, user_id: str):
        return select(MediaItem).where(MediaItem.user_id == user_id).options(selectinload(MediaItem.genres))

    async def _resolve_genres(self, names: Iterable[str]) -> List[Genre]:
        wanted = []
        for name in names:
            if not isinstance(name, str) or not name.strip():
                raise ValidationError("Genre names must be non-empty strings")
            if name.strip() not in wanted:
                wanted.append(name.strip())
        if not wanted:
            return []

        rows = await self.session.execute(select(Genre).where(Genre.name.in_(wanted)))
        found = {g.name: g for g in rows.scalars()}
        missing = [n for n in wanted if n not in found]
        if missing:
            raise ValidationError(f"Unknown genre(s): {', '.join(missing)}")
        return [found[n] for n in wanted]

    # ---------- create / read ----------
    async def create(self, user_id: str, payload: Dict[str, Any]) -> MediaItem:
        title = _clean_title(payload.get("title"))
        media_type = _check_media_type(payload.get("media_type"))
        rating = _check_rating(payload.get("rating"))
        watched = _check_watched(payload.get("watched", False))
        genres = await self._resolve_genres(payload.get("genres") or [])

        now = _utcnow()
        item = MediaItem(
            user_id=user_id,
            title=title,
            media_type=media_type,
            note=payload.get("note"),
            reason=payload.get("reason"),
            rating=rating,
            watched=watched,
            watch_date=now if watched else None,
            created_at=now,
            updated_at=now,
        )
        item.genres = genres

        self.session.add(item)
        await self.session.commit()
        logger.info(f"Media item {item.id} created for user {user_id} ({media_type}: {title!r})")
        return await self.find_by_id(item.id, user_id)

    async def find_by_id(self, item_id: str, user_id: str) -> Optional[MediaItem]:
        result = await self.session.execute(
            self._owned(user_id)
            .where(MediaItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def list(self, user_id: str, filters: Optional[Dict[str, Any]] = None) -> List[MediaItem]:
        filters = filters or {}
        stmt = self._owned(user_id)

        if filters.get("media_type") is not None:
            stmt = stmt.where(MediaItem.media_type == _check_media_type(filters["media_type"]))
        if filters.get("watched") is not None:
            stmt = stmt.where(MediaItem.watched == _check_watched(filters["watched"]))
        if filters.get("rating") is not None:
            stmt = stmt.where(MediaItem.rating == _check_rating(filters["rating"]))

        sort_col = SORT_FIELDS.get(filters.get("sort_by") or DEFAULT_SORT, SORT_FIELDS[DEFAULT_SORT])
        sort_order = _sort_order(filters.get("sort_order"))
        primary = sort_col.asc() if sort_order is SortOrder.asc else sort_col.desc()

        # equal sort keys keep insertion order
        stmt = stmt.order_by(primary, MediaItem.created_at.asc())

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def search(self, user_id: str, query: str) -> List[MediaItem]:
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"

        stmt = (
            self._owned(user_id)
            .where(
                or_(
                    MediaItem.title.ilike(pattern, escape="\\"),
                    MediaItem.note.ilike(pattern, escape="\\"),
                    MediaItem.reason.ilike(pattern, escape="\\"),
                )
            )
            .order_by(MediaItem.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ---------- grouped view / stats ----------
    async def _category_counts(self, user_id: str) -> Dict[str, Dict[str, int]]:
        unrated = MediaItem.watched.is_(True) & or_(MediaItem.rating.is_(None), MediaItem.rating == 0)

        def _sum(cond):
            return func.coalesce(func.sum(case((cond, 1), else_=0)), 0)

        stmt = (
            select(
                MediaItem.media_type,
                _sum(MediaItem.watched.is_(True) & (MediaItem.rating == 3)).label("loved"),
                _sum(MediaItem.watched.is_(True) & (MediaItem.rating == 2)).label("liked"),
                _sum(MediaItem.watched.is_(True) & (MediaItem.rating == 1)).label("disliked"),
                _sum(MediaItem.watched.is_(False)).label("watchlist"),
                _sum(unrated).label("unrated"),
                func.count().label("total"),
            )
            .where(MediaItem.user_id == user_id)
            .group_by(MediaItem.media_type)
        )
        rows = (await self.session.execute(stmt)).mappings().all()
        return {
            row["media_type"]: {key: int(row[key]) for key in ("loved", "liked", "disliked", "watchlist", "unrated", "total")}
            for row in rows
        }

    async def group_by_category(self, user_id: str) -> Dict[str, Dict[str, Any]]:
        """
        Items of each media type split into loved / liked / disliked /
        watchlist / unrated, newest first, with per-type counts.

        Watched items rated 0 or not rated at all land in ``unrated``, so the
        buckets partition every type's items.
        """
        counts = await self._category_counts(user_id)

        grouped: Dict[str, Dict[str, Any]] = {}
        for media_type in MEDIA_TYPES:
            grouped[media_type] = {c.value: [] for c in Category}
            grouped[media_type]["counts"] = {
                **{c.value: 0 for c in Category},
                "total": 0,
                **counts.get(media_type, {}),
            }

        result = await self.session.execute(
            self._owned(user_id).order_by(MediaItem.created_at.desc())
        )
        for item in result.scalars():
            bucket = grouped.get(item.media_type)
            if bucket is None:
                logger.warning(f"Media item {item.id} has unknown media_type {item.media_type!r}")
                continue
            bucket[category_of(item).value].append(item)

        return grouped

    async def stats(self, user_id: str) -> Dict[str, int]:
        watched = MediaItem.watched.is_(True)

        def _sum(cond):
            return func.coalesce(func.sum(case((cond, 1), else_=0)), 0)

        stmt = select(
            func.count().label("total"),
            _sum(watched).label("watched_count"),
            _sum(MediaItem.watched.is_(False)).label("watchlist_count"),
            _sum(watched & (MediaItem.rating == 3)).label("loved_count"),
            _sum(watched & (MediaItem.rating == 2)).label("liked_count"),
            _sum(watched & (MediaItem.rating == 1)).label("disliked_count"),
            _sum(watched & or_(MediaItem.rating.is_(None), MediaItem.rating == 0)).label("unrated_watched_count"),
        ).where(MediaItem.user_id == user_id)

        row = (await self.session.execute(stmt)).mappings().one()
        return {key: int(value or 0) for key, value in row.items()}

    # ---------- mutations ----------
    def _normalize_patch(self, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Map external names to attributes and validate. Unknown keys are dropped."""
        changes: Dict[str, Any] = {}
        for key, value in patch.items():
            attr = UPDATE_FIELDS.get(key)
            if attr is None:
                logger.debug(f"Ignoring unknown media item field {key!r}")
                continue
            changes[attr] = value

        if "title" in changes:
            changes["title"] = _clean_title(changes["title"])
        if "media_type" in changes:
            changes["media_type"] = _check_media_type(changes["media_type"])
        if "rating" in changes:
            changes["rating"] = _check_rating(changes["rating"])
        if "watched" in changes:
            changes["watched"] = _check_watched(changes["watched"])
        if "genres" in changes and changes["genres"] is None:
            changes["genres"] = []
        if "watch_date" in changes and changes["watch_date"] is not None and not isinstance(changes["watch_date"], datetime):
            raise ValidationError("watch_date must be a datetime")
        return changes

    async def update(self, item_id: str, user_id: str, patch: Dict[str, Any]) -> Optional[MediaItem]:
        changes = self._normalize_patch(patch)
        genres = await self._resolve_genres(changes.pop("genres")) if "genres" in changes else None

        item = await self.find_by_id(item_id, user_id)
        if item is None:
            return None

        explicit_watch_date = changes.pop("watch_date", None)

        for attr, value in changes.items():
            setattr(item, attr, value)
        if genres is not None:
            item.genres = genres

        # watched=False never carries a watch date
        if item.watched:
            if explicit_watch_date is not None:
                item.watch_date = explicit_watch_date
            elif changes.get("watched") is True or item.watch_date is None:
                item.watch_date = _utcnow()
        else:
            item.watch_date = None

        item.updated_at = _utcnow()
        await self.session.commit()

        logger.info(f"Media item {item_id} updated ({', '.join(sorted(changes)) or 'no fields'})")
        return await self.find_by_id(item_id, user_id)

    async def mark_watched(self, item_id: str, user_id: str, rating: Any) -> Optional[MediaItem]:
        rating = _check_rating(rating, required=True)
        return await self.update(item_id, user_id, {"watched": True, "rating": rating})

    async def delete(self, item_id: str, user_id: str) -> bool:
        item = await self.find_by_id(item_id, user_id)
        if item is None:
            return False

        await self.session.delete(item)
        await self.session.commit()
        logger.info(f"Media item {item_id} deleted for user {user_id}")
        return True
