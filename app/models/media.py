import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.user import utcnow


media_genres = Table(
    "media_genres",
    Base.metadata,
    Column("media_id", String(36), ForeignKey("media_items.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", Integer, ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
)


class MediaItem(Base):
    __tablename__ = "media_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    title = Column(String, nullable=False)
    media_type = Column(String, nullable=False)  # movie | series | game
    note = Column(Text, nullable=True)
    reason = Column(Text, nullable=True)

    # 0 unrated, 1 disliked, 2 liked, 3 loved; NULL = never rated
    rating = Column(Integer, nullable=True)
    watched = Column(Boolean, nullable=False, default=False)
    watch_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="media_items")
    genres = relationship("Genre", secondary=media_genres, lazy="selectin", order_by="Genre.name")

    __table_args__ = (
        CheckConstraint("media_type IN ('movie', 'series', 'game')", name="media_items_type_check"),
        CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 3)", name="media_items_rating_check"),
        CheckConstraint("watched OR watch_date IS NULL", name="media_items_watch_date_check"),
        Index("idx_media_user_id", "user_id"),
        Index("idx_media_user_type", "user_id", "media_type"),
        Index("idx_media_user_watched", "user_id", "watched"),
        Index("idx_media_user_rating", "user_id", "rating"),
        Index("idx_media_created_at", "created_at"),
    )

    @property
    def genre_names(self) -> list[str]:
        return [g.name for g in self.genres]
