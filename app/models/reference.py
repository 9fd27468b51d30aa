from sqlalchemy import Column, Integer, String, CheckConstraint

from app.core.db import Base


class MediaTypeRef(Base):
    __tablename__ = "media_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(
        String,
        CheckConstraint("name IN ('movie', 'series', 'game')", name="media_types_name_check"),
        unique=True,
        nullable=False,
    )
    display_name = Column(String, nullable=False)


class RatingScale(Base):
    __tablename__ = "rating_scale"

    id = Column(Integer, primary_key=True, autoincrement=True)
    value = Column(
        Integer,
        CheckConstraint("value >= 0 AND value <= 3", name="rating_scale_value_check"),
        unique=True,
        nullable=False,
    )
    label = Column(String, nullable=False)
    description = Column(String, nullable=True)


class Genre(Base):
    __tablename__ = "genres"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
