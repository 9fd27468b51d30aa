import secrets

from loguru import logger
from sqlalchemy import or_, select

from app.core import config
from app.core.db import Base, Store

# Import all models so SQLAlchemy registers them
from app.models.user import User
from app.models.media import MediaItem, media_genres
from app.models.reference import MediaTypeRef, RatingScale, Genre

MEDIA_TYPES = [
    ("movie", "Movie"),
    ("series", "Series"),
    ("game", "Game"),
]

RATING_SCALE = [
    (0, "Unrated", "No rating assigned yet"),
    (1, "Disliked", "Did not enjoy it"),
    (2, "Liked", "A positive experience"),
    (3, "Loved", "Excellent, highly recommended"),
]

GENRES = [
    "Action", "Adventure", "Comedy", "Drama", "Horror",
    "Science Fiction", "Fantasy", "Romance", "Thriller",
    "Documentary", "Animation", "Mystery",
]


async def init_db(store: Store, demo_user_id: str | None = None) -> None:
    logger.info("Creating database tables")
    async with store.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    await seed_reference_data(store)

    if demo_user_id:
        await ensure_demo_user(store, demo_user_id)


async def seed_reference_data(store: Store) -> None:
    async with store.session_factory() as session:
        existing_types = set((await session.execute(select(MediaTypeRef.name))).scalars())
        for name, display_name in MEDIA_TYPES:
            if name not in existing_types:
                session.add(MediaTypeRef(name=name, display_name=display_name))

        existing_values = set((await session.execute(select(RatingScale.value))).scalars())
        for value, label, description in RATING_SCALE:
            if value not in existing_values:
                session.add(RatingScale(value=value, label=label, description=description))

        existing_genres = set((await session.execute(select(Genre.name))).scalars())
        for name in GENRES:
            if name not in existing_genres:
                session.add(Genre(name=name))

        await session.commit()

    logger.info("Reference data seeded")


async def ensure_demo_user(
    store: Store,
    demo_user_id: str,
    username: str = config.DEMO_USERNAME,
    email: str = config.DEMO_EMAIL,
) -> None:
    from app.core.security import hash_password

    async with store.session_factory() as session:
        if await session.get(User, demo_user_id) is not None:
            return

        taken = (
            await session.execute(
                select(User.id).where(or_(User.username == username, User.email == email)).limit(1)
            )
        ).first()
        if taken is not None:
            # a real account already holds the demo name; derive one from the id
            logger.warning(f"Demo username {username!r} or email {email!r} is taken, using {demo_user_id!r}")
            username, email = demo_user_id, f"{demo_user_id}@demo.local"

        # random password: the demo account is only reachable through demo-login
        session.add(
            User(
                id=demo_user_id,
                username=username,
                email=email,
                password_hash=hash_password(secrets.token_urlsafe(32)),
            )
        )
        await session.commit()

    logger.info(f"Demo user {demo_user_id} created ({username})")
