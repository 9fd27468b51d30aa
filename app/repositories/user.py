from datetime import datetime, timezone
from typing import Any, Dict, Optional

from loguru import logger
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, ValidationError
from app.core.security import hash_password, verify_password
from app.models.media import MediaItem, media_genres
from app.models.user import User


# external field name -> User attribute
PROFILE_FIELDS = {
    "username": "username",
    "email": "email",
    "avatar_url": "avatar_url",
    "avatarUrl": "avatar_url",
}

DUPLICATE_MESSAGE = "Username or email already exists"


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _taken(self, username: str | None, email: str | None, exclude_id: str | None = None) -> bool:
        conds = []
        if username is not None:
            conds.append(User.username == username)
        if email is not None:
            conds.append(User.email == email)
        if not conds:
            return False

        stmt = select(User.id).where(or_(*conds))
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return (await self.session.execute(stmt.limit(1))).first() is not None

    async def create(self, username: str, email: str, password: str) -> User:
        username, email = (username or "").strip(), (email or "").strip()
        if not username:
            raise ValidationError("username cannot be empty")
        if not email:
            raise ValidationError("email cannot be empty")

        if await self._taken(username, email):
            logger.info(f"Registration conflict for username={username!r} email={email!r}")
            raise ConflictError(DUPLICATE_MESSAGE)

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError(DUPLICATE_MESSAGE)

        logger.info(f"User {user.id} registered ({username})")
        return user

    async def find_by_id(self, user_id: str) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def find_by_username(self, username: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalars().first()

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def validate_credentials(self, username: str, password: str) -> Optional[User]:
        user = await self.find_by_username(username)
        if not verify_password(password, user.password_hash if user else None):
            logger.info(f"Failed login for username={username!r}")
            return None
        return user

    async def update(self, user_id: str, patch: Dict[str, Any]) -> Optional[User]:
        changes = {PROFILE_FIELDS[k]: v for k, v in patch.items() if k in PROFILE_FIELDS}
        for attr in ("username", "email"):
            if attr in changes and (not isinstance(changes[attr], str) or not changes[attr].strip()):
                raise ValidationError(f"{attr} cannot be empty")

        user = await self.find_by_id(user_id)
        if user is None:
            return None
        if not changes:
            return user

        if await self._taken(changes.get("username"), changes.get("email"), exclude_id=user_id):
            raise ConflictError(DUPLICATE_MESSAGE)

        for attr, value in changes.items():
            setattr(user, attr, value)
        user.updated_at = datetime.now(timezone.utc)

        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError(DUPLICATE_MESSAGE)

        logger.info(f"User {user_id} updated ({', '.join(sorted(changes))})")
        return user

    async def delete(self, user_id: str) -> bool:
        """Delete a user along with every media item they own and its genre links."""
        user = await self.find_by_id(user_id)
        if user is None:
            return False

        owned = select(MediaItem.id).where(MediaItem.user_id == user_id)
        await self.session.execute(delete(media_genres).where(media_genres.c.media_id.in_(owned)))
        await self.session.execute(delete(MediaItem).where(MediaItem.user_id == user_id))
        await self.session.execute(delete(User).where(User.id == user_id))
        await self.session.commit()

        logger.info(f"User {user_id} deleted with owned media items")
        return True
