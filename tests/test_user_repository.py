import pytest
from sqlalchemy import func, select

from app.core.errors import ConflictError, ValidationError
from app.core.init_db import ensure_demo_user
from app.models.media import MediaItem, media_genres
from app.repositories.media import MediaItemRepository

pytestmark = pytest.mark.anyio


async def test_create_hashes_password(user_repo):
    user = await user_repo.create("carol", "carol@example.com", "hunter22")

    assert user.id
    assert user.password_hash != "hunter22"
    assert user.password_hash.startswith("$2")
    assert user.avatar_url is None


async def test_create_uses_per_record_salt(user_repo):
    a = await user_repo.create("u1", "u1@example.com", "same-password")
    b = await user_repo.create("u2", "u2@example.com", "same-password")

    assert a.password_hash != b.password_hash


@pytest.mark.parametrize(
    "username, email",
    [
        ("alice", "new@example.com"),
        ("someone", "alice@example.com"),
    ],
)
async def test_create_conflicts_on_taken_username_or_email(user_repo, alice, username, email):
    with pytest.raises(ConflictError):
        await user_repo.create(username, email, "secret1")


@pytest.mark.parametrize(
    "username, email",
    [
        ("   ", "carol@example.com"),
        ("", "carol@example.com"),
        ("carol", "  "),
    ],
)
async def test_create_rejects_blank_username_or_email(user_repo, username, email):
    with pytest.raises(ValidationError):
        await user_repo.create(username, email, "secret1")

    assert await user_repo.find_by_username("") is None


async def test_create_strips_username_and_email(user_repo):
    user = await user_repo.create("  carol ", " carol@example.com ", "secret1")

    assert user.username == "carol"
    assert user.email == "carol@example.com"


async def test_demo_user_avoids_taken_username(store, user_repo):
    await user_repo.create("demo", "demo@example.com", "secret1")

    await ensure_demo_user(store, "demo-user-001")

    demo = await user_repo.find_by_id("demo-user-001")
    assert demo is not None
    assert demo.username == "demo-user-001"
    assert (await user_repo.find_by_username("demo")).id != "demo-user-001"

    # second start is a no-op
    await ensure_demo_user(store, "demo-user-001")


async def test_finders(user_repo, alice):
    assert (await user_repo.find_by_id(alice.id)).username == "alice"
    assert (await user_repo.find_by_username("alice")).id == alice.id
    assert (await user_repo.find_by_email("alice@example.com")).id == alice.id

    assert await user_repo.find_by_id("nope") is None
    assert await user_repo.find_by_username("nobody") is None
    assert await user_repo.find_by_email("nobody@example.com") is None


async def test_validate_credentials(user_repo, alice):
    assert (await user_repo.validate_credentials("alice", "secret1")).id == alice.id
    assert await user_repo.validate_credentials("alice", "wrong-password") is None
    assert await user_repo.validate_credentials("nobody", "secret1") is None


async def test_update_applies_whitelisted_fields(user_repo, alice):
    updated = await user_repo.update(
        alice.id,
        {"avatarUrl": "https://img.example.com/a.png", "email": "alice@new.example.com", "password_hash": "x"},
    )

    assert updated.avatar_url == "https://img.example.com/a.png"
    assert updated.email == "alice@new.example.com"
    assert updated.password_hash != "x"


async def test_update_conflicts_with_other_user(user_repo, alice, bob):
    with pytest.raises(ConflictError):
        await user_repo.update(alice.id, {"username": "bob"})

    # keeping your own username is not a conflict
    same = await user_repo.update(alice.id, {"username": "alice"})
    assert same.username == "alice"


async def test_update_rejects_blank_username(user_repo, alice):
    with pytest.raises(ValidationError):
        await user_repo.update(alice.id, {"username": "  "})


async def test_update_missing_user(user_repo):
    assert await user_repo.update("missing", {"username": "x"}) is None


async def test_delete_removes_owned_media_and_genre_links(session, user_repo, alice, bob):
    media_repo = MediaItemRepository(session)
    await media_repo.create(alice.id, {"title": "Alien", "media_type": "movie", "genres": ["Horror"]})
    await media_repo.create(alice.id, {"title": "Andor", "media_type": "series"})
    kept = await media_repo.create(bob.id, {"title": "Heat", "media_type": "movie", "genres": ["Thriller"]})

    assert await user_repo.delete(alice.id) is True
    assert await user_repo.find_by_id(alice.id) is None

    remaining = (await session.execute(select(MediaItem.id))).scalars().all()
    assert remaining == [kept.id]
    links = await session.scalar(select(func.count()).select_from(media_genres))
    assert links == 1

    assert await user_repo.delete(alice.id) is False
