from fastapi import APIRouter, Depends, Request, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import TokenIdentity, create_access_token, get_current_user
from app.core.config import MIN_PASSWORD_LENGTH
from app.core.db import get_db
from app.core.errors import AuthError, InternalError, NotFoundError, ValidationError
from app.repositories.user import UserRepository
from app.schemas.user import LoginRequest, ProfileUpdateRequest, RegisterRequest, UserOut

router = APIRouter(prefix="/auth", tags=["auth"])


def get_user_repo(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def _session_payload(user) -> dict:
    return {"user": UserOut.model_validate(user), "token": create_access_token(user)}


# ------------------------------------------------------------------
# Public
# ------------------------------------------------------------------

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    repo: UserRepository = Depends(get_user_repo),
):
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    user = await repo.create(payload.username, payload.email, payload.password)
    return {"success": True, "data": _session_payload(user)}


@router.post("/login")
async def login(
    payload: LoginRequest,
    repo: UserRepository = Depends(get_user_repo),
):
    user = await repo.validate_credentials(payload.username, payload.password)
    if user is None:
        raise AuthError("Invalid credentials")

    logger.info(f"User {user.id} logged in")
    return {"success": True, "data": _session_payload(user)}


@router.post("/logout")
async def logout():
    # tokens are stateless; the client drops its copy
    return {"success": True, "message": "Logged out successfully"}


@router.post("/demo-login")
async def demo_login(
    request: Request,
    repo: UserRepository = Depends(get_user_repo),
):
    if not request.app.state.demo_mode:
        raise NotFoundError("Demo mode is disabled")

    user = await repo.find_by_id(request.app.state.demo_user_id)
    if user is None:
        raise InternalError("Demo user is not seeded")
    return {"success": True, "data": _session_payload(user)}


# ------------------------------------------------------------------
# Current user
# ------------------------------------------------------------------

@router.get("/me")
async def get_profile(
    identity: TokenIdentity = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repo),
):
    user = await repo.find_by_id(identity.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return {"success": True, "data": UserOut.model_validate(user)}


@router.put("/me")
async def update_profile(
    payload: ProfileUpdateRequest,
    identity: TokenIdentity = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repo),
):
    user = await repo.update(identity.user_id, payload.model_dump(exclude_unset=True))
    if user is None:
        raise NotFoundError("User not found")
    return {"success": True, "data": UserOut.model_validate(user)}


@router.delete("/me")
async def delete_account(
    identity: TokenIdentity = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repo),
):
    if not await repo.delete(identity.user_id):
        raise NotFoundError("User not found")
    return {"success": True, "message": "Account deleted"}
