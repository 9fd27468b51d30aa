from fastapi import APIRouter

from app.api.routes import auth
from app.api.routes import media
from app.api.routes import reference

api_router = APIRouter(prefix="/api")

api_router.include_router(auth.router)
api_router.include_router(media.router)
api_router.include_router(reference.router)
