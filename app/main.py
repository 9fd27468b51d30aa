import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from loguru import logger

from app.core import config
from app.core.logging import setup_logging
from app.core.db import Store
from app.core.errors import register_exception_handlers
from app.api.router import api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    store: Store = app.state.store
    logger.info("Starting Media Tracker backend")
    demo_user_id = app.state.demo_user_id if app.state.demo_mode else None
    await store.init(demo_user_id=demo_user_id)
    try:
        yield
    finally:
        await store.dispose()
        logger.info("Media Tracker backend stopped")


def create_app(
    database_url: str | None = None,
    demo_mode: bool | None = None,
) -> FastAPI:
    setup_logging()

    app = FastAPI(
        title="Media Tracker Backend",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.store = Store(database_url or config.DATABASE_URL)
    app.state.demo_mode = config.DEMO_MODE if demo_mode is None else demo_mode
    app.state.demo_user_id = config.DEMO_USER_ID

    register_exception_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response

    # All API routes (auth, media, reference)
    app.include_router(api_router)

    @app.get("/health")
    def health():
        logger.debug("Health check hit")
        return {"status": "ok"}

    return app


app = create_app()


@logger.catch(reraise=True)
def run() -> None:
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
