import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth import router as auth_router
from core import db, schema, settings
from core.log import configure_logging
from media import router as media_router
from videos import router as videos_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Reads DATABASE_URL now; a missing value aborts startup. The pool itself
    # is opened on the first request that needs it.
    cache = db.ConnectionCache.from_env(
        setup=schema.ensure_schema if schema.auto_schema_enabled() else None,
    )
    app.state.connection_cache = cache
    try:
        yield
    finally:
        await cache.close()


async def _connection_failed_handler(_: Request, exc: db.ConnectionFailed) -> JSONResponse:
    logger.error("db_unavailable error=%s", exc)
    return JSONResponse(status_code=500, content={"detail": "Database unavailable."})


def create_app() -> FastAPI:
    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.env_list("CORS_ORIGINS", ["http://localhost:3000"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(db.ConnectionFailed, _connection_failed_handler)

    app.include_router(auth_router.router, tags=["auth"])
    app.include_router(videos_router.router, tags=["videos"])
    app.include_router(media_router.router, tags=["media"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/")
    def root() -> dict:
        return {"message": "reelhub api"}

    return app


app = create_app()
