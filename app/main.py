"""FastAPI application factory and entry point for LinkShelf."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes.comments import router as comments_router
from app.api.routes.curations import router as curations_router
from app.api.routes.images import router as images_router
from app.api.routes.links import router as links_router
from app.api.routes.members import router as members_router
from app.api.routes.playlists import router as playlists_router
from app.api.schemas import RsData
from app.cache import close_redis
from app.config import settings
from app.database import async_session_factory
from app.init_data import seed_initial_data

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown events."""
    logger.info("LinkShelf starting up...")
    logger.info("Storage backend: %s", settings.storage_backend.value)
    logger.info(
        "Recommendations: top_n=%d, cache ttl=%ds",
        settings.recommendation_top_n,
        settings.recommendation_cache_ttl_seconds,
    )
    if settings.seed_data:
        async with async_session_factory() as session:
            await seed_initial_data(session)
            await session.commit()
    yield
    await close_redis()
    logger.info("LinkShelf shutting down...")


def _envelope(status_code: int, code: str, msg: str, data=None) -> JSONResponse:
    body = RsData(code=code, msg=msg, data=data)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = getattr(exc, "result_code", None) or f"{exc.status_code}-1"
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return _envelope(exc.status_code, code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    msg = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'][1:]) or err['loc'][0]}: {err['msg']}"
        for err in errors
    )
    return _envelope(400, "400-1", msg or "Invalid request")


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="LinkShelf",
        description="Link curations, playlists and ranking-based recommendations",
        version="1.0.0",
        lifespan=lifespan,
    )

    # ── Middleware ──────────────────────────────────
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Errors ─────────────────────────────────────
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)

    # ── Routes ─────────────────────────────────────
    application.include_router(members_router)
    application.include_router(links_router)
    application.include_router(curations_router)
    application.include_router(comments_router)
    application.include_router(images_router)
    application.include_router(playlists_router)

    # ── Health Check ───────────────────────────────
    @application.get("/health", tags=["System"])
    async def health() -> dict[str, str]:
        return {"status": "healthy", "service": "linkshelf"}

    return application


app = create_app()
