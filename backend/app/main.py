"""
GEO Tracker API
Tracks how AI answer engines mention, rank and cite a brand
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import AI_ENGINES, IMPLEMENTED_ENGINES, get_settings
from app.utils import close_db, init_db

logger = logging.getLogger(__name__)

API_DESCRIPTION = """
Ask AI engines the questions your customers ask, then measure whether and
how your brand shows up in the answers.

- **Tracking**: run a brand's prompts on ChatGPT; each prompt and engine pair is recorded as a run
- **Citations**: brand mentions, source URLs and other brands named in each answer
- **Scoring**: weighted 0-100 visibility score with interpretation and trend
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    await init_db()
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set; ChatGPT tracking runs will fail")
    logger.info(f"{settings.APP_NAME} started ({settings.APP_ENV})")
    yield
    await close_db()


def engine_status() -> dict:
    """Which catalogued engines can actually be tracked right now"""
    has_key = bool(get_settings().OPENAI_API_KEY)
    return {
        engine: {
            "name": name,
            "implemented": engine in IMPLEMENTED_ENGINES,
            "configured": engine in IMPLEMENTED_ENGINES and has_key,
        }
        for engine, name in AI_ENGINES.items()
    }


def create_app() -> FastAPI:
    """Build the FastAPI application"""
    settings = get_settings()

    application = FastAPI(
        title="GEO Tracker API",
        description=API_DESCRIPTION,
        version=settings.API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc" if settings.is_development else None,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        content = {"detail": "Internal server error"}
        if get_settings().DEBUG:
            content = {"detail": str(exc), "type": type(exc).__name__}
        return JSONResponse(status_code=500, content=content)

    from app.api.routes import api_router
    application.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

    @application.get("/health")
    async def health_check():
        current = get_settings()
        return {
            "status": "healthy",
            "version": current.API_VERSION,
            "environment": current.APP_ENV,
            "engines": engine_status(),
        }

    @application.get("/")
    async def root():
        current = get_settings()
        return {
            "name": current.APP_NAME,
            "version": current.API_VERSION,
            "docs": "/docs",
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        workers=1 if settings.is_development else settings.WORKERS,
    )
