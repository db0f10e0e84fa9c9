from fastapi import FastAPI
from contextlib import asynccontextmanager
from app.core.config import settings
from app.core.db.base import engine
from app.core.logging import get_logger, setup_logging
from app.apis.auth.main import router as auth_router
from app.apis.errors import register_exception_handlers
from app.apis.flashcards.main import router as flashcards_router
from app.apis.generations.main import router as generations_router

import uvicorn
from fastapi.middleware.cors import CORSMiddleware


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s (%s)", settings.app.name, settings.app.version)
    try:
        yield
    finally:
        await engine.dispose()


def create_app() -> FastAPI:
    setup_logging(settings.app.log_level)

    app = FastAPI(
        title=settings.app.name, version=settings.app.version, lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(generations_router)
    app.include_router(flashcards_router)

    @app.get("/")
    async def root():
        return {
            "status": "ok",
            "app": settings.app.name,
            "version": settings.app.version,
        }

    return app


app = create_app()


if __name__ == "__main__":
    try:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.app.port,
            reload=not settings.app.is_production,
        )
    except Exception as e:
        logger.error("An error occurred when starting the server: %s", e)
