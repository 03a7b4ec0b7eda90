"""Main FastAPI application."""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docsign.api import api_router
from docsign.api.errors import signing_error_handler
from docsign.core.config import get_settings
from docsign.core.logging import configure_logging, get_logger
from docsign.models import init_db
from docsign.schemas import ErrorResponse
from docsign.services.errors import SigningError

settings = get_settings()
configure_logging(settings.log_level)
LOGGER = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    await init_db()

    storage_path = Path(settings.storage_path)
    storage_path.mkdir(parents=True, exist_ok=True)
    LOGGER.info(
        "Started",
        extra={"database_url": settings.database_url, "storage_path": str(storage_path)},
    )

    yield

    LOGGER.info("Shutting down")


app = FastAPI(
    title=settings.app_name,
    description="Document signing workflow service",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(SigningError, signing_error_handler)

app.include_router(
    api_router,
    prefix=settings.api_v1_prefix,
    responses={
        code: {"model": ErrorResponse} for code in (400, 403, 404, 409)
    },
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


@app.get("/")
async def root():
    return {
        "app": settings.app_name,
        "version": "0.1.0",
        "docs": "/docs",
    }
