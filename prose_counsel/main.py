"""
ProSe Counsel - FastAPI Application
Case management and AI-assisted document review for self-represented litigants.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prose_counsel.core.config import get_settings
from prose_counsel.core.database import close_db, init_db
from prose_counsel.core.errors import setup_exception_handlers
from prose_counsel.core.logging_middleware import RequestLoggingMiddleware
from prose_counsel.routers import cases, chat, deadlines, documents, health, learning
from prose_counsel.services.stores import reset_storage

logger = logging.getLogger(__name__)


# =============================================================================
# Logging Setup
# =============================================================================

def setup_logging():
    """Configure logging based on settings."""
    from prose_counsel.core.logging_config import setup_logging as configure_logging
    settings = get_settings()
    configure_logging(
        level=settings.log_level.upper(),
        json_format=settings.log_json_format,
        log_file=Path(settings.log_file) if settings.log_file else None,
    )


# =============================================================================
# Lifespan (Startup/Shutdown)
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    await init_db()
    logger.info("Database ready")

    if not settings.ai_configured:
        logger.warning("OPENAI_API_KEY is not set; analysis, guidance and generation will return 503")

    yield

    await close_db()
    reset_storage()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """
    Application factory.
    Creates and configures the FastAPI application.
    """
    settings = get_settings()
    setup_logging()

    tags_metadata = [
        {"name": "Health", "description": "Liveness check."},
        {"name": "Cases", "description": "Legal matters: parties, jurisdiction and status."},
        {"name": "Documents", "description": "Upload, AI review, compliance checks and drafting."},
        {"name": "Deadlines", "description": "Filing and hearing dates, with a 30-day upcoming view."},
        {"name": "Chat", "description": "Legal guidance conversations, per case or general."},
        {"name": "Learning", "description": "Pattern summaries saved from complaint reviews."},
    ]

    app = FastAPI(
        title=settings.app_name,
        description=f"""{settings.app_description}

## Error Responses
All errors return JSON `{{"error": "...", "details": ...}}`.
""",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.enable_docs else None,
        redoc_url="/api/redoc" if settings.enable_docs else None,
        openapi_url="/api/openapi.json" if settings.enable_docs else None,
        openapi_tags=tags_metadata,
    )

    # =========================================================================
    # Middleware (order matters - first added = last to run)
    # =========================================================================
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Exception Handlers
    # =========================================================================
    setup_exception_handlers(app)

    # =========================================================================
    # Register Routers
    # =========================================================================
    app.include_router(health.router)
    app.include_router(cases.router)
    app.include_router(documents.router)
    app.include_router(deadlines.router)
    app.include_router(chat.router)
    app.include_router(learning.router)

    return app


app = create_app()
