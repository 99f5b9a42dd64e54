"""
Custom exception classes

Every error raised by the stores, the text extractor, the AI client and the
intake pipeline derives from ProSeError. The HTTP layer renders them as
{"error": ..., "details": ...} with the class status code.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProSeError(Exception):
    """Base class for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.stage = stage

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"error": self.message}
        details = self.details
        if self.stage:
            if details is None:
                details = {"stage": self.stage}
            elif isinstance(details, dict):
                details = {**details, "stage": self.stage}
            else:
                details = {"stage": self.stage, "reason": details}
        if details is not None:
            body["details"] = details
        return body


class ValidationError(ProSeError):
    """Missing or malformed required fields"""
    status_code = 400


class NotFound(ProSeError):
    """Referenced case, document or deadline does not exist"""
    status_code = 404


class UnsupportedMediaType(ProSeError):
    """Uploaded file is not TXT, PDF or DOCX"""
    status_code = 400


class ExtractionFailed(ProSeError):
    """The PDF or DOCX parser raised while reading the file"""
    status_code = 400


class EmptyContent(ProSeError):
    """Extraction produced only whitespace"""
    status_code = 400


class AnalysisUnavailable(ProSeError):
    """Language-model call failed or returned unparseable output"""
    status_code = 503


class PersistenceError(ProSeError):
    """Backing-store fault"""
    status_code = 500


async def best_effort(label: str, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> Optional[T]:
    """
    Await fn(*args, **kwargs) and return its result, or None if it raises.

    Used for the optional AI steps of the intake pipeline: a document record
    with missing AI insight is preferred over no record at all.
    """
    try:
        return await fn(*args, **kwargs)
    except Exception as e:
        logger.warning("%s failed, continuing without it: %s", label, e, exc_info=True)
        return None


# =============================================================================
# FastAPI Exception Handlers
# =============================================================================

def setup_exception_handlers(app: FastAPI) -> None:
    """Render every error as {"error": ..., "details"?: ...}."""

    @app.exception_handler(ProSeError)
    async def prose_error_handler(request: Request, exc: ProSeError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
