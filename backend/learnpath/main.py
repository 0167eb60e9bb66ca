"""
LearnPath FastAPI Application Entry Point.

Run with: uvicorn learnpath.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from learnpath.api.deps import OptionalUser, get_llm_client
from learnpath.api.routes import auth, personality, topics
from learnpath.config import get_settings, sanitize_error
from learnpath.db.seed import seed_personality_questions
from learnpath.db.session import document_store, engine
from learnpath.db.store import DocumentStoreError
from learnpath.exceptions import LearnPathError, UpstreamError
from learnpath.schemas.auth import HealthResponse

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(levelname)s:\t%(name)s\t%(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown."""
    # Startup
    if settings.seed_personality_questions:
        await seed_personality_questions(document_store)
    logger.info("Starting %s (%s)", settings.app_name, settings.environment)
    yield
    # Shutdown
    if get_llm_client.cache_info().currsize:
        await get_llm_client().aclose()
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Topic learning surveys with AI-generated questions and subtopics",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# Global exception handlers
def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(LearnPathError)
async def learnpath_exception_handler(request: Request, exc: LearnPathError) -> JSONResponse:
    """Map application errors to their status; upstream details stay out of production responses."""
    if isinstance(exc, UpstreamError):
        logger.error("Upstream failure on %s %s: %s", request.method, request.url.path, exc.message)
        return _error_response(exc.status_code, sanitize_error(exc, generic_message=exc.default_message))
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(DocumentStoreError)
async def store_exception_handler(request: Request, exc: DocumentStoreError) -> JSONResponse:
    logger.exception("Document store failure on %s %s", request.method, request.url.path)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        sanitize_error(exc, generic_message="Database operation failed"),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or malformed body fields are a 400, like any other validation failure."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        sanitize_error(exc, generic_message="Internal server error"),
    )


# Include routers
app.include_router(auth.router)
app.include_router(personality.router)
app.include_router(topics.router)


@app.get("/api/health", response_model=HealthResponse)
async def health_check(current_user: OptionalUser) -> HealthResponse:
    """Health check endpoint; also reports whether the caller has a live session."""
    return HealthResponse(
        status="ok",
        session=current_user is not None,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
