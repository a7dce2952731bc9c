"""
PeakPerform API entry point.

Run with: uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.routes import auth, chat, documents, flashcards, generation, progress, quizzes
from app.config import get_settings, sanitize_error

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

ROUTERS = (
    auth.router,
    generation.router,
    documents.router,
    flashcards.router,
    quizzes.router,
    progress.router,
    chat.router,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is not configured; generation endpoints will fail")
    yield


app = FastAPI(
    title=settings.app_name,
    description="AI study, health, and wellness assistant API",
    version="0.1.0",
    lifespan=lifespan,
)

# Pre-flights are answered for any origin with a fixed header list
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=settings.cors_allow_headers,
)

for router in ROUTERS:
    app.include_router(router)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s: %s", request.method, request.url.path, str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": sanitize_error(exc, generic_message="A database error occurred.")},
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
