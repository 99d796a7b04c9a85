"""
FastAPI application for the agent arena backend.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agentarena import __version__
from agentarena.db import init_db, Repository
from agentarena.errors import ArenaError
from .routes import router as api_router, get_db_session
from .schemas import ErrorResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Lifespan context manager for FastAPI app.

    Initializes the database on startup; a missing DATABASE_URL aborts startup.
    """
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized successfully")

    yield

    logger.info("Shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Agent Arena API",
    description="REST API for the agent arena - games, turns, settlements and users",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router)


@app.exception_handler(ArenaError)
async def arena_error_handler(request: Request, exc: ArenaError) -> JSONResponse:
    """Translate arena errors into {success: false, error: ...}."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc)).model_dump(),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Any other failure still answers with the error envelope."""
    logger.exception("%s %s crashed", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Internal server error").model_dump(),
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Agent Arena API",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check(session: Session = Depends(get_db_session)):
    """
    Health check endpoint.

    Verifies database connectivity and returns system status.
    """
    try:
        session.execute(text("SELECT 1"))
        repo = Repository(session)
        return {
            "status": "healthy",
            "database": "connected",
            "users": len(repo.get_users()),
            "games_in_progress": repo.count_games(finished=False),
        }
    except SQLAlchemyError as e:
        # Still 200 so monitoring knows the endpoint itself works
        return {
            "status": "unhealthy",
            "database": "error",
            "error": str(e),
        }
