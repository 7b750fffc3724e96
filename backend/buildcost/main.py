"""
Main FastAPI application.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from buildcost.config import settings
from buildcost.database import create_tables
from buildcost.errors import BuildCostError
from buildcost.logging_config import setup_logging
from buildcost.routes import catalog, configurations

logger = logging.getLogger(__name__)


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown events."""
    setup_logging()
    logger.info("Creating database tables...")
    await create_tables()
    logger.info("Database ready, server started")

    yield

    logger.info("Server shutting down...")


# Create FastAPI app
app = FastAPI(
    title="BuildCost API",
    description="PC component catalog and build configuration pricing",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(catalog.router, prefix=settings.API_PREFIX)
app.include_router(configurations.router, prefix=settings.API_PREFIX)


@app.exception_handler(BuildCostError)
async def handle_expected_error(request: Request, exc: BuildCostError) -> JSONResponse:
    """Expected errors go back to the client verbatim."""
    logger.info(f"[API] {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "fail", "message": exc.message},
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is logged in full and reported without internals."""
    logger.exception(f"[API] Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "Something went wrong"},
    )


@app.get("/")
async def root() -> dict:
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "BuildCost API",
        "version": "1.0.0",
    }


@app.get("/api/health")
async def health_check() -> dict:
    """Detailed health check."""
    return {"status": "healthy", "database": "connected"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "buildcost.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG
    )
