"""FastAPI application entry point for Voice Chat"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from voice_chat.api.procedures import router as procedures_router
from voice_chat.core.config import settings
from voice_chat.core.errors import (
    DataCorruptionError,
    NotFoundError,
    StorageUnavailableError,
)
from voice_chat.core.logging import configure_logging, get_logger
from voice_chat.db import init_db
from voice_chat.db.models import utc_now

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager for startup/shutdown."""
    configure_logging()
    init_db()
    logger.info("database_initialized", path=str(settings.database_path))
    yield


app = FastAPI(
    title="Voice Chat API",
    description="Persistence for voice/text chat sessions, messages and recordings",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)

app.include_router(procedures_router)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageUnavailableError)
async def storage_unavailable_handler(
    request: Request, exc: StorageUnavailableError
) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(DataCorruptionError)
async def data_corruption_handler(
    request: Request, exc: DataCorruptionError
) -> JSONResponse:
    # Not caller-facing; details stay in the log
    logger.error("data_corruption", path=request.url.path, field=exc.field)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/api/v1/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        dict with status "ok" and the current server time.
    """
    return {"status": "ok", "timestamp": utc_now().isoformat()}


def main() -> None:
    """Run the API server with uvicorn."""
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
