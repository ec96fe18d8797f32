"""
launchcache API

Admin surface for the disk-backed stale-while-revalidate cache.
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from launchcache.config import get_settings
from launchcache.routers import cache
from launchcache.services.http_client import close_shared_client

logger = logging.getLogger(__name__)

settings = get_settings()

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: close the shared HTTP client on shutdown."""
    yield
    await close_shared_client()


app = FastAPI(
    title="launchcache API",
    description="Disk-backed stale-while-revalidate cache for launcher plugins",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cache.router, prefix="/api/launchcache")


def _check_cache_dir(cache_dir: Path) -> str:
    """The cache dir is created lazily, so check the nearest existing ancestor."""
    candidate = cache_dir
    while not candidate.exists() and candidate != candidate.parent:
        candidate = candidate.parent
    if candidate.is_dir() and os.access(candidate, os.W_OK):
        return "ok"
    return "fail"


@app.get("/api/launchcache/health")
async def health_check() -> JSONResponse:
    """Health check verifying the cache directory is writable."""
    checks = {"cache_dir": _check_cache_dir(get_settings().cache_dir)}
    failed = [k for k, v in checks.items() if v != "ok"]
    if failed:
        logger.warning("Health check degraded, failed: %s", ", ".join(failed))

    result: dict[str, Any] = {
        "status": "degraded" if failed else "ok",
        "service": "launchcache-api",
        "version": VERSION,
        "checks": checks,
    }
    return JSONResponse(content=result, status_code=200)
