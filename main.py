"""
Entry point for the SER reference engine API server.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from api.routes import router
from config import settings
from database import connection_test, init_database, init_db, dispose_database
from store import client as store_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
log = logging.getLogger(__name__)

_backend_ready = False
_backend_status: Dict[str, str] = {}


async def _check_backends() -> None:
    global _backend_ready, _backend_status

    await store_client.get_redis()
    _backend_status["store"] = "fallback" if store_client.is_using_fallback() else "redis"
    if settings.database_url:
        ok = await asyncio.to_thread(connection_test)
        _backend_status["database"] = "ready" if ok else "failed"
    else:
        _backend_status["database"] = "disabled"

    if _backend_status["store"] == "fallback":
        log.warning("Reference models are held in memory only; they will not survive a restart")
    _backend_ready = True
    log.info("Backend check done: %s", _backend_status)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.database_url:
        init_database(settings.database_url)
        init_db()

    readiness_task = asyncio.create_task(_check_backends())
    try:
        yield
    finally:
        readiness_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await readiness_task
        dispose_database()


app = FastAPI(
    title="SER Reference Engine",
    description="Reference fuel-consumption models per vehicle class and year, and anomaly detection against them.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


@app.get("/api/v1/ready", tags=["health"], summary="Backend readiness check")
async def ready() -> JSONResponse:
    code = 200 if _backend_ready else 503
    return JSONResponse(
        status_code=code,
        content={"ready": _backend_ready, "backends": _backend_status},
    )


if __name__ == "__main__":
    uvicorn_kwargs = {
        "host": "0.0.0.0",
        "port": 4322,
        "log_level": "info",
        "access_log": True,
    }
    if settings.ssl_enabled:
        uvicorn_kwargs["ssl_certfile"] = settings.ssl_certfile
        uvicorn_kwargs["ssl_keyfile"] = settings.ssl_keyfile

    uvicorn.run(
        "main:app",
        **uvicorn_kwargs,
    )
