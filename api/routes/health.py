"""
Liveness route reporting where reference models are held and whether anomaly notifications are being persisted.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from api.routes.exception import handle_exceptions
from database import is_initialized
from store import client as store_client

router = APIRouter(tags=["Health"])


@router.get("/health")
@handle_exceptions
async def health() -> Dict[str, Any]:
    await store_client.get_redis()
    return {
        "status": "ok",
        "models": "memory" if store_client.is_using_fallback() else "redis",
        "notifications": "enabled" if is_initialized() else "disabled",
    }
