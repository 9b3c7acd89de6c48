"""
Client code for Redis access, with in-memory fallback if Redis is unreachable at connect time.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import time
from typing import Any, Awaitable, Optional, TypeVar

from engine.exceptions import StoreUnavailableError

log = logging.getLogger(__name__)

_T = TypeVar("_T")

_redis_client: Any = None
_fallback: dict[str, str] = {}
_using_fallback = False
_init_lock = asyncio.Lock()
_retry_after_monotonic: float = 0.0

try:
    from config import settings
    _MAX_FALLBACK_SIZE = int(settings.store_fallback_max_items)
    _REDIS_RETRY_COOLDOWN_SECONDS = float(settings.store_redis_retry_cooldown_seconds)
    _REDIS_OP_TIMEOUT_SECONDS = float(settings.store_timeout_seconds)
except Exception:
    _MAX_FALLBACK_SIZE = 10_000
    _REDIS_RETRY_COOLDOWN_SECONDS = 10.0
    _REDIS_OP_TIMEOUT_SECONDS = 0.5


async def get_redis() -> Any:
    global _redis_client, _using_fallback, _retry_after_monotonic

    if _redis_client is not None:
        return _redis_client
    if time.monotonic() < _retry_after_monotonic:
        _using_fallback = True
        return None

    async with _init_lock:
        if _redis_client is not None:
            return _redis_client
        if time.monotonic() < _retry_after_monotonic:
            _using_fallback = True
            return None
        try:
            import redis.asyncio as aioredis
            from config import REDIS_URL

            client = aioredis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=0.5,
                socket_timeout=_REDIS_OP_TIMEOUT_SECONDS,
            )
            await asyncio.wait_for(client.ping(), timeout=0.5)
            _redis_client = client
            _retry_after_monotonic = 0.0
            _using_fallback = False
            log.info("Redis connected: %s", REDIS_URL)
            return _redis_client
        except Exception as exc:
            _retry_after_monotonic = time.monotonic() + max(0.0, _REDIS_RETRY_COOLDOWN_SECONDS)
            if not _using_fallback:
                log.warning("Redis unavailable (%s), using in-memory fallback", exc)
                _using_fallback = True
            return None


async def _call(op: str, key: str, awaitable: Awaitable[_T], timeout: Optional[float]) -> _T:
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout or _REDIS_OP_TIMEOUT_SECONDS)
    except Exception as exc:
        log.warning("Redis %s failed for %s: %s", op, key, exc)
        raise StoreUnavailableError(f"Redis {op} {key} failed: {exc}") from exc


async def redis_get(key: str, timeout: Optional[float] = None) -> Optional[str]:
    client = await get_redis()
    if client is None:
        return _fallback.get(key)
    return await _call("GET", key, client.get(key), timeout)


async def redis_set(key: str, value: str, ttl: Optional[int] = None, timeout: Optional[float] = None) -> None:
    client = await get_redis()
    if client is None:
        if key in _fallback or len(_fallback) < _MAX_FALLBACK_SIZE:
            _fallback[key] = value
        else:
            log.warning("In-memory fallback full (%d items), dropping %s", _MAX_FALLBACK_SIZE, key)
        return
    if ttl:
        await _call("SETEX", key, client.setex(key, ttl, value), timeout)
    else:
        await _call("SET", key, client.set(key, value), timeout)


async def redis_delete(key: str, timeout: Optional[float] = None) -> None:
    client = await get_redis()
    if client is None:
        _fallback.pop(key, None)
        return
    await _call("DEL", key, client.delete(key), timeout)


async def redis_scan(pattern: str, timeout: Optional[float] = None) -> list[str]:
    client = await get_redis()
    if client is None:
        return [k for k in _fallback if fnmatch.fnmatch(k, pattern)]

    async def _scan_keys() -> list[str]:
        return [key async for key in client.scan_iter(pattern)]

    return await _call("SCAN", pattern, _scan_keys(), timeout or 1.0)


def is_using_fallback() -> bool:
    return _using_fallback
