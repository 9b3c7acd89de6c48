"""
Test Suite for Store Client

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest

from engine.exceptions import StoreUnavailableError
from store import client as store_client
from store.client import _fallback, redis_get, redis_set, redis_delete, redis_scan


@pytest.mark.asyncio
async def test_fallback_operations():
    await redis_set("k1", "v1")
    assert await redis_get("k1") == "v1"
    await redis_delete("k1")
    assert await redis_get("k1") is None


@pytest.mark.asyncio
async def test_keys_pattern():
    await redis_set("ser:model:CAR:2024:all", "1")
    await redis_set("ser:model:CAR:2023:all", "2")
    keys = await redis_scan("ser:model:CAR:2024:*")
    assert keys == ["ser:model:CAR:2024:all"]


@pytest.mark.asyncio
async def test_fallback_is_bounded(monkeypatch):
    monkeypatch.setattr(store_client, "_MAX_FALLBACK_SIZE", 2)
    await redis_set("a", "1")
    await redis_set("b", "2")
    await redis_set("c", "3")
    await redis_set("a", "updated")
    assert set(_fallback) == {"a", "b"}
    assert _fallback["a"] == "updated"


class BrokenRedis:
    async def get(self, key):
        raise ConnectionError("connection reset")

    async def set(self, key, value):
        raise ConnectionError("connection reset")


@pytest.mark.asyncio
async def test_redis_failures_raise_store_unavailable(monkeypatch):
    async def broken():
        return BrokenRedis()

    monkeypatch.setattr(store_client, "get_redis", broken)
    with pytest.raises(StoreUnavailableError):
        await redis_get("k")
    with pytest.raises(StoreUnavailableError):
        await redis_set("k", "v")
