"""
Constants and configuration for the SER engine.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os
from typing import Optional

from pydantic_settings import BaseSettings


REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
# 0 disables expiry; reference models are kept until refit or deleted
MODEL_TTL: int = int(os.getenv("MODEL_TTL", "0"))

SER_DATABASE_URL = os.getenv("SER_DATABASE_URL", "")
SER_STORE_TIMEOUT = float(os.getenv("SER_STORE_TIMEOUT", "0.5"))

# tonnage enters truck models in thousands for numerical conditioning
TONNAGE_SCALE: float = 1000.0

# CSV export header, one row per stored reference model
EXPORT_COLUMNS = ["type", "equation", "r_squared", "adjusted_r_squared", "mse"]


class Settings(BaseSettings):
    database_url: Optional[str] = SER_DATABASE_URL or None
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    # monthly aggregation
    target_ratio: float = 0.95
    tep_per_liter: float = 0.00086
    price_per_liter: float = 2.5

    # input validation
    distance_min: float = 0.0
    distance_max: float = 500000.0
    fuel_min: float = 0.0
    fuel_max: float = 50000.0
    tonnage_min: float = 0.0
    tonnage_max: float = 500000.0
    outlier_z_threshold: float = 2.0
    correlation_threshold: float = 0.9

    # regression inference
    confidence_level: float = 0.95

    # reference model lookup
    fallback_years: int = 5
    store_timeout_seconds: float = SER_STORE_TIMEOUT
    store_retry_attempts: int = 3
    store_retry_delay_seconds: float = 0.1
    store_retry_backoff: float = 2.0
    store_redis_retry_cooldown_seconds: float = 10.0
    store_fallback_max_items: int = 10_000

    # bulk anomaly scans
    scan_max_parallel: int = 8

    ssl_enabled: bool = False
    ssl_certfile: Optional[str] = None
    ssl_keyfile: Optional[str] = None

    model_config = {
        "env_prefix": "SER_",
        "extra": "ignore",
    }


settings = Settings()
