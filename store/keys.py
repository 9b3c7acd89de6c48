"""
Key layout for reference models in the key-value store.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import hashlib
from typing import Optional

from engine.enums import VehicleClass

ALL_REGIONS = "all"


def _slug(value: str) -> str:
    # Internal cache keys do not require reversibility; use strong stable hashing.
    return hashlib.sha256(value.encode()).hexdigest()[:32]


def _region(region: Optional[str]) -> str:
    return _slug(region) if region else ALL_REGIONS


def model(vehicle_class: VehicleClass, year: str, region: Optional[str] = None) -> str:
    return f"ser:model:{vehicle_class.value}:{year}:{_region(region)}"


def model_pattern(vehicle_class: VehicleClass, year: str) -> str:
    return f"ser:model:{vehicle_class.value}:{year}:*"


def all_models() -> str:
    return "ser:model:*"


def legacy_pattern(year: str) -> str:
    # documents imported from the earlier schema, keyed by year and identified by a "type" field
    return f"ser:legacy:{year}:*"


def legacy(year: str, document_id: str) -> str:
    return f"ser:legacy:{year}:{document_id}"
