"""
Bulk anomaly scans over many vehicle observations. Reference models are fetched once per (vehicle class, year, region) key into a cache that is read-only once populated, then observations are scored concurrently.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Tuple

from config import settings
from engine.anomaly.scoring import (
    AnomalyEvent,
    ReferenceScore,
    VehicleObservation,
    annotate,
    to_event,
)
from engine.enums import ScanStatus, VehicleClass

log = logging.getLogger(__name__)

ModelKey = Tuple[VehicleClass, str, Optional[str]]
# async (vehicle_class, year, region) -> match with .model and .used_year, or None
Finder = Callable[[VehicleClass, str, Optional[str]], Awaitable[Any]]


@dataclass(frozen=True)
class ScanOutcome:
    observation_id: str
    status: ScanStatus
    score: Optional[ReferenceScore] = None
    used_year: Optional[str] = None
    # the reference model this observation was scored against
    model: Any = None
    event: Optional[AnomalyEvent] = None


@dataclass(frozen=True)
class ScanReport:
    outcomes: Tuple[ScanOutcome, ...]
    events: Tuple[AnomalyEvent, ...]

    @property
    def scored(self) -> int:
        return sum(1 for o in self.outcomes if o.status is ScanStatus.scored)

    def flagged(self) -> Tuple[ScanOutcome, ...]:
        """Outcomes that produced an anomaly event, in observation order."""
        return tuple(o for o in self.outcomes if o.event is not None)


def model_key(observation: VehicleObservation) -> ModelKey:
    return (
        VehicleClass.parse(observation.vehicle_class),
        str(observation.year),
        observation.region or None,
    )


async def load_models(
    observations: Sequence[VehicleObservation],
    finder: Finder,
) -> Mapping[ModelKey, Any]:
    keys = list(dict.fromkeys(model_key(o) for o in observations))
    matches = await asyncio.gather(*(finder(*key) for key in keys))
    return MappingProxyType(dict(zip(keys, matches)))


def _score_one(
    observation: VehicleObservation,
    cache: Mapping[ModelKey, Any],
) -> ScanOutcome:
    match = cache.get(model_key(observation))
    if match is None:
        return ScanOutcome(observation.id, ScanStatus.no_model)
    if observation.distance_km <= 0:
        return ScanOutcome(observation.id, ScanStatus.skipped, used_year=match.used_year, model=match.model)

    result = annotate(observation, match.model)
    return ScanOutcome(
        observation.id,
        ScanStatus.scored,
        result,
        match.used_year,
        model=match.model,
        event=to_event(observation, result),
    )


async def scan(
    observations: Sequence[VehicleObservation],
    finder: Finder,
    max_parallel: Optional[int] = None,
) -> ScanReport:
    if not observations:
        return ScanReport((), ())

    cache = await load_models(observations, finder)
    semaphore = asyncio.Semaphore(max(1, int(max_parallel or settings.scan_max_parallel)))

    async def _bounded(obs: VehicleObservation) -> ScanOutcome:
        async with semaphore:
            return await asyncio.to_thread(_score_one, obs, cache)

    outcomes = tuple(await asyncio.gather(*(_bounded(o) for o in observations)))
    events = tuple(o.event for o in outcomes if o.event is not None)
    missing = sum(1 for o in outcomes if o.status is ScanStatus.no_model)
    if missing:
        log.info("No reference model for %d of %d observation(s)", missing, len(outcomes))
    log.info("Scanned %d observation(s): %d anomaly event(s)", len(outcomes), len(events))
    return ScanReport(outcomes, events)
