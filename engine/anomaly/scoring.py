"""
Scoring of individual vehicle observations against a stored reference model: the reference (predicted) consumption is turned into a reference energy-performance index per 100 km, and for trucks per 100 km and tonne, which the observed index is compared against.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from config import TONNAGE_SCALE
from engine.enums import VehicleClass
from engine.exceptions import InvalidInputError
from engine.regression.fit import predict
from engine.regression.model import RegressionModel

log = logging.getLogger(__name__)


@dataclass
class VehicleObservation:
    id: str
    vehicle_class: VehicleClass
    year: str
    region: Optional[str] = None
    distance_km: float = 0.0
    fuel_liters: float = 0.0
    tonnage: float = 0.0
    actual_index_per_distance: float = 0.0
    actual_index_per_distance_tonne: float = 0.0
    # written back by annotate()
    reference_index_per_distance: Optional[float] = None
    reference_index_per_distance_tonne: Optional[float] = None


@dataclass(frozen=True)
class ReferenceScore:
    reference_consumption: float
    reference_index_per_distance: Optional[float]
    reference_index_per_distance_tonne: Optional[float]
    exceeds_reference: bool


@dataclass(frozen=True)
class AnomalyEvent:
    observation_id: str
    vehicle_class: VehicleClass
    region: Optional[str]
    year: str
    actual_index: float
    reference_index: float


def score(observation: VehicleObservation, model: RegressionModel) -> ReferenceScore:
    if VehicleClass.parse(observation.vehicle_class) is not model.vehicle_class:
        raise InvalidInputError(
            f"Observation {observation.id} is a {observation.vehicle_class} "
            f"but the model was fitted for {model.vehicle_class.value}"
        )

    is_truck = model.vehicle_class is VehicleClass.TRUCK
    reference = predict(model, observation.distance_km, observation.tonnage if is_truck else None)

    if observation.distance_km <= 0:
        log.warning("Skipping reference index for %s: distance %.2f km",
                    observation.id, observation.distance_km)
        return ReferenceScore(reference, None, None, False)

    per_distance = reference / observation.distance_km * 100.0

    per_tonne: Optional[float] = None
    if is_truck and observation.tonnage and observation.tonnage > 0:
        per_tonne = per_distance / (observation.tonnage / TONNAGE_SCALE)

    exceeds = (
        per_tonne is not None
        and per_tonne > 0.0
        and observation.actual_index_per_distance_tonne > per_tonne
    )
    return ReferenceScore(reference, per_distance, per_tonne, exceeds)


def annotate(observation: VehicleObservation, model: RegressionModel) -> ReferenceScore:
    """Score an observation and write the reference indices back onto it."""
    result = score(observation, model)
    observation.reference_index_per_distance = result.reference_index_per_distance
    observation.reference_index_per_distance_tonne = result.reference_index_per_distance_tonne
    return result


def to_event(observation: VehicleObservation, result: ReferenceScore) -> Optional[AnomalyEvent]:
    if not result.exceeds_reference or result.reference_index_per_distance_tonne is None:
        return None
    return AnomalyEvent(
        observation_id=observation.id,
        vehicle_class=VehicleClass.parse(observation.vehicle_class),
        region=observation.region,
        year=str(observation.year),
        actual_index=observation.actual_index_per_distance_tonne,
        reference_index=result.reference_index_per_distance_tonne,
    )
