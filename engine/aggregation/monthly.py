"""
Monthly aggregation of raw per-vehicle fuel records into one data point per vehicle class, month, year and region, carrying the reference and target consumption derived from each record's energy-performance index.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from config import settings
from engine.aggregation.indices import (
    RecordIndices,
    compute_indices,
    index_per_distance,
    index_per_distance_tonne,
)
from engine.enums import VehicleClass
from engine.exceptions import EmptyInputError, InvalidInputError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawObservation:
    vehicle_class: VehicleClass
    month: str
    year: Optional[str] = None
    region: Optional[str] = None
    registration: Optional[str] = None
    distance_km: float = 0.0
    fuel_liters: float = 0.0
    tonnage: Optional[float] = None
    index_per_distance: Optional[float] = None


@dataclass(frozen=True)
class MonthlyDataPoint:
    month: str
    year: Optional[str]
    region: Optional[str]
    distance_km: float
    fuel_liters: float
    tonnage: float = 0.0
    vehicle_class: Optional[VehicleClass] = None
    reference_consumption: float = 0.0
    target_consumption: float = 0.0
    improvement_percentage: float = 0.0


_BucketKey = Tuple[VehicleClass, str, Optional[str], Optional[str]]


def _bucket_key(record: RawObservation) -> _BucketKey:
    if record.month is None or str(record.month).strip() == "":
        raise InvalidInputError(
            f"Record {record.registration or '?'} has no month; ingestion must supply one"
        )
    return (record.vehicle_class, str(record.month), record.year, record.region)


def _record_index(record: RawObservation) -> float:
    if record.index_per_distance is not None:
        return float(record.index_per_distance)
    return index_per_distance(record.distance_km, record.fuel_liters)


def collapse(records: List[RawObservation]) -> MonthlyDataPoint:
    """Collapse the records of a single bucket into one data point."""
    if not records:
        raise EmptyInputError("Cannot aggregate an empty bucket")

    first = records[0]
    distance = float(np.sum([r.distance_km for r in records]))
    fuel = float(np.sum([r.fuel_liters for r in records]))
    tonnage = float(np.sum([r.tonnage for r in records if r.tonnage is not None]))
    reference = float(np.sum([_record_index(r) * r.distance_km / 100.0 for r in records]))
    target = reference * settings.target_ratio
    improvement = (reference - fuel) / reference * 100.0 if reference else 0.0

    return MonthlyDataPoint(
        month=str(first.month),
        year=first.year,
        region=first.region,
        distance_km=distance,
        fuel_liters=fuel,
        tonnage=tonnage,
        vehicle_class=first.vehicle_class,
        reference_consumption=reference,
        target_consumption=target,
        improvement_percentage=improvement,
    )


def aggregate(records: Iterable[RawObservation]) -> List[MonthlyDataPoint]:
    buckets: Dict[_BucketKey, List[RawObservation]] = {}
    for record in records:
        buckets.setdefault(_bucket_key(record), []).append(record)

    if not buckets:
        raise EmptyInputError("No records to aggregate")

    points = [collapse(group) for group in buckets.values()]
    log.debug("Aggregated %d record bucket(s) into monthly points", len(points))
    return points


@dataclass(frozen=True)
class VehicleMonth:
    month: str
    distance_km: float
    fuel_liters: float
    tonnage: float
    indices: RecordIndices


@dataclass(frozen=True)
class VehiclePerformance:
    registration: str
    vehicle_class: VehicleClass
    total_fuel_liters: float
    total_distance_km: float
    total_tonnage: float
    # None when the vehicle drove no distance (or, per tonne, carried nothing)
    index_per_distance: Optional[float]
    index_per_distance_tonne: Optional[float]
    months: Tuple[VehicleMonth, ...]


def _vehicle_months(vehicle_class: VehicleClass, records: List[RawObservation]) -> Tuple[VehicleMonth, ...]:
    by_month: Dict[str, List[RawObservation]] = {}
    for record in records:
        by_month.setdefault(str(record.month), []).append(record)

    months = []
    for month, group in by_month.items():
        distance = float(np.sum([r.distance_km for r in group]))
        fuel = float(np.sum([r.fuel_liters for r in group]))
        tonnage = float(np.sum([r.tonnage for r in group if r.tonnage is not None]))
        months.append(VehicleMonth(
            month=month,
            distance_km=distance,
            fuel_liters=fuel,
            tonnage=tonnage,
            indices=compute_indices(vehicle_class, distance, fuel, tonnage),
        ))
    return tuple(months)


def vehicle_performance(
    records: Iterable[RawObservation],
    vehicle_class: Optional[VehicleClass] = None,
) -> List[VehiclePerformance]:
    """Summarise fuel, distance and tonnage per registration, in first-seen order.

    Records without a registration cannot be attributed to a vehicle and are
    left out. When ``vehicle_class`` is given only that class is summarised.
    """
    vehicles: Dict[Tuple[str, VehicleClass], List[RawObservation]] = {}
    skipped = 0
    for record in records:
        if vehicle_class is not None and record.vehicle_class is not vehicle_class:
            continue
        if not record.registration:
            skipped += 1
            continue
        _bucket_key(record)  # rejects records without a month
        vehicles.setdefault((record.registration, record.vehicle_class), []).append(record)

    if skipped:
        log.debug("Left out %d record(s) without a registration", skipped)

    summaries = []
    for (registration, cls), group in vehicles.items():
        distance = float(np.sum([r.distance_km for r in group]))
        fuel = float(np.sum([r.fuel_liters for r in group]))
        tonnage = float(np.sum([r.tonnage for r in group if r.tonnage is not None]))
        per_distance = index_per_distance(distance, fuel) if distance > 0 else None
        per_tonne = (
            index_per_distance_tonne(distance, fuel, tonnage)
            if per_distance is not None and tonnage > 0 else None
        )
        summaries.append(VehiclePerformance(
            registration=registration,
            vehicle_class=cls,
            total_fuel_liters=fuel,
            total_distance_km=distance,
            total_tonnage=tonnage,
            index_per_distance=per_distance,
            index_per_distance_tonne=per_tonne,
            months=_vehicle_months(cls, group),
        ))
    return summaries
