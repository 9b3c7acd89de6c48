"""
Reference model service: aggregates raw fleet records, fits and stores reference models, resolves the reference in force for a year and exports the stored models.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from __future__ import annotations

import asyncio
import csv
import dataclasses
import io
import logging
from typing import Any, List, Optional, Sequence

from config import EXPORT_COLUMNS
from engine.aggregation.monthly import (
    MonthlyDataPoint,
    RawObservation,
    VehiclePerformance,
    aggregate,
    vehicle_performance,
)
from engine.enums import VehicleClass
from engine.exceptions import EmptyInputError
from engine.regression.fit import fit
from engine.regression.model import RegressionModel
from store import models as model_store
from store.models import ModelMatch, parse_year

log = logging.getLogger(__name__)


def _matches(record: RawObservation, vehicle_class: VehicleClass, year: str, region: Optional[str]) -> bool:
    if VehicleClass.parse(record.vehicle_class) is not vehicle_class:
        return False
    if record.year is not None and str(record.year).strip() != year:
        return False
    return region is None or record.region == region


def monthly_data(records: Sequence[RawObservation]) -> List[MonthlyDataPoint]:
    return aggregate(records)


def vehicles(records: Sequence[RawObservation], vehicle_class: Any = None) -> List[VehiclePerformance]:
    if vehicle_class is not None:
        vehicle_class = VehicleClass.parse(vehicle_class)
    summaries = vehicle_performance(records, vehicle_class)
    if not summaries:
        raise EmptyInputError("No records with a registration to summarise")
    return summaries


async def analyze(
    vehicle_class: Any,
    year: Any,
    records: Sequence[RawObservation],
    region: Optional[str] = None,
    refit: bool = False,
) -> RegressionModel:
    vehicle_class = VehicleClass.parse(vehicle_class)
    year = str(parse_year(year))

    if not refit:
        existing = await model_store.load(vehicle_class, year, region)
        if existing is not None:
            log.info("Reusing stored %s model for year=%s region=%s", vehicle_class.value, year, region)
            return existing

    selected = [r for r in records if _matches(r, vehicle_class, year, region)]
    if not selected:
        raise EmptyInputError(f"No {vehicle_class.value} records for year {year}" + (f" in {region}" if region else ""))

    points = aggregate(selected)
    model = await asyncio.to_thread(fit, vehicle_class, points, year, region)
    if region is None and model.region is not None:
        # a fit over every region is stored as the region-less model
        model = dataclasses.replace(model, region=None)
    return await model_store.save(model)


async def reference(vehicle_class: Any, year: Any, region: Optional[str] = None) -> Optional[ModelMatch]:
    return await model_store.find_with_year(vehicle_class, year, region)


async def export_csv() -> str:
    stored = await model_store.list_all()
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for model in stored:
        stats = model.statistics
        writer.writerow([
            model.vehicle_class.legacy_label,
            model.equation,
            "" if stats is None else f"{stats.r_squared:.4f}",
            "" if stats is None else f"{stats.adjusted_r_squared:.4f}",
            "" if stats is None else f"{stats.mse:.4f}",
        ])
    return buffer.getvalue()
