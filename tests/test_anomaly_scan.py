"""
Tests for bulk anomaly scans with a per-key model cache.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from dataclasses import dataclass

import pytest

from engine.anomaly import VehicleObservation, scan
from engine.anomaly.scan import load_models
from engine.enums import ScanStatus, VehicleClass
from engine.regression import RegressionCoefficients, RegressionModel


@dataclass
class Match:
    model: RegressionModel
    used_year: str


MODEL = RegressionModel(
    vehicle_class=VehicleClass.TRUCK,
    coefficients=RegressionCoefficients(0.0, 0.04, 0.01),
    equation="fuel = 0.0400 * distance + 0.0100 * tonnage + 0.00",
    year="2023",
)


def obs(id, year="2024", region="Tunis", per_tonne=0.9, distance=1000.0):
    return VehicleObservation(
        id=id, vehicle_class=VehicleClass.TRUCK, year=year, region=region,
        distance_km=distance, fuel_liters=45.0, tonnage=5000.0,
        actual_index_per_distance=4.5, actual_index_per_distance_tonne=per_tonne,
    )


class CountingFinder:
    def __init__(self, known_years=("2024",)):
        self.calls = []
        self.known_years = known_years

    async def __call__(self, vehicle_class, year, region):
        self.calls.append((vehicle_class, year, region))
        if year in self.known_years:
            return Match(MODEL, "2023")
        return None


@pytest.mark.asyncio
async def test_scan_fetches_each_key_once_and_reports_events():
    finder = CountingFinder()
    observations = [obs(f"T{i}", per_tonne=0.9 if i % 2 else 0.5) for i in range(10)]
    report = await scan(observations, finder, max_parallel=3)

    assert finder.calls == [(VehicleClass.TRUCK, "2024", "Tunis")]
    assert report.scored == 10
    assert [o.observation_id for o in report.outcomes] == [f"T{i}" for i in range(10)]
    assert all(o.used_year == "2023" for o in report.outcomes)
    assert sorted(e.observation_id for e in report.events) == ["T1", "T3", "T5", "T7", "T9"]
    assert observations[1].reference_index_per_distance_tonne == pytest.approx(0.801)


@pytest.mark.asyncio
async def test_scan_reports_missing_models_and_skips():
    finder = CountingFinder()
    observations = [obs("A"), obs("B", year="2010"), obs("C", distance=0.0)]
    report = await scan(observations, finder)
    statuses = {o.observation_id: o.status for o in report.outcomes}
    assert statuses == {"A": ScanStatus.scored, "B": ScanStatus.no_model, "C": ScanStatus.skipped}
    assert [e.observation_id for e in report.events] == ["A"]


@pytest.mark.asyncio
async def test_empty_scan():
    report = await scan([], CountingFinder())
    assert report.outcomes == () and report.events == ()


@pytest.mark.asyncio
async def test_model_cache_is_read_only():
    cache = await load_models([obs("A"), obs("B")], CountingFinder())
    assert len(cache) == 1
    with pytest.raises(TypeError):
        cache[(VehicleClass.CAR, "2024", None)] = None


@pytest.mark.asyncio
async def test_outcomes_carry_their_model_and_event_for_repeated_ids():
    report = await scan([obs("TN-123"), obs("TN-123", year="2010")], CountingFinder())
    first, second = report.outcomes
    assert first.model is MODEL
    assert first.event is not None and first.event.year == "2024"
    assert second.model is None and second.event is None
    assert report.flagged() == (first,)
