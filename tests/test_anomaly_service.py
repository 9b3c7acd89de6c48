"""
Tests for the anomaly scoring service end to end over the in-memory store.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest

from engine.anomaly import VehicleObservation
from engine.enums import ScanStatus, VehicleClass
from engine.regression import RegressionCoefficients, RegressionModel
from services.anomaly_service import score_observations
from services.notification_service import notification_service
from store import models as model_store

MODEL = RegressionModel(
    vehicle_class=VehicleClass.TRUCK,
    coefficients=RegressionCoefficients(0.0, 0.04, 0.01),
    equation="fuel = 0.0400 * distance + 0.0100 * tonnage + 0.00",
    year="2023",
)


def obs(id, per_tonne, year="2025", vehicle_class=VehicleClass.TRUCK):
    return VehicleObservation(
        id=id, vehicle_class=vehicle_class, year=year, region="Tunis",
        distance_km=1000.0, fuel_liters=45.0, tonnage=5000.0,
        actual_index_per_distance=4.5, actual_index_per_distance_tonne=per_tonne,
    )


@pytest.mark.asyncio
async def test_score_uses_fallback_model_and_records_notifications(sqlite_db):
    await model_store.save(MODEL)
    report = await score_observations([obs("T1", 0.9), obs("T2", 0.5), obs("C1", 9.0, vehicle_class=VehicleClass.CAR)])

    statuses = {o.observation_id: (o.status, o.used_year) for o in report.outcomes}
    assert statuses["T1"] == (ScanStatus.scored, "2023")
    assert statuses["T2"] == (ScanStatus.scored, "2023")
    assert statuses["C1"] == (ScanStatus.no_model, None)
    assert [e.observation_id for e in report.events] == ["T1"]

    notes = await notification_service.list_notifications()
    assert [n.vehicle_id for n in notes] == ["T1"]
    assert notes[0].details["equation"] == MODEL.equation


@pytest.mark.asyncio
async def test_notify_can_be_disabled(sqlite_db):
    await model_store.save(MODEL)
    report = await score_observations([obs("T1", 0.9)], notify=False)
    assert len(report.events) == 1
    assert await notification_service.unread_count() == 0


@pytest.mark.asyncio
async def test_repeated_vehicle_ids_keep_their_own_models(sqlite_db):
    await model_store.save(MODEL)

    report = await score_observations([obs("TN-123", 0.9, year="2024"), obs("TN-123", 0.9, year="2010")])

    assert [o.status for o in report.outcomes] == [ScanStatus.scored, ScanStatus.no_model]
    assert report.outcomes[0].model == MODEL
    assert len(report.events) == 1
    notes = await notification_service.list_notifications()
    assert len(notes) == 1
    assert notes[0].details["model_year"] == "2023"


@pytest.mark.asyncio
async def test_same_vehicle_in_two_years_is_scored_against_each_year_model(sqlite_db):
    older = RegressionModel(
        vehicle_class=VehicleClass.TRUCK,
        coefficients=RegressionCoefficients(0.0, 0.04, 0.01),
        equation="fuel = 0.0400 * distance + 0.0100 * tonnage + 0.00 (2018)",
        year="2018",
    )
    await model_store.save(MODEL)
    await model_store.save(older)

    report = await score_observations([obs("TN-123", 0.9, year="2024"), obs("TN-123", 0.9, year="2019")])

    assert [o.used_year for o in report.outcomes] == ["2023", "2018"]
    notes = await notification_service.list_notifications()
    assert sorted(n.details["equation"] for n in notes) == sorted([MODEL.equation, older.equation])
