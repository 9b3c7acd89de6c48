"""
Test Suite for API Routes - regression, anomalies, notifications and health

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import json

import pytest
from fastapi import HTTPException

import main as app_main
from api.requests import (
    AnalyzeRequest,
    IndicesRequest,
    LegacyImportRequest,
    MonthlyDataRequest,
    Observation,
    RawRecord,
    ScoreRequest,
    VehiclePerformanceRequest,
)
from api.routes import anomalies as anomalies_route
from api.routes import health as health_route
from api.routes import notifications as notifications_route
from api.routes import regression as regression_route
from api.routes.exception import handle_exceptions, status_for
from engine.enums import ScanStatus
from engine.exceptions import (
    EmptyInputError,
    InsufficientDataError,
    InvalidYearError,
    SingularModelError,
    StoreUnavailableError,
    UnsupportedVehicleClassError,
)


def truck_records(year="2024"):
    tonnages = [12000, 8000, 15000, 9000, 20000, 11000, 17000, 7000, 14000, 19000]
    return [
        RawRecord(
            vehicle_class="camions",
            month=f"{i:02d}",
            year=year,
            region="Tunis",
            registration="123 TU 4567",
            distance_km=1000.0 * i,
            fuel_liters=3.0 + 0.04 * 1000.0 * i + 0.01 * (t / 1000),
            tonnage=float(t),
        )
        for i, t in enumerate(tonnages, start=1)
    ]


@pytest.mark.parametrize("exc,code", [
    (EmptyInputError("x"), 400),
    (UnsupportedVehicleClassError("x"), 400),
    (InvalidYearError("x"), 400),
    (InsufficientDataError("x"), 422),
    (SingularModelError("x"), 422),
    (StoreUnavailableError("x"), 503),
    (RuntimeError("x"), 500),
])
def test_status_for(exc, code):
    assert status_for(exc) == code


@pytest.mark.asyncio
async def test_handle_exceptions_translates_engine_errors():
    @handle_exceptions
    async def failing():
        raise SingularModelError("rank deficient")

    with pytest.raises(HTTPException) as exc:
        await failing()
    assert exc.value.status_code == 422
    assert "rank deficient" in exc.value.detail


@pytest.mark.asyncio
async def test_monthly_and_indices_routes():
    points = await regression_route.monthly_data(MonthlyDataRequest(records=truck_records()))
    assert len(points) == 10
    assert points[0].vehicle_class.value == "TRUCK"

    indices = await regression_route.record_indices(
        IndicesRequest(vehicle_class="CAMION", distance_km=1000, fuel_liters=120, tonnage=5000)
    )
    assert indices.index_per_distance == pytest.approx(12.0)
    assert indices.index_per_distance_tonne == pytest.approx(2.4)


@pytest.mark.asyncio
async def test_vehicles_route_summarises_per_registration():
    records = truck_records()
    (summary,) = await regression_route.vehicles(VehiclePerformanceRequest(records=records))
    assert summary.registration == "123 TU 4567"
    assert summary.vehicle_class.value == "TRUCK"
    assert summary.total_distance_km == pytest.approx(55000.0)
    assert summary.total_fuel_liters == pytest.approx(sum(r.fuel_liters for r in records))
    assert summary.index_per_distance == pytest.approx(summary.total_fuel_liters / 550.0)
    assert len(summary.months) == 10

    with pytest.raises(HTTPException) as exc:
        await regression_route.vehicles(VehiclePerformanceRequest(records=records, vehicle_class="voitures"))
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_analyze_reference_and_export_routes():
    model = await regression_route.analyze(
        AnalyzeRequest(vehicle_class="CAMION", year="2023", records=truck_records("2023"))
    )
    assert model.vehicle_class.value == "TRUCK"
    assert model.coefficients.distance == pytest.approx(0.04)
    assert model.statistics.observations == 10

    ref = await regression_route.reference("truck", "2025")
    assert ref.used_year == "2023"
    assert ref.requested_year == "2025"
    assert ref.model.model_id == model.model_id

    listed = await regression_route.list_models()
    assert [m.model_id for m in listed] == [model.model_id]

    response = await regression_route.export_models()
    assert response.media_type == "text/csv"
    assert response.body.decode().splitlines()[1].startswith("CAMION,")


@pytest.mark.asyncio
async def test_reference_route_not_found_and_bad_input():
    with pytest.raises(HTTPException) as exc:
        await regression_route.reference("truck", "2024")
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        await regression_route.reference("truck", "year-one")
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        await regression_route.reference("chariots", "2024")
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_analyze_route_with_too_few_records_is_unprocessable():
    with pytest.raises(HTTPException) as exc:
        await regression_route.analyze(
            AnalyzeRequest(vehicle_class="CAMION", year="2024", records=truck_records()[:2])
        )
    assert exc.value.status_code == 422


@pytest.mark.asyncio
async def test_delete_and_legacy_import_routes():
    await regression_route.analyze(AnalyzeRequest(vehicle_class="truck", year="2024", records=truck_records()))
    result = await regression_route.delete_model("truck", "2024")
    assert result["deleted"] is True
    assert await regression_route.list_models() == []

    imported = await regression_route.import_legacy(LegacyImportRequest(document={
        "id": "legacy-1", "type": "CAMION", "year": "2024", "intercept": 0.0,
        "coefficients": {"kilometrage": 0.04, "tonnage": 0.01},
    }))
    assert imported["key"] == "ser:legacy:2024:legacy-1"
    ref = await regression_route.reference("CAMION", "2024")
    assert ref.model.statistics is None
    assert ref.model.coefficients.tonnage == 0.01


@pytest.mark.asyncio
async def test_score_route_computes_missing_indices():
    await regression_route.import_legacy(LegacyImportRequest(document={
        "id": "legacy-1", "type": "CAMION", "year": "2024", "intercept": 0.0,
        "coefficients": {"kilometrage": 0.04, "tonnage": 0.01},
    }))
    # 45 L over 1000 km is 4.5 L/100km, 0.9 per thousand units of tonnage
    req = ScoreRequest(observations=[
        Observation(id="T1", vehicle_class="CAMION", year="2024", distance_km=1000, fuel_liters=45, tonnage=5000),
        Observation(id="T2", vehicle_class="CAMION", year="2010", distance_km=1000, fuel_liters=45, tonnage=5000),
    ], notify=False)
    report = await anomalies_route.score(req)
    assert report.scored == 1
    assert report.outcomes[1].status is ScanStatus.no_model
    assert report.outcomes[0].score.reference_index_per_distance_tonne == pytest.approx(0.801)
    assert [e.observation_id for e in report.events] == ["T1"]


@pytest.mark.asyncio
async def test_notification_routes(sqlite_db):
    await regression_route.import_legacy(LegacyImportRequest(document={
        "id": "legacy-1", "type": "CAMION", "year": "2024", "intercept": 0.0,
        "coefficients": {"kilometrage": 0.04, "tonnage": 0.01},
    }))
    await anomalies_route.score(ScoreRequest(observations=[
        Observation(id="T1", vehicle_class="CAMION", year="2024", distance_km=1000, fuel_liters=45, tonnage=5000),
    ]))

    notes = await notifications_route.list_notifications()
    assert [n.vehicle_id for n in notes] == ["T1"]
    assert (await notifications_route.unread_count()) == {"count": 1}
    assert len(await notifications_route.list_unread()) == 1

    read = await notifications_route.mark_read(notes[0].id)
    assert read.read is True
    assert await notifications_route.mark_all_read() == {"updated": 0}
    await notifications_route.delete_notification(notes[0].id)
    assert await notifications_route.list_notifications() == []

    with pytest.raises(HTTPException) as exc:
        await notifications_route.mark_read("missing")
    assert exc.value.status_code == 404


def test_degenerate_statistics_serialize_as_null():
    from api.responses import FitStatisticsOut

    payload = {
        "multiple_r": float("nan"), "r_squared": float("nan"), "adjusted_r_squared": float("nan"),
        "standard_error": 0.0, "observations": 3, "degrees_of_freedom": 1,
        "anova": {"regression_ss": 0.0, "residual_ss": 0.0, "total_ss": 0.0, "regression_df": 1,
                  "residual_df": 1, "total_df": 2, "regression_ms": 0.0, "residual_ms": 0.0,
                  "f_statistic": float("inf"), "significance_f": 0.0},
        "coefficients": [], "predicted_values": [1.0], "residuals": [0.0],
        "mse": 0.0, "rmse": 0.0, "mae": 0.0, "aic": float("-inf"), "bic": float("-inf"),
    }
    dumped = FitStatisticsOut.model_validate(payload).model_dump()
    assert dumped["r_squared"] is None
    assert dumped["aic"] is None
    assert dumped["anova"]["f_statistic"] is None
    json.dumps(dumped, allow_nan=False)


@pytest.mark.asyncio
async def test_health_and_ready():
    payload = await health_route.health()
    assert payload == {"status": "ok", "models": "memory", "notifications": "disabled"}

    app_main._backend_ready = False
    app_main._backend_status = {"store": "fallback"}
    response = await app_main.ready()
    body = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 503
    assert body["ready"] is False


@pytest.mark.asyncio
async def test_backend_check_marks_ready(monkeypatch):
    monkeypatch.setattr(app_main.settings, "database_url", None)
    app_main._backend_ready = False
    app_main._backend_status = {}
    await app_main._check_backends()
    assert app_main._backend_ready is True
    assert app_main._backend_status == {"store": "fallback", "database": "disabled"}


@pytest.mark.asyncio
async def test_health_reports_notification_store(sqlite_db):
    payload = await health_route.health()
    assert payload["notifications"] == "enabled"
