"""
Regression routes: monthly aggregation, reference model fitting, lookup with year fallback, and export of stored models.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from api.requests import (
    AnalyzeRequest,
    IndicesRequest,
    LegacyImportRequest,
    MonthlyDataRequest,
    VehiclePerformanceRequest,
)
from api.responses import (
    MonthlyDataPointOut,
    RecordIndicesOut,
    ReferenceOut,
    RegressionModelOut,
    VehiclePerformanceOut,
)
from api.routes.exception import handle_exceptions
from engine.aggregation.indices import compute_indices
from engine.enums import VehicleClass
from services import reference_service
from store import models as model_store

router = APIRouter(tags=["Regression"])


@router.post("/regression/monthly", summary="Aggregate raw records into monthly data points")
@handle_exceptions
async def monthly_data(req: MonthlyDataRequest) -> List[MonthlyDataPointOut]:
    points = reference_service.monthly_data([r.to_observation() for r in req.records])
    return [MonthlyDataPointOut.model_validate(p) for p in points]


@router.post("/regression/vehicles", summary="Per-vehicle fuel, distance and tonnage totals with aggregate indices")
@handle_exceptions
async def vehicles(req: VehiclePerformanceRequest) -> List[VehiclePerformanceOut]:
    summaries = reference_service.vehicles([r.to_observation() for r in req.records], req.vehicle_class)
    return [VehiclePerformanceOut.model_validate(s) for s in summaries]


@router.post("/regression/indices", summary="Energy-performance indices, TEP and cost for one record")
@handle_exceptions
async def record_indices(req: IndicesRequest) -> RecordIndicesOut:
    indices = compute_indices(VehicleClass.parse(req.vehicle_class), req.distance_km, req.fuel_liters, req.tonnage)
    return RecordIndicesOut.model_validate(indices)


@router.post("/regression/analyze", summary="Fit (or reuse) the reference model for a class and year")
@handle_exceptions
async def analyze(req: AnalyzeRequest) -> RegressionModelOut:
    model = await reference_service.analyze(
        req.vehicle_class,
        req.year,
        [r.to_observation() for r in req.records],
        region=req.region,
        refit=req.refit,
    )
    return RegressionModelOut.model_validate(model)


@router.get("/regression/reference/{vehicle_class}/{year}", summary="Reference model in force, with year fallback")
@handle_exceptions
async def reference(vehicle_class: str, year: str, region: Optional[str] = None) -> ReferenceOut:
    match = await reference_service.reference(vehicle_class, year, region)
    if match is None:
        raise HTTPException(status_code=404, detail=f"No reference model for {vehicle_class} {year}")
    return ReferenceOut(
        requested_year=year,
        used_year=match.used_year,
        model=RegressionModelOut.model_validate(match.model),
    )


@router.get("/regression/models", summary="All stored reference models")
@handle_exceptions
async def list_models() -> List[RegressionModelOut]:
    return [RegressionModelOut.model_validate(m) for m in await model_store.list_all()]


@router.delete("/regression/models/{vehicle_class}/{year}", summary="Delete a stored reference model")
@handle_exceptions
async def delete_model(vehicle_class: str, year: str, region: Optional[str] = None) -> Dict[str, Any]:
    await model_store.delete(vehicle_class, year, region)
    return {"deleted": True, "vehicle_class": VehicleClass.parse(vehicle_class).value, "year": year, "region": region}


@router.post("/regression/legacy", summary="Import a reference document in the legacy schema")
@handle_exceptions
async def import_legacy(req: LegacyImportRequest) -> Dict[str, Any]:
    key = await model_store.import_legacy(req.document)
    return {"key": key}


@router.get("/regression/export", summary="CSV export of stored reference models", response_class=PlainTextResponse)
@handle_exceptions
async def export_models() -> PlainTextResponse:
    content = await reference_service.export_csv()
    return PlainTextResponse(
        content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="regression_results.csv"'},
    )
