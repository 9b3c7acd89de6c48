"""
Reference model storage: persistence of fitted regression models keyed by vehicle class, year and optional region, and the fallback search used when scoring observations (exact region, then any region, then legacy documents, walking back year by year).

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import dataclasses
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from config import MODEL_TTL, settings
from engine.enums import VehicleClass, WarningKind
from engine.exceptions import InvalidYearError, UnsupportedVehicleClassError
from engine.regression.fit import format_equation
from engine.regression.model import (
    AnovaTable,
    CoefficientStats,
    FitStatistics,
    RegressionCoefficients,
    RegressionModel,
)
from engine.validation.checks import ValidationWarning
from store import keys
from store.client import redis_delete, redis_get, redis_scan, redis_set
from store.retry import retry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelMatch:
    model: RegressionModel
    used_year: str


def parse_year(year: Any) -> int:
    if isinstance(year, bool):
        raise InvalidYearError(f"Invalid year format: {year!r}")
    try:
        return int(str(year).strip())
    except (TypeError, ValueError):
        raise InvalidYearError(f"Invalid year format: {year!r}") from None


def _to_json(model: RegressionModel) -> str:
    payload = dataclasses.asdict(model)
    payload["vehicle_class"] = model.vehicle_class.value
    payload["warnings"] = [
        {**dataclasses.asdict(w), "kind": w.kind.value} for w in model.warnings
    ]
    return json.dumps(payload)


def _statistics_from(d: Optional[Dict[str, Any]]) -> Optional[FitStatistics]:
    if not d:
        return None
    vif = d.get("variance_inflation_factors")
    return FitStatistics(
        **{
            **d,
            "anova": AnovaTable(**d["anova"]),
            "coefficients": tuple(CoefficientStats(**c) for c in d["coefficients"]),
            "predicted_values": tuple(d["predicted_values"]),
            "residuals": tuple(d["residuals"]),
            "variance_inflation_factors": tuple(vif) if vif is not None else None,
        }
    )


def _from_json(data: str) -> RegressionModel:
    d = json.loads(data)
    return RegressionModel(
        vehicle_class=VehicleClass(d["vehicle_class"]),
        coefficients=RegressionCoefficients(**d["coefficients"]),
        equation=d["equation"],
        statistics=_statistics_from(d.get("statistics")),
        warnings=tuple(
            ValidationWarning(**{**w, "kind": WarningKind(w["kind"])})
            for w in d.get("warnings", [])
        ),
        has_outliers=bool(d.get("has_outliers", False)),
        has_multicollinearity=bool(d.get("has_multicollinearity", False)),
        year=d.get("year"),
        region=d.get("region"),
        model_id=d["model_id"],
        created_at=d["created_at"],
    )


def _from_legacy(doc: Dict[str, Any], vehicle_class: VehicleClass) -> RegressionModel:
    coef = doc.get("coefficients") or {}
    tonnage = coef.get("tonnage") if vehicle_class is VehicleClass.TRUCK else None
    coefficients = RegressionCoefficients(
        intercept=float(doc.get("intercept", 0.0)),
        distance=float(coef.get("kilometrage", 0.0)),
        tonnage=float(tonnage) if tonnage is not None else None,
    )
    return RegressionModel(
        vehicle_class=vehicle_class,
        coefficients=coefficients,
        equation=doc.get("regressionEquation") or format_equation(coefficients),
        has_outliers=bool(doc.get("hasOutliers", False)),
        has_multicollinearity=bool(doc.get("hasMulticollinearity", False)),
        year=str(doc.get("year")) if doc.get("year") is not None else None,
        region=doc.get("region") or None,
        model_id=str(doc.get("id") or uuid.uuid4()),
    )


def _legacy_class(doc: Dict[str, Any]) -> Optional[VehicleClass]:
    try:
        return VehicleClass.parse(doc.get("type") or doc.get("vehicleType"))
    except UnsupportedVehicleClassError:
        return None


@retry()
async def save(model: RegressionModel, timeout: Optional[float] = None) -> RegressionModel:
    year = str(parse_year(model.year))
    await redis_set(
        keys.model(model.vehicle_class, year, model.region),
        _to_json(model),
        ttl=MODEL_TTL or None,
        timeout=timeout,
    )
    log.info("Saved %s reference model for year=%s region=%s (id=%s)",
             model.vehicle_class.value, year, model.region, model.model_id)
    return model


@retry()
async def load(
    vehicle_class: VehicleClass,
    year: Any,
    region: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Optional[RegressionModel]:
    vehicle_class = VehicleClass.parse(vehicle_class)
    raw = await redis_get(keys.model(vehicle_class, str(parse_year(year)), region), timeout=timeout)
    return _from_json(raw) if raw else None


@retry()
async def _load_any_region(vehicle_class: VehicleClass, year: str, timeout: Optional[float]) -> Optional[RegressionModel]:
    found = await redis_scan(keys.model_pattern(vehicle_class, year), timeout=timeout)
    regionless = keys.model(vehicle_class, year)
    for key in sorted(found, key=lambda k: (k != regionless, k)):
        raw = await redis_get(key, timeout=timeout)
        if raw:
            return _from_json(raw)
    return None


@retry()
async def _load_legacy(vehicle_class: VehicleClass, year: str, timeout: Optional[float]) -> Optional[RegressionModel]:
    for key in sorted(await redis_scan(keys.legacy_pattern(year), timeout=timeout)):
        raw = await redis_get(key, timeout=timeout)
        if not raw:
            continue
        doc = json.loads(raw)
        if _legacy_class(doc) is vehicle_class:
            return _from_legacy(doc, vehicle_class)
    return None


async def find_with_year(
    vehicle_class: VehicleClass,
    year: Any,
    region: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Optional[ModelMatch]:
    vehicle_class = VehicleClass.parse(vehicle_class)
    start = parse_year(year)

    for candidate in range(start, start - settings.fallback_years - 1, -1):
        y = str(candidate)
        if region:
            model = await load(vehicle_class, y, region, timeout=timeout)
            if model is not None:
                log.debug("Found region-specific %s model for year=%s region=%s", vehicle_class.value, y, region)
                return ModelMatch(model, y)

        model = await _load_any_region(vehicle_class, y, timeout)
        if model is not None:
            log.debug("Found general %s model for year=%s", vehicle_class.value, y)
            return ModelMatch(model, y)

        model = await _load_legacy(vehicle_class, y, timeout)
        if model is not None:
            log.debug("Found legacy %s model for year=%s", vehicle_class.value, y)
            return ModelMatch(model, y)

    log.warning("No reference model for %s year=%s region=%s after %d-year fallback",
                vehicle_class.value, year, region, settings.fallback_years)
    return None


async def find(
    vehicle_class: VehicleClass,
    year: Any,
    region: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Optional[RegressionModel]:
    match = await find_with_year(vehicle_class, year, region, timeout=timeout)
    return match.model if match else None


@retry()
async def list_all(timeout: Optional[float] = None) -> List[RegressionModel]:
    models = []
    for key in sorted(await redis_scan(keys.all_models(), timeout=timeout)):
        raw = await redis_get(key, timeout=timeout)
        if raw:
            models.append(_from_json(raw))
    return models


@retry()
async def delete(
    vehicle_class: VehicleClass,
    year: Any,
    region: Optional[str] = None,
    timeout: Optional[float] = None,
) -> None:
    vehicle_class = VehicleClass.parse(vehicle_class)
    await redis_delete(keys.model(vehicle_class, str(parse_year(year)), region), timeout=timeout)


@retry()
async def import_legacy(document: Dict[str, Any], timeout: Optional[float] = None) -> str:
    year = str(parse_year(document.get("year")))
    document_id = str(document.get("id") or uuid.uuid4())
    key = keys.legacy(year, document_id)
    await redis_set(key, json.dumps(document), timeout=timeout)
    return key
