"""
Response models for API endpoints, built from the engine's dataclasses.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional
from datetime import datetime
import numpy as np
from pydantic import BaseModel, ConfigDict, model_serializer
from engine.enums import ScanStatus, VehicleClass, WarningKind


def _coerce(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _coerce(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_coerce(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        obj = float(obj)
    if isinstance(obj, np.ndarray):
        return _coerce(obj.tolist())
    # JSON has no NaN or infinity; degenerate fits report them as null
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    return obj


class NpModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> Any:
        return _coerce(handler(self))


class MonthlyDataPointOut(NpModel):
    vehicle_class: Optional[VehicleClass] = None
    month: str
    year: Optional[str] = None
    region: Optional[str] = None
    distance_km: float
    fuel_liters: float
    tonnage: float
    reference_consumption: float
    target_consumption: float
    improvement_percentage: float


class RecordIndicesOut(NpModel):
    index_per_distance: float
    index_per_distance_tonne: float
    tep: float
    cost: float


class VehicleMonthOut(NpModel):
    month: str
    distance_km: float
    fuel_liters: float
    tonnage: float
    indices: RecordIndicesOut


class VehiclePerformanceOut(NpModel):
    registration: str
    vehicle_class: VehicleClass
    total_fuel_liters: float
    total_distance_km: float
    total_tonnage: float
    index_per_distance: Optional[float] = None
    index_per_distance_tonne: Optional[float] = None
    months: List[VehicleMonthOut]


class ValidationWarningOut(NpModel):
    kind: WarningKind
    metric: str
    month: Optional[str] = None
    value: float
    score: Optional[float] = None
    message: str


class CoefficientsOut(NpModel):
    intercept: float
    distance: float
    tonnage: Optional[float] = None


# Statistics of degenerate fits may be NaN or infinite and serialize as null,
# so these fields accept None when a response is re-validated.

class CoefficientStatsOut(NpModel):
    name: str
    value: Optional[float] = None
    standard_error: Optional[float] = None
    t_stat: Optional[float] = None
    p_value: Optional[float] = None
    lower_95: Optional[float] = None
    upper_95: Optional[float] = None


class AnovaOut(NpModel):
    regression_ss: Optional[float] = None
    residual_ss: Optional[float] = None
    total_ss: Optional[float] = None
    regression_df: int
    residual_df: int
    total_df: int
    regression_ms: Optional[float] = None
    residual_ms: Optional[float] = None
    f_statistic: Optional[float] = None
    significance_f: Optional[float] = None


class FitStatisticsOut(NpModel):
    multiple_r: Optional[float] = None
    r_squared: Optional[float] = None
    adjusted_r_squared: Optional[float] = None
    standard_error: Optional[float] = None
    observations: int
    degrees_of_freedom: int
    anova: AnovaOut
    coefficients: List[CoefficientStatsOut]
    predicted_values: List[float]
    residuals: List[float]
    mse: Optional[float] = None
    rmse: Optional[float] = None
    mae: Optional[float] = None
    aic: Optional[float] = None
    bic: Optional[float] = None
    variance_inflation_factors: Optional[List[Optional[float]]] = None


class RegressionModelOut(NpModel):
    model_id: str
    vehicle_class: VehicleClass
    year: Optional[str] = None
    region: Optional[str] = None
    equation: str
    coefficients: CoefficientsOut
    statistics: Optional[FitStatisticsOut] = None
    warnings: List[ValidationWarningOut]
    has_outliers: bool
    has_multicollinearity: bool
    created_at: str


class ReferenceOut(NpModel):
    requested_year: str
    used_year: str
    model: RegressionModelOut


class ReferenceScoreOut(NpModel):
    reference_consumption: float
    reference_index_per_distance: Optional[float] = None
    reference_index_per_distance_tonne: Optional[float] = None
    exceeds_reference: bool


class ScanOutcomeOut(NpModel):
    observation_id: str
    status: ScanStatus
    score: Optional[ReferenceScoreOut] = None
    used_year: Optional[str] = None


class AnomalyEventOut(NpModel):
    observation_id: str
    vehicle_class: VehicleClass
    region: Optional[str] = None
    year: str
    actual_index: float
    reference_index: float


class ScanReportOut(NpModel):
    scored: int
    outcomes: List[ScanOutcomeOut]
    events: List[AnomalyEventOut]


class NotificationOut(NpModel):
    id: str
    title: str
    message: str
    vehicle_id: str
    vehicle_class: str
    region: Optional[str] = None
    year: str
    actual_index: float
    reference_index: float
    severity: str
    read: bool
    created_at: datetime
    details: Optional[Dict[str, Any]] = None
