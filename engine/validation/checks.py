"""
Input quality checks run over monthly data points before a reference model is fitted: value range checks, z-score outlier detection per metric and, for trucks, a multicollinearity check between distance and tonnage.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from config import settings
from engine.aggregation.monthly import MonthlyDataPoint
from engine.enums import VehicleClass, WarningKind
from engine.exceptions import EmptyInputError

# z-scores and correlations are rounded so that the warning set does not
# depend on the order the points arrive in
_PRECISION = 6


@dataclass(frozen=True)
class ValidationWarning:
    kind: WarningKind
    metric: str
    month: Optional[str]
    value: float
    score: Optional[float]
    message: str


def _zscores(values: Sequence[float]) -> Optional[np.ndarray]:
    arr = np.array(values, dtype=float)
    if np.ptp(arr) == 0:
        return None
    return (arr - np.mean(arr)) / np.std(arr)


def _pearson(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    x = np.array(xs, dtype=float)
    y = np.array(ys, dtype=float)
    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return None
    return float(np.clip(np.corrcoef(x, y)[0, 1], -1.0, 1.0))


def _out_of_range(value: float, low: float, high: float) -> bool:
    return value < low or value > high


def _range_warning(metric: str, point: MonthlyDataPoint, value: float) -> ValidationWarning:
    return ValidationWarning(
        kind=WarningKind.range,
        metric=metric,
        month=point.month,
        value=value,
        score=None,
        message=f"{metric.capitalize()} value {value:.2f} for month {point.month} is outside expected range",
    )


def check_ranges(points: Iterable[MonthlyDataPoint]) -> List[ValidationWarning]:
    warnings: List[ValidationWarning] = []
    for p in points:
        if _out_of_range(p.distance_km, settings.distance_min, settings.distance_max):
            warnings.append(_range_warning("distance", p, p.distance_km))
        if _out_of_range(p.fuel_liters, settings.fuel_min, settings.fuel_max):
            warnings.append(_range_warning("fuel", p, p.fuel_liters))
        if p.tonnage != 0 and _out_of_range(p.tonnage, settings.tonnage_min, settings.tonnage_max):
            warnings.append(_range_warning("tonnage", p, p.tonnage))
    return warnings


def _metric_outliers(
    metric: str, points: Sequence[MonthlyDataPoint], values: Sequence[float]
) -> List[ValidationWarning]:
    scores = _zscores(values)
    if scores is None:
        return []

    warnings: List[ValidationWarning] = []
    for p, v, raw in zip(points, values, scores):
        z = round(float(raw), _PRECISION)
        if abs(z) > settings.outlier_z_threshold:
            warnings.append(ValidationWarning(
                kind=WarningKind.outlier,
                metric=metric,
                month=p.month,
                value=v,
                score=z,
                message=(
                    f"Possible outlier detected - {metric} value {v:.2f} "
                    f"for month {p.month} (z-score: {z:.2f})"
                ),
            ))
    return warnings


def check_outliers(points: Sequence[MonthlyDataPoint]) -> List[ValidationWarning]:
    return (
        _metric_outliers("fuel", points, [p.fuel_liters for p in points])
        + _metric_outliers("distance", points, [p.distance_km for p in points])
    )


def check_multicollinearity(points: Sequence[MonthlyDataPoint]) -> List[ValidationWarning]:
    r = _pearson([p.distance_km for p in points], [p.tonnage for p in points])
    if r is None:
        return []
    r = round(r, _PRECISION)
    if abs(r) <= settings.correlation_threshold:
        return []
    return [ValidationWarning(
        kind=WarningKind.correlation,
        metric="distance~tonnage",
        month=None,
        value=r,
        score=r,
        message=(
            f"High correlation ({r:.2f}) detected between distance and tonnage. "
            "This may affect the reliability of the regression results."
        ),
    )]


def validate(points: Sequence[MonthlyDataPoint], vehicle_class: VehicleClass) -> List[ValidationWarning]:
    if not points:
        raise EmptyInputError("Monthly data cannot be empty")

    warnings = check_ranges(points)
    warnings.extend(check_outliers(points))
    if vehicle_class is VehicleClass.TRUCK:
        warnings.extend(check_multicollinearity(points))
    return warnings


def derive_flags(warnings: Iterable[ValidationWarning]) -> Tuple[bool, bool]:
    """Return ``(has_outliers, has_multicollinearity)`` for a warning list."""
    kinds = {w.kind for w in warnings}
    return WarningKind.outlier in kinds, WarningKind.correlation in kinds
