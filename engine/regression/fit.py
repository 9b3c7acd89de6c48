"""
Reference consumption model fitting. Cars use a single predictor (distance) and trucks two (distance and tonnage in thousands); every fit carries the validation warnings raised over its input and the full set of fit statistics.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from config import TONNAGE_SCALE, settings
from engine.aggregation.monthly import MonthlyDataPoint
from engine.enums import VehicleClass
from engine.exceptions import EmptyInputError, InsufficientDataError, UnsupportedVehicleClassError
from engine.regression.model import (
    AnovaTable,
    CoefficientStats,
    FitStatistics,
    RegressionCoefficients,
    RegressionModel,
)
from engine.regression.ols import OlsResult, design_matrix, fit_ols
from engine.validation.checks import derive_flags, validate

log = logging.getLogger(__name__)

_COEFFICIENT_NAMES = {
    VehicleClass.CAR: ("intercept", "distance"),
    VehicleClass.TRUCK: ("intercept", "distance", "tonnage"),
}


def _sign(value: float) -> str:
    return "+" if value >= 0 else "-"


def format_equation(coefficients: RegressionCoefficients) -> str:
    c = coefficients
    if c.tonnage is None:
        return f"fuel = {c.distance:.4f} * distance {_sign(c.intercept)} {abs(c.intercept):.2f}"
    return (
        f"fuel = {c.distance:.4f} * distance "
        f"{_sign(c.tonnage)} {abs(c.tonnage):.4f} * tonnage "
        f"{_sign(c.intercept)} {abs(c.intercept):.2f}"
    )


def usable_points(vehicle_class: VehicleClass, points: Sequence[MonthlyDataPoint]) -> List[MonthlyDataPoint]:
    if vehicle_class is VehicleClass.TRUCK:
        return [p for p in points if p.tonnage > 0 and p.distance_km > 0]
    return list(points)


def _design(vehicle_class: VehicleClass, points: Sequence[MonthlyDataPoint]) -> Tuple[np.ndarray, np.ndarray]:
    distance = np.array([p.distance_km for p in points], dtype=float)
    fuel = np.array([p.fuel_liters for p in points], dtype=float)
    if vehicle_class is VehicleClass.TRUCK:
        tonnage = np.array([p.tonnage for p in points], dtype=float) / TONNAGE_SCALE
        return design_matrix(distance, tonnage), fuel
    return design_matrix(distance), fuel


def _variance_inflation(r_squared: float, predictors: int) -> Tuple[float, ...]:
    # approximation from the model's own R², applied to every predictor
    with np.errstate(divide="ignore"):
        vif = float(np.float64(1.0) / (1.0 - np.float64(r_squared)))
    return tuple(vif for _ in range(predictors))


def _statistics(vehicle_class: VehicleClass, ols: OlsResult) -> FitStatistics:
    n = ols.n
    k = ols.p
    residuals = ols.residuals
    mse = ols.ms_residual
    with np.errstate(divide="ignore"):
        log_mse = float(np.log(np.float64(mse)))

    names = _COEFFICIENT_NAMES[vehicle_class]
    coefficient_stats = tuple(
        CoefficientStats(
            name=name,
            value=float(ols.coefficients[i]),
            standard_error=float(ols.standard_errors[i]),
            t_stat=float(ols.t_stats[i]),
            p_value=float(ols.p_values[i]),
            lower_95=float(ols.lower[i]),
            upper_95=float(ols.upper[i]),
        )
        for i, name in enumerate(names)
    )

    anova = AnovaTable(
        regression_ss=ols.ss_regression,
        residual_ss=ols.ss_residual,
        total_ss=ols.ss_total,
        regression_df=ols.df_regression,
        residual_df=ols.df_residual,
        total_df=n - 1,
        regression_ms=ols.ms_regression,
        residual_ms=mse,
        f_statistic=ols.f_statistic,
        significance_f=ols.significance_f,
    )

    vif = None
    if vehicle_class is VehicleClass.TRUCK:
        vif = _variance_inflation(ols.r_squared, vehicle_class.predictors)

    return FitStatistics(
        multiple_r=math.sqrt(max(ols.r_squared, 0.0)) if not math.isnan(ols.r_squared) else float("nan"),
        r_squared=ols.r_squared,
        adjusted_r_squared=ols.adjusted_r_squared,
        standard_error=math.sqrt(mse),
        observations=n,
        degrees_of_freedom=ols.df_residual,
        anova=anova,
        coefficients=coefficient_stats,
        predicted_values=tuple(float(v) for v in ols.predicted),
        residuals=tuple(float(v) for v in residuals),
        mse=mse,
        rmse=math.sqrt(mse),
        mae=float(np.mean(np.abs(residuals))),
        aic=n * log_mse + 2 * k,
        bic=n * log_mse + k * math.log(n),
        variance_inflation_factors=vif,
    )


def fit(
    vehicle_class: VehicleClass,
    points: Sequence[MonthlyDataPoint],
    year: Optional[str] = None,
    region: Optional[str] = None,
) -> RegressionModel:
    vehicle_class = VehicleClass.parse(vehicle_class)
    if vehicle_class not in _COEFFICIENT_NAMES:
        raise UnsupportedVehicleClassError(f"No model shape defined for {vehicle_class!r}")
    if not points:
        raise EmptyInputError("No monthly data points to fit")

    warnings = validate(points, vehicle_class)
    has_outliers, has_multicollinearity = derive_flags(warnings)

    sample = usable_points(vehicle_class, points)
    if not sample:
        raise InsufficientDataError("No valid data points for regression analysis")
    if len(sample) < len(points):
        log.debug("Excluded %d point(s) without distance or tonnage from the %s fit",
                  len(points) - len(sample), vehicle_class.value)

    X, y = _design(vehicle_class, sample)
    ols = fit_ols(X, y, confidence=settings.confidence_level)

    c = ols.coefficients
    coefficients = RegressionCoefficients(
        intercept=float(c[0]),
        distance=float(c[1]),
        tonnage=float(c[2]) if vehicle_class is VehicleClass.TRUCK else None,
    )

    model = RegressionModel(
        vehicle_class=vehicle_class,
        coefficients=coefficients,
        equation=format_equation(coefficients),
        statistics=_statistics(vehicle_class, ols),
        warnings=tuple(warnings),
        has_outliers=has_outliers,
        has_multicollinearity=has_multicollinearity,
        year=year if year is not None else points[0].year,
        region=region if region is not None else points[0].region,
    )
    log.info("Fitted %s model (year=%s, region=%s): %s, R²=%.4f, n=%d",
             vehicle_class.value, model.year, model.region, model.equation,
             ols.r_squared, ols.n)
    return model


def predict(model: RegressionModel, distance_km: float, tonnage: Optional[float] = None) -> float:
    """Reference consumption in liters for a distance and raw (unscaled) tonnage."""
    c = model.coefficients
    consumption = c.intercept + c.distance * distance_km
    if model.vehicle_class is VehicleClass.TRUCK and c.tonnage is not None and tonnage:
        consumption += c.tonnage * (tonnage / TONNAGE_SCALE)
    return consumption
