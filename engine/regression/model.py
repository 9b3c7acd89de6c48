from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple

from engine.enums import VehicleClass
from engine.validation.checks import ValidationWarning


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class RegressionCoefficients:
    intercept: float
    distance: float
    # per thousand units of tonnage; None for car models
    tonnage: Optional[float] = None


@dataclass(frozen=True)
class CoefficientStats:
    name: str
    value: float
    standard_error: float
    t_stat: float
    p_value: float
    lower_95: float
    upper_95: float


@dataclass(frozen=True)
class AnovaTable:
    regression_ss: float
    residual_ss: float
    total_ss: float
    regression_df: int
    residual_df: int
    total_df: int
    regression_ms: float
    residual_ms: float
    f_statistic: float
    significance_f: float


@dataclass(frozen=True)
class FitStatistics:
    multiple_r: float
    r_squared: float
    adjusted_r_squared: float
    standard_error: float
    observations: int
    degrees_of_freedom: int
    anova: AnovaTable
    coefficients: Tuple[CoefficientStats, ...]
    predicted_values: Tuple[float, ...]
    residuals: Tuple[float, ...]
    mse: float
    rmse: float
    mae: float
    aic: float
    bic: float
    variance_inflation_factors: Optional[Tuple[float, ...]] = None


@dataclass(frozen=True)
class RegressionModel:
    vehicle_class: VehicleClass
    coefficients: RegressionCoefficients
    equation: str
    # legacy documents may carry coefficients only
    statistics: Optional[FitStatistics] = None
    warnings: Tuple[ValidationWarning, ...] = ()
    has_outliers: bool = False
    has_multicollinearity: bool = False
    year: Optional[str] = None
    region: Optional[str] = None
    model_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=_utcnow_iso)

    @property
    def key(self) -> Tuple[VehicleClass, Optional[str], Optional[str]]:
        return self.vehicle_class, self.year, self.region
