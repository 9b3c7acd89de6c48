"""
Ordinary least squares estimation with full inferential statistics: coefficient standard errors, t-statistics, two-sided p-values, confidence intervals and the ANOVA decomposition.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy import stats

from engine.exceptions import InsufficientDataError, SingularModelError


@dataclass(frozen=True)
class OlsResult:
    coefficients: np.ndarray
    standard_errors: np.ndarray
    t_stats: np.ndarray
    p_values: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    predicted: np.ndarray
    residuals: np.ndarray
    n: int
    p: int
    ss_total: float
    ss_regression: float
    ss_residual: float
    f_statistic: float
    significance_f: float
    r_squared: float
    adjusted_r_squared: float

    @property
    def df_regression(self) -> int:
        return self.p - 1

    @property
    def df_residual(self) -> int:
        return self.n - self.p

    @property
    def ms_regression(self) -> float:
        return self.ss_regression / self.df_regression

    @property
    def ms_residual(self) -> float:
        return self.ss_residual / self.df_residual


def design_matrix(*predictors: np.ndarray) -> np.ndarray:
    n = len(predictors[0])
    return np.column_stack([np.ones(n)] + [np.asarray(col, dtype=float) for col in predictors])


def _solve(X: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    p = X.shape[1]
    if np.linalg.matrix_rank(X) < p:
        raise SingularModelError(
            "Design matrix is rank deficient (a predictor has zero variance or is collinear)"
        )
    coeffs, _, _, _ = np.linalg.lstsq(X, y, rcond=None)
    xtx_inv = np.linalg.inv(X.T @ X)
    if not np.all(np.isfinite(coeffs)):
        raise SingularModelError("Least squares produced non-finite coefficients")
    return coeffs, xtx_inv


def fit_ols(X: np.ndarray, y: np.ndarray, confidence: float = 0.95) -> OlsResult:
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    n, p = X.shape
    if n <= p:
        raise InsufficientDataError(
            f"Need more than {p} observations to estimate {p} coefficients, got {n}"
        )

    coeffs, xtx_inv = _solve(X, y)
    predicted = X @ coeffs
    residuals = y - predicted

    df_res = n - p
    df_reg = p - 1
    mean_y = float(np.mean(y))
    ss_total = float(np.sum((y - mean_y) ** 2))
    ss_regression = float(np.sum((predicted - mean_y) ** 2))
    ss_residual = float(np.sum(residuals ** 2))
    sigma2 = ss_residual / df_res

    with np.errstate(divide="ignore", invalid="ignore"):
        std_err = np.sqrt(np.clip(np.diag(xtx_inv) * sigma2, 0.0, None))
        t_stats = coeffs / std_err
        r_squared = 1.0 - ss_residual / ss_total if ss_total > 0 else float("nan")
        adjusted = 1.0 - (1.0 - r_squared) * (n - 1) / df_res
        f_stat = float((ss_regression / df_reg) / sigma2) if sigma2 > 0 else float("inf")

    p_values = 2.0 * stats.t.sf(np.abs(t_stats), df_res)
    t_crit = float(stats.t.ppf(0.5 + confidence / 2.0, df_res))
    significance_f = float(stats.f.sf(f_stat, df_reg, df_res))

    return OlsResult(
        coefficients=coeffs,
        standard_errors=std_err,
        t_stats=t_stats,
        p_values=p_values,
        lower=coeffs - t_crit * std_err,
        upper=coeffs + t_crit * std_err,
        predicted=predicted,
        residuals=residuals,
        n=n,
        p=p,
        ss_total=ss_total,
        ss_regression=ss_regression,
        ss_residual=ss_residual,
        f_statistic=f_stat,
        significance_f=significance_f,
        r_squared=float(r_squared),
        adjusted_r_squared=float(adjusted),
    )
