"""
Reference consumption models: OLS fitting with inferential statistics for car and truck fleets.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.regression.fit import fit, format_equation, predict
from engine.regression.model import (
    AnovaTable,
    CoefficientStats,
    FitStatistics,
    RegressionCoefficients,
    RegressionModel,
)

__all__ = [
    "AnovaTable", "CoefficientStats", "FitStatistics", "RegressionCoefficients",
    "RegressionModel", "fit", "format_equation", "predict",
]
