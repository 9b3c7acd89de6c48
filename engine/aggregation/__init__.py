"""
Monthly aggregation of raw fleet fuel records and per-record energy-performance indices.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.aggregation.indices import RecordIndices, compute_indices
from engine.aggregation.monthly import (
    MonthlyDataPoint,
    RawObservation,
    VehicleMonth,
    VehiclePerformance,
    aggregate,
    vehicle_performance,
)

__all__ = [
    "MonthlyDataPoint", "RawObservation", "RecordIndices", "VehicleMonth", "VehiclePerformance",
    "aggregate", "compute_indices", "vehicle_performance",
]
