"""
Anomaly detection for vehicle observations: reference index scoring against a fitted model and bulk scans across a fleet.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.anomaly.scan import ScanOutcome, ScanReport, scan
from engine.anomaly.scoring import (
    AnomalyEvent,
    ReferenceScore,
    VehicleObservation,
    annotate,
    score,
    to_event,
)

__all__ = [
    "AnomalyEvent", "ReferenceScore", "ScanOutcome", "ScanReport", "VehicleObservation",
    "annotate", "scan", "score", "to_event",
]
