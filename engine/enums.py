"""
Enumerations for vehicle classes, validation warning kinds and scan outcomes.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from enum import Enum

from engine.exceptions import UnsupportedVehicleClassError

# labels found in fleet spreadsheets and legacy documents
_LABELS = {
    "car": "CAR",
    "cars": "CAR",
    "voiture": "CAR",
    "voitures": "CAR",
    "truck": "TRUCK",
    "trucks": "TRUCK",
    "camion": "TRUCK",
    "camions": "TRUCK",
}

_LEGACY_LABELS = {
    "CAR": "VOITURE",
    "TRUCK": "CAMION",
}


class VehicleClass(str, Enum):
    CAR = "CAR"
    TRUCK = "TRUCK"

    @classmethod
    def parse(cls, label: object) -> VehicleClass:
        if isinstance(label, cls):
            return label
        key = str(label or "").strip().lower()
        try:
            return cls(_LABELS[key])
        except KeyError:
            raise UnsupportedVehicleClassError(
                f"Unknown vehicle class {label!r}. Valid values: {[c.value for c in cls]}"
            ) from None

    @property
    def predictors(self) -> int:
        return 2 if self is VehicleClass.TRUCK else 1

    @property
    def legacy_label(self) -> str:
        return _LEGACY_LABELS[self.value]


class WarningKind(str, Enum):
    range = "range"
    outlier = "outlier"
    correlation = "correlation"


class ScanStatus(str, Enum):
    scored = "scored"
    no_model = "no_model"
    skipped = "skipped"
