from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from config import TONNAGE_SCALE, settings
from engine.enums import VehicleClass


@dataclass(frozen=True)
class RecordIndices:
    index_per_distance: float
    index_per_distance_tonne: float
    tep: float
    cost: float


def index_per_distance(distance_km: float, fuel_liters: float) -> float:
    # L/100km
    return fuel_liters * 100.0 / distance_km if distance_km > 0 else 0.0


def index_per_distance_tonne(distance_km: float, fuel_liters: float, tonnage: Optional[float]) -> float:
    # L/100km per thousand units of tonnage, same scale as the truck model
    if not tonnage or tonnage <= 0 or distance_km <= 0:
        return 0.0
    return index_per_distance(distance_km, fuel_liters) / (tonnage / TONNAGE_SCALE)


def compute_indices(
    vehicle_class: VehicleClass,
    distance_km: float,
    fuel_liters: float,
    tonnage: Optional[float] = None,
) -> RecordIndices:
    per_tonne = 0.0
    if vehicle_class is VehicleClass.TRUCK:
        per_tonne = index_per_distance_tonne(distance_km, fuel_liters, tonnage)
    return RecordIndices(
        index_per_distance=index_per_distance(distance_km, fuel_liters),
        index_per_distance_tonne=per_tonne,
        tep=fuel_liters * settings.tep_per_liter,
        cost=fuel_liters * settings.price_per_liter,
    )
