from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from engine.aggregation.indices import compute_indices
from engine.aggregation.monthly import RawObservation
from engine.anomaly.scoring import VehicleObservation
from engine.enums import VehicleClass


class RawRecord(BaseModel):
    vehicle_class: str
    month: str
    year: Optional[str] = None
    region: Optional[str] = None
    registration: Optional[str] = None
    distance_km: float = 0.0
    fuel_liters: float = 0.0
    tonnage: Optional[float] = None
    index_per_distance: Optional[float] = None

    def to_observation(self) -> RawObservation:
        return RawObservation(
            vehicle_class=VehicleClass.parse(self.vehicle_class),
            month=self.month,
            year=self.year,
            region=self.region,
            registration=self.registration,
            distance_km=self.distance_km,
            fuel_liters=self.fuel_liters,
            tonnage=self.tonnage,
            index_per_distance=self.index_per_distance,
        )


class MonthlyDataRequest(BaseModel):
    records: List[RawRecord] = Field(min_length=1)


class VehiclePerformanceRequest(BaseModel):
    vehicle_class: Optional[str] = None
    records: List[RawRecord] = Field(min_length=1)


class AnalyzeRequest(BaseModel):
    vehicle_class: str
    year: str
    region: Optional[str] = None
    refit: bool = False
    records: List[RawRecord] = Field(default_factory=list)


class IndicesRequest(BaseModel):
    vehicle_class: str
    distance_km: float
    fuel_liters: float
    tonnage: Optional[float] = None


class Observation(BaseModel):
    id: str
    vehicle_class: str
    year: str
    region: Optional[str] = None
    distance_km: float = 0.0
    fuel_liters: float = 0.0
    tonnage: float = 0.0
    actual_index_per_distance: Optional[float] = None
    actual_index_per_distance_tonne: Optional[float] = None

    def to_observation(self) -> VehicleObservation:
        vehicle_class = VehicleClass.parse(self.vehicle_class)
        indices = compute_indices(vehicle_class, self.distance_km, self.fuel_liters, self.tonnage)
        return VehicleObservation(
            id=self.id,
            vehicle_class=vehicle_class,
            year=self.year,
            region=self.region,
            distance_km=self.distance_km,
            fuel_liters=self.fuel_liters,
            tonnage=self.tonnage,
            actual_index_per_distance=(
                self.actual_index_per_distance
                if self.actual_index_per_distance is not None
                else indices.index_per_distance
            ),
            actual_index_per_distance_tonne=(
                self.actual_index_per_distance_tonne
                if self.actual_index_per_distance_tonne is not None
                else indices.index_per_distance_tonne
            ),
        )


class ScoreRequest(BaseModel):
    observations: List[Observation] = Field(default_factory=list)
    max_parallel: Optional[int] = Field(default=None, ge=1, le=64)
    notify: bool = True


class LegacyImportRequest(BaseModel):
    document: Dict[str, Any]
