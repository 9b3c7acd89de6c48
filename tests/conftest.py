import os
import sys
import pytest

# ensure workspace root is on sys.path so our application packages can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from engine.aggregation.monthly import MonthlyDataPoint
from engine.enums import VehicleClass
from store.client import _fallback


@pytest.fixture(autouse=True)
def clear_fallback(monkeypatch):
    """Wipe the in-memory redis fallback before and after each test and make
    every store call operate on the in-memory store.
    """
    _fallback.clear()

    import store.client as client

    async def no_redis():
        return None

    monkeypatch.setattr(client, "get_redis", no_redis)
    monkeypatch.setattr(client, "_using_fallback", True)

    yield

    _fallback.clear()


@pytest.fixture
def sqlite_db(tmp_path):
    import database

    database.dispose_database()
    database.init_database(f"sqlite:///{tmp_path / 'ser.db'}")
    database.init_db()
    yield
    database.dispose_database()


def car_point(distance, fuel, month="01", year="2024", region=None):
    return MonthlyDataPoint(
        month=month,
        year=year,
        region=region,
        distance_km=float(distance),
        fuel_liters=float(fuel),
        vehicle_class=VehicleClass.CAR,
    )


def truck_point(distance, tonnage, fuel, month="01", year="2024", region=None):
    return MonthlyDataPoint(
        month=month,
        year=year,
        region=region,
        distance_km=float(distance),
        fuel_liters=float(fuel),
        tonnage=float(tonnage),
        vehicle_class=VehicleClass.TRUCK,
    )
