"""
Tests for input validation: range checks, outlier detection and distance/tonnage multicollinearity.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import random

import numpy as np
import pytest
from scipy import stats

from conftest import car_point, truck_point
from engine.enums import VehicleClass, WarningKind
from engine.exceptions import EmptyInputError, InvalidInputError
from engine.validation import derive_flags, validate


def test_empty_input_raises():
    with pytest.raises(EmptyInputError):
        validate([], VehicleClass.CAR)
    assert issubclass(EmptyInputError, InvalidInputError)


def test_single_far_value_gives_one_outlier():
    points = [car_point(1000, 10, month=f"{i:02d}") for i in range(1, 11)]
    points.append(car_point(1000, 1000, month="11"))
    warnings = validate(points, VehicleClass.CAR)
    outliers = [w for w in warnings if w.kind is WarningKind.outlier]
    assert len(outliers) == 1
    assert outliers[0].metric == "fuel"
    assert outliers[0].month == "11"
    assert derive_flags(warnings) == (True, False)


def test_constant_series_has_no_outliers():
    points = [car_point(500, 40, month=f"{i:02d}") for i in range(1, 7)]
    assert validate(points, VehicleClass.CAR) == []


def test_range_warnings():
    points = [
        car_point(-5, 10, month="01"),
        car_point(600000, 60000, month="02"),
        truck_point(100, -1, 10, month="03"),
    ]
    warnings = validate(points, VehicleClass.TRUCK)
    ranged = {(w.metric, w.month) for w in warnings if w.kind is WarningKind.range}
    assert ranged == {("distance", "01"), ("distance", "02"), ("fuel", "02"), ("tonnage", "03")}
    assert all(w.score is None for w in warnings if w.kind is WarningKind.range)


def test_collinear_truck_data_is_flagged():
    points = [truck_point(1000 * i, 2000 * i, 50 * i + 3, month=f"{i:02d}") for i in range(1, 8)]
    warnings = validate(points, VehicleClass.TRUCK)
    correlation = [w for w in warnings if w.kind is WarningKind.correlation]
    assert len(correlation) == 1
    assert correlation[0].score == pytest.approx(1.0)
    assert derive_flags(warnings)[1] is True


def test_car_data_is_not_checked_for_collinearity():
    points = [truck_point(1000 * i, 2000 * i, 50 * i, month=f"{i:02d}") for i in range(1, 8)]
    warnings = validate(points, VehicleClass.CAR)
    assert not any(w.kind is WarningKind.correlation for w in warnings)


def test_constant_tonnage_skips_collinearity():
    points = [truck_point(1000 * i, 5000, 50 * i, month=f"{i:02d}") for i in range(1, 8)]
    assert derive_flags(validate(points, VehicleClass.TRUCK)) == (False, False)


def test_warnings_do_not_depend_on_point_order():
    rng = random.Random(7)
    points = [
        truck_point(rng.uniform(500, 5000), rng.uniform(1000, 30000), rng.uniform(50, 900), month=f"{i:02d}")
        for i in range(1, 25)
    ]
    points.append(truck_point(90000, 20000, 9000, month="25"))
    expected = set(validate(points, VehicleClass.TRUCK))
    for _ in range(5):
        shuffled = points[:]
        rng.shuffle(shuffled)
        assert set(validate(shuffled, VehicleClass.TRUCK)) == expected


def test_derive_flags_without_warnings():
    assert derive_flags([]) == (False, False)


def test_outlier_score_is_the_population_z_score():
    fuel = [10.0] * 10 + [1000.0]
    points = [car_point(1000, f, month=f"{i:02d}") for i, f in enumerate(fuel, start=1)]
    (outlier,) = [w for w in validate(points, VehicleClass.CAR) if w.kind is WarningKind.outlier]
    expected = (1000.0 - np.mean(fuel)) / np.std(fuel, ddof=0)
    assert outlier.score == pytest.approx(expected, abs=1e-6)


def test_correlation_score_is_pearson_r():
    jitter = [300, -450, 120, 600, -200, -80, 410, -310]
    distance = [1000.0 * i for i in range(1, 9)]
    tonnage = [2000.0 * i + j for i, j in zip(range(1, 9), jitter)]
    points = [truck_point(d, t, 0.04 * d + 5, month=f"{i:02d}")
              for i, (d, t) in enumerate(zip(distance, tonnage), start=1)]
    (correlation,) = [w for w in validate(points, VehicleClass.TRUCK) if w.kind is WarningKind.correlation]
    assert correlation.score == pytest.approx(stats.pearsonr(distance, tonnage)[0], abs=1e-6)
