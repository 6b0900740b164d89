# tests/test_disturbance.py
from __future__ import annotations

import pytest

from agritwin.library.disturbance import (
    HEAVY_WIND,
    LOCUST_ATTACK,
    DisturbanceModel,
)


def test_quiet_day(fixed_random):
    assert DisturbanceModel().roll(fixed_random(0.5)) is None


def test_locust_attack(fixed_random):
    assert DisturbanceModel().roll(fixed_random(0.01)) is LOCUST_ATTACK


def test_heavy_wind(sequence_random):
    assert DisturbanceModel().roll(sequence_random([0.01, 0.9])) is HEAVY_WIND


def test_pest_build_up_scales_with_risk(fixed_random):
    model = DisturbanceModel()
    assert model.pest_pressure(10.0, 0.8, fixed_random(0.1)) == 14.0
    assert model.pest_pressure(10.0, 0.8, fixed_random(0.9)) == 10.0
    assert model.pest_pressure(99.0, 1.0, fixed_random(0.1)) == 100.0


@pytest.mark.parametrize(
    "pests, change", [(60.0, 5.0), (40.0, 0.0), (30.0, 0.0), (10.0, -2.0)]
)
def test_injury_change(pests, change):
    assert DisturbanceModel().injury_change(pests) == change


def test_spray_floors_at_zero():
    model = DisturbanceModel()
    assert model.spray(70.0) == 20.0
    assert model.spray(30.0) == 0.0


def test_probabilities_are_validated():
    with pytest.raises(ValueError):
        DisturbanceModel(event_chance=1.5)
