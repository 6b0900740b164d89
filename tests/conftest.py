from __future__ import annotations

import datetime as dt
from itertools import cycle

import pytest

from agritwin.core.crops import CropType, SoilType
from agritwin.core.data_containers import (
    CropState,
    DailyWeather,
    SimulationState,
    SoilHealthCard,
    SoilState,
)
from agritwin.library.weather import Region


class FixedRandom:
    """Random source that always draws ``value``."""

    def __init__(self, value: float = 0.5):
        self.value = value

    def random(self) -> float:
        return self.value

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.value


class SequenceRandom(FixedRandom):
    """Random source cycling through ``values``."""

    def __init__(self, values):
        self._values = cycle(values)

    def random(self) -> float:
        return next(self._values)

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * next(self._values)


@pytest.fixture
def card() -> SoilHealthCard:
    return SoilHealthCard(
        n=280.0, p=12.0, k=150.0, ph=7.2, ec=0.35, oc=0.55, zn=0.8
    )


@pytest.fixture
def fixed_random():
    return FixedRandom


@pytest.fixture
def sequence_random():
    return SequenceRandom


@pytest.fixture
def make_state():
    """Build a SimulationState with overridable components."""

    def _make(crop=None, soil=None, weather=None):
        return SimulationState(
            day=1,
            date=dt.date(2024, 6, 15),
            region=Region.NORTH,
            funds=1000.0,
            crop=crop if crop is not None else CropState.sown(CropType.WHEAT),
            soil=(
                soil
                if soil is not None
                else SoilState(SoilType.LOAMY, 50.0, 100.0, 10.0, 100.0)
            ),
            weather=(
                weather
                if weather is not None
                else DailyWeather(
                    temp_max=30.0, temp_min=22.0, rain=0.0, radiation=20.0
                )
            ),
        )

    return _make
