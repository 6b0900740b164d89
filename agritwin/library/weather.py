"""
Stochastic daily weather generation.

The generator draws one :class:`~agritwin.core.data_containers.DailyWeather`
per day from a regional weather bias and the day of the season. A sine of the
day counter shifts the baseline temperatures, and a single uniform draw
against the region's cumulative regime table selects sun, rain, storm or
drought. Wet regimes draw a bounded rainfall amount and lower radiation
(cloud cover); dry regimes set rainfall to zero and raise radiation.

The generator keeps no state of its own. Anything exposing the same
``generate(bias, day, rng)`` signature (see :class:`WeatherSource`) can replace
it, e.g. an adapter over a forecast feed.

Randomness comes from the injected ``rng``: any object with ``random()`` and
``uniform(low, high)``, typically :class:`numpy.random.Generator`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Protocol

import numpy as np

from agritwin.core.crops import CropType, coerce_key
from agritwin.core.data_containers import DailyWeather, WeatherRegime


class RandomSource(Protocol):
    """Minimal random-number interface (satisfied by numpy's Generator)."""

    def random(self) -> float: ...

    def uniform(self, low: float, high: float) -> float: ...


class WeatherBias(str, Enum):
    EXTREME = "EXTREME"
    HUMID = "HUMID"
    RAINY = "RAINY"
    DRY = "DRY"


class Region(str, Enum):
    NORTH = "NORTH"
    SOUTH = "SOUTH"
    EAST = "EAST"
    WEST = "WEST"


@dataclass(frozen=True, slots=True)
class RegionProfile:
    """Region display name, weather bias and traditionally grown crops."""

    name: str
    weather_bias: WeatherBias
    crops: frozenset[CropType]


REGION_LIBRARY: Mapping[Region, RegionProfile] = MappingProxyType(
    {
        Region.NORTH: RegionProfile(
            "North India",
            WeatherBias.EXTREME,
            frozenset({CropType.WHEAT, CropType.MAIZE}),
        ),
        Region.SOUTH: RegionProfile(
            "South India",
            WeatherBias.HUMID,
            frozenset({CropType.RICE, CropType.COTTON, CropType.CHILLI}),
        ),
        Region.EAST: RegionProfile(
            "East India",
            WeatherBias.RAINY,
            frozenset({CropType.RICE, CropType.MAIZE}),
        ),
        Region.WEST: RegionProfile(
            "West India",
            WeatherBias.DRY,
            frozenset({CropType.COTTON, CropType.WHEAT, CropType.CHILLI}),
        ),
    }
)

# Cumulative regime probabilities; the first entry whose bound exceeds the
# draw wins, the last bound must be 1.0.
REGIME_TABLES: Mapping[WeatherBias, tuple[tuple[float, WeatherRegime], ...]] = (
    MappingProxyType(
        {
            WeatherBias.RAINY: (
                (0.4, WeatherRegime.RAIN),
                (0.7, WeatherRegime.SUNNY),
                (1.0, WeatherRegime.STORM),
            ),
            WeatherBias.DRY: (
                (0.6, WeatherRegime.SUNNY),
                (0.8, WeatherRegime.DROUGHT),
                (1.0, WeatherRegime.RAIN),
            ),
            WeatherBias.HUMID: (
                (0.5, WeatherRegime.SUNNY),
                (1.0, WeatherRegime.RAIN),
            ),
            WeatherBias.EXTREME: (
                (0.3, WeatherRegime.SUNNY),
                (0.6, WeatherRegime.RAIN),
                (0.8, WeatherRegime.DROUGHT),
                (1.0, WeatherRegime.STORM),
            ),
        }
    )
)


def region_profile(region: Region | str) -> RegionProfile:
    """Return the static record for ``region`` (``UnknownTypeError`` if absent)."""
    return REGION_LIBRARY[coerce_key(Region, region, "region")]


def select_regime(bias: WeatherBias, roll: float) -> WeatherRegime:
    """Map a uniform draw in [0, 1) onto the bias's regime table."""
    table = REGIME_TABLES[bias]
    for bound, regime in table:
        if roll < bound:
            return regime
    return table[-1][1]


class WeatherSource(Protocol):
    def generate(
        self, bias: WeatherBias, day: int, rng: RandomSource
    ) -> DailyWeather: ...


@dataclass(frozen=True, slots=True)
class RegimeWeather:
    """
    Sky and water-demand settings for one regime.

    ``rain_range`` is the ``(low, high)`` rainfall draw in mm; ``None`` means
    a dry day.
    """

    radiation: float
    et0: float
    rain_range: tuple[float, float] | None = None
    heat_offset: float = 0.0


def _default_regimes() -> Mapping[WeatherRegime, RegimeWeather]:
    return MappingProxyType(
        {
            WeatherRegime.SUNNY: RegimeWeather(radiation=22.0, et0=5.0),
            WeatherRegime.DROUGHT: RegimeWeather(
                radiation=25.0, et0=7.0, heat_offset=2.0
            ),
            WeatherRegime.RAIN: RegimeWeather(
                radiation=10.0, et0=3.0, rain_range=(0.0, 40.0)
            ),
            WeatherRegime.STORM: RegimeWeather(
                radiation=6.0, et0=2.0, rain_range=(40.0, 80.0)
            ),
        }
    )


@dataclass(frozen=True, slots=True)
class WeatherGenerator:
    """
    Regime-switching daily weather generator.

    Parameters
    ----------
    base_temp_max, base_temp_min : float
        Baseline daily maximum and minimum temperature [°C].
    seasonal_amplitude : float
        Amplitude of the sine shift applied to both baselines [°C].
    seasonal_period : float
        Day divisor inside the sine, ``sin(day / seasonal_period)``.
    temp_jitter : float
        Upper bound of the uniform jitter widening the diurnal range [°C].
    regimes : mapping of WeatherRegime to RegimeWeather
        Radiation, ET0 and rainfall settings per regime.
    """

    base_temp_max: float = 32.0
    base_temp_min: float = 24.0
    seasonal_amplitude: float = 5.0
    seasonal_period: float = 60.0
    temp_jitter: float = 2.0
    regimes: Mapping[WeatherRegime, RegimeWeather] = field(
        default_factory=_default_regimes
    )

    def __post_init__(self):
        if self.base_temp_min > self.base_temp_max:
            raise ValueError("base_temp_min must not exceed base_temp_max.")
        if self.seasonal_period <= 0.0:
            raise ValueError("seasonal_period must be positive.")
        if self.temp_jitter < 0.0:
            raise ValueError("temp_jitter must be ≥ 0.")
        missing = set(WeatherRegime) - set(self.regimes)
        if missing:
            raise ValueError(
                f"Missing regime settings: {sorted(m.value for m in missing)}"
            )

    def seasonal_shift(self, day: int) -> float:
        """Temperature shift for ``day`` [°C]."""
        return math.sin(day / self.seasonal_period) * self.seasonal_amplitude

    def generate(
        self, bias: WeatherBias | str, day: int, rng: RandomSource
    ) -> DailyWeather:
        """
        Draw the weather for ``day``.

        Parameters
        ----------
        bias : WeatherBias or str
            Regional weather bias selecting the regime table.
        day : int
            Day of the season (drives the sine temperature shift).
        rng : RandomSource
            Random source; three draws are consumed on dry days, four on wet
            days.

        Returns
        -------
        DailyWeather
        """
        bias = coerce_key(WeatherBias, bias, "weather bias")
        shift = self.seasonal_shift(day)
        temp_max = (
            self.base_temp_max + shift + rng.uniform(0.0, self.temp_jitter)
        )
        temp_min = (
            self.base_temp_min + shift - rng.uniform(0.0, self.temp_jitter)
        )

        regime = select_regime(bias, rng.random())
        settings = self.regimes[regime]
        if settings.rain_range is None:
            rain = 0.0
        else:
            rain = float(rng.uniform(*settings.rain_range))

        return DailyWeather(
            temp_max=float(temp_max + settings.heat_offset),
            temp_min=float(temp_min),
            rain=rain,
            radiation=settings.radiation,
            et0=settings.et0,
            regime=regime,
        )


def as_random_source(rng: RandomSource | int | None = None) -> RandomSource:
    """
    Normalize ``rng`` to a random source.

    Objects already exposing ``random`` and ``uniform`` (a numpy
    ``Generator`` or a test double) are returned unchanged; seeds and
    ``None`` go through :func:`numpy.random.default_rng`.
    """
    if hasattr(rng, "random") and hasattr(rng, "uniform"):
        return rng
    return np.random.default_rng(rng)
