# tests/test_weather.py
from __future__ import annotations

import numpy as np
import numpy.testing as npt
import pytest

from agritwin.core.crops import CropType
from agritwin.core.data_containers import WeatherRegime
from agritwin.core.exceptions import UnknownTypeError
from agritwin.library.weather import (
    REGIME_TABLES,
    Region,
    WeatherBias,
    WeatherGenerator,
    as_random_source,
    region_profile,
    select_regime,
)


@pytest.mark.parametrize("bias", list(WeatherBias))
def test_regime_tables_are_cumulative(bias):
    bounds = [bound for bound, _ in REGIME_TABLES[bias]]
    assert bounds == sorted(bounds)
    assert bounds[-1] == 1.0


@pytest.mark.parametrize(
    "bias, roll, expected",
    [
        (WeatherBias.RAINY, 0.1, WeatherRegime.RAIN),
        (WeatherBias.RAINY, 0.5, WeatherRegime.SUNNY),
        (WeatherBias.RAINY, 0.9, WeatherRegime.STORM),
        (WeatherBias.DRY, 0.5, WeatherRegime.SUNNY),
        (WeatherBias.DRY, 0.7, WeatherRegime.DROUGHT),
        (WeatherBias.DRY, 0.95, WeatherRegime.RAIN),
        (WeatherBias.HUMID, 0.2, WeatherRegime.SUNNY),
        (WeatherBias.HUMID, 0.5, WeatherRegime.RAIN),
        (WeatherBias.EXTREME, 0.65, WeatherRegime.DROUGHT),
        (WeatherBias.EXTREME, 0.99, WeatherRegime.STORM),
    ],
)
def test_select_regime(bias, roll, expected):
    assert select_regime(bias, roll) is expected


def test_region_profiles():
    west = region_profile("WEST")
    assert west.weather_bias is WeatherBias.DRY
    assert CropType.COTTON in west.crops
    assert region_profile(Region.EAST).weather_bias is WeatherBias.RAINY
    with pytest.raises(UnknownTypeError):
        region_profile("ATLANTIS")


def test_dry_day_has_no_rain_and_high_radiation(fixed_random):
    gen = WeatherGenerator()
    w = gen.generate(WeatherBias.DRY, day=0, rng=fixed_random(0.5))
    assert w.regime is WeatherRegime.SUNNY
    assert w.rain == 0.0
    assert not w.is_rain_day
    # sin(0) = 0 and the jitter draw is the midpoint of [0, 2].
    npt.assert_allclose([w.temp_max, w.temp_min], [33.0, 23.0])


def test_storm_rain_within_bounds(fixed_random):
    gen = WeatherGenerator()
    w = gen.generate(WeatherBias.RAINY, day=10, rng=fixed_random(0.9))
    assert w.regime is WeatherRegime.STORM
    assert 40.0 <= w.rain <= 80.0
    assert w.radiation < gen.regimes[WeatherRegime.SUNNY].radiation


def test_seasonal_shift_moves_temperatures(fixed_random):
    gen = WeatherGenerator()
    cool = gen.generate(WeatherBias.HUMID, day=0, rng=fixed_random(0.2))
    warm = gen.generate(WeatherBias.HUMID, day=94, rng=fixed_random(0.2))
    npt.assert_allclose(
        warm.temp_max - cool.temp_max, 5.0 * np.sin(94 / 60.0), rtol=1e-12
    )


def test_same_seed_same_weather():
    gen = WeatherGenerator()
    a = np.random.default_rng(11)
    b = np.random.default_rng(11)
    for day in range(1, 50):
        assert gen.generate("EXTREME", day, a) == gen.generate(
            "EXTREME", day, b
        )


def test_generated_weather_is_physical():
    gen = WeatherGenerator()
    rng = np.random.default_rng(3)
    days = [gen.generate(WeatherBias.EXTREME, d, rng) for d in range(1, 400)]
    rain = np.array([w.rain for w in days])
    assert np.all(rain >= 0.0) and np.all(rain <= 80.0)
    assert all(w.temp_max >= w.temp_min for w in days)
    assert all((w.rain > 0.0) <= w.is_rain_day for w in days)
    assert {w.regime for w in days} == set(WeatherRegime)


def test_unknown_bias_raises():
    with pytest.raises(UnknownTypeError):
        WeatherGenerator().generate("MONSOON", 1, np.random.default_rng(0))


def test_generator_validates_parameters():
    with pytest.raises(ValueError):
        WeatherGenerator(base_temp_max=20.0, base_temp_min=25.0)
    with pytest.raises(ValueError):
        WeatherGenerator(seasonal_period=0.0)


def test_as_random_source_passes_through_generators(fixed_random):
    stub = fixed_random(0.3)
    assert as_random_source(stub) is stub
    seeded = as_random_source(5)
    assert isinstance(seeded, np.random.Generator)
    npt.assert_allclose(seeded.random(), np.random.default_rng(5).random())
