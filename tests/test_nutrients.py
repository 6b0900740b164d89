# tests/test_nutrients.py
from __future__ import annotations

from dataclasses import replace

import numpy.testing as npt

from agritwin.core.crops import SoilType
from agritwin.core.data_containers import SoilState
from agritwin.library.nutrients import NutrientModel

ATOL = 1e-9


def test_daily_balance(make_state):
    # 100 + 0.5 mineralization - 0.05 * 1.5 uptake - 2 loamy leaching
    out = NutrientModel().update(make_state())
    npt.assert_allclose(out.n_pool, 98.425, atol=ATOL)
    npt.assert_allclose(out.uptake_kg, 0.075, atol=ATOL)
    assert out.nitrogen_stress == 0.0


def test_fertilizer_is_clamped(make_state):
    model = NutrientModel()
    state = make_state()
    out = model.update(state, 800.0)
    assert out.fertilizer_kg == 500.0
    npt.assert_allclose(out.n_pool, 598.425, atol=ATOL)
    assert model.update(state, -10.0) == model.update(state, 0.0)


def test_pool_is_floored_at_zero(make_state):
    state = make_state(soil=SoilState(SoilType.SANDY, 50.0, 1.0, 10, 100))
    out = NutrientModel().update(state)
    assert out.n_pool == 0.0
    assert out.nitrogen_stress == 1.0


def test_competing_weeds_take_nitrogen(make_state):
    model = NutrientModel()
    state = make_state()
    npt.assert_allclose(
        model.update(state).n_pool
        - model.update(state, weed_competition=0.6).n_pool,
        0.5 * 0.6,
        atol=ATOL,
    )


def test_uptake_grows_with_canopy(make_state):
    model = NutrientModel()
    base = make_state()
    dense = replace(base, crop=replace(base.crop, lai=4.0))
    assert model.update(dense).uptake_kg == 6.0
    assert model.update(dense).n_pool < model.update(base).n_pool


def test_nitrogen_stress_is_linear():
    model = NutrientModel()
    npt.assert_allclose(
        [model.nitrogen_stress(v) for v in (40.0, 20.0, 10.0, 0.0)],
        [0.0, 0.0, 0.5, 1.0],
    )
