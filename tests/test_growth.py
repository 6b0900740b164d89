# tests/test_growth.py
from __future__ import annotations

from dataclasses import replace

import numpy as np
import numpy.testing as npt
import pytest

from agritwin.core.crops import CropType, crop_profile
from agritwin.core.data_containers import (
    CropState,
    DailyWeather,
    Stage,
    StressIndices,
)
from agritwin.core.model import (
    REPRODUCTIVE_PARTITION,
    GrowthModel,
    derive_stage,
    partition_fractions,
)

ATOL = 1e-9

WHEAT = crop_profile(CropType.WHEAT)
WARM_DAY = DailyWeather(temp_max=30.0, temp_min=20.0, rain=0.0, radiation=20.0)
NO_STRESS = StressIndices()


def test_partition_sums_to_one_everywhere():
    for dvs in np.linspace(0.0, 3.0, 301):
        fractions = partition_fractions(dvs)
        npt.assert_allclose(sum(fractions), 1.0, atol=1e-12, err_msg=f"dvs={dvs}")
        assert min(fractions) >= 0.0


def test_partition_end_points():
    npt.assert_allclose(partition_fractions(0.0), [0.4, 0.2, 0.4, 0.0])
    npt.assert_allclose(
        partition_fractions(0.999), [0.2002, 0.4997, 0.3001, 0.0], atol=1e-12
    )
    assert partition_fractions(1.0) == REPRODUCTIVE_PARTITION
    assert partition_fractions(2.5) == REPRODUCTIVE_PARTITION


@pytest.mark.parametrize(
    "dvs, health, stage",
    [
        (0.0, 100.0, Stage.SEED),
        (0.1, 100.0, Stage.SEEDLING),
        (0.39, 50.0, Stage.SEEDLING),
        (0.4, 100.0, Stage.VEGETATIVE),
        (1.0, 100.0, Stage.FLOWERING),
        (2.0, 100.0, Stage.HARVEST),
        (0.5, 0.0, Stage.DEAD),
        (2.5, 0.0, Stage.DEAD),
    ],
)
def test_derive_stage(dvs, health, stage):
    assert derive_stage(dvs, health) is stage


def test_mass_is_conserved():
    crop = CropState.sown(CropType.WHEAT)
    step = GrowthModel().update(crop, WARM_DAY, NO_STRESS, WHEAT)
    assert step.dry_matter > 0.0
    npt.assert_allclose(
        step.crop.biomass, crop.biomass + step.dry_matter, atol=ATOL
    )


def test_dvs_advances_by_thermal_time():
    crop = CropState.sown(CropType.WHEAT)
    step = GrowthModel().update(crop, WARM_DAY, NO_STRESS, WHEAT)
    # T_avg 25, base 5 -> 20 degree-days over 110 * 15
    npt.assert_allclose(step.thermal_time, 20.0)
    npt.assert_allclose(step.crop.dvs, 20.0 / (110 * 15), atol=ATOL)


def test_cold_day_does_not_develop_the_crop():
    crop = CropState.sown(CropType.RICE)
    cold = DailyWeather(temp_max=8.0, temp_min=2.0, rain=0.0, radiation=10.0)
    step = GrowthModel().update(crop, cold, NO_STRESS, crop_profile("RICE"))
    assert step.crop.dvs == crop.dvs


def test_scarcer_resource_limits_growth():
    model = GrowthModel()
    crop = replace(CropState.sown(CropType.WHEAT), lai=2.0)
    free = model.update(crop, WARM_DAY, NO_STRESS, WHEAT).dry_matter
    both = model.update(
        crop, WARM_DAY, StressIndices(water=0.6, nitrogen=0.2), WHEAT
    ).dry_matter
    npt.assert_allclose(both, free * 0.4, atol=ATOL)


def test_full_water_stress_stops_growth():
    crop = CropState.sown(CropType.WHEAT)
    step = GrowthModel().update(crop, WARM_DAY, StressIndices(water=1.0), WHEAT)
    assert step.dry_matter == 0.0
    npt.assert_allclose(step.crop.biomass, crop.biomass)
    assert step.crop.root_depth == crop.root_depth
    assert step.crop.health == 0.0


def test_lai_is_capped_at_crop_maximum():
    crop = replace(
        CropState.sown(CropType.WHEAT), lai=WHEAT.max_lai - 1e-3, dvs=0.5
    )
    step = GrowthModel().update(crop, WARM_DAY, NO_STRESS, WHEAT)
    assert step.crop.lai == WHEAT.max_lai


def test_canopy_senesces_after_flowering():
    crop = replace(CropState.sown(CropType.WHEAT), lai=4.0, dvs=1.5)
    step = GrowthModel().update(crop, WARM_DAY, NO_STRESS, WHEAT)
    npt.assert_allclose(step.crop.lai, 4.0 * 0.99)
    assert step.crop.height == crop.height
    assert step.crop.biomass_leaf == crop.biomass_leaf
    assert step.crop.biomass_storage > 0.0


def test_roots_stop_at_maximum_depth():
    crop = replace(
        CropState.sown(CropType.CHILLI), root_depth=59.5, dvs=0.5
    )
    step = GrowthModel().update(
        crop, WARM_DAY, NO_STRESS, crop_profile(CropType.CHILLI)
    )
    assert step.crop.root_depth == 60.0


def test_health_combines_stress_and_injury():
    health = GrowthModel.composite_health(
        StressIndices(water=0.1, nitrogen=0.3, heat=0.2), injury=10.0
    )
    npt.assert_allclose(health, 60.0)
    assert GrowthModel.composite_health(StressIndices(), injury=150.0) == 0.0


def test_heat_stress_ramp():
    # Wheat: onset 34, critical 44
    assert GrowthModel.heat_stress(30.0, WHEAT) == 0.0
    npt.assert_allclose(GrowthModel.heat_stress(39.0, WHEAT), 0.5)
    assert GrowthModel.heat_stress(50.0, WHEAT) == 1.0
