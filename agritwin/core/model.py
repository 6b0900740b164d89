"""
Daily crop growth model (phenology, photosynthesis, partitioning, canopy).

This module implements the crop side of the simulation as a sequence of
small, pure substeps executed in a fixed order each day:

1. **Phenology**: daily thermal time ``max(0, T_avg - T_base)`` advances the
   development stage ``dvs`` by ``thermal_time / thermal_time_to_flowering``.
   ``dvs`` is unbounded above and never decreases.
2. **Photosynthesis**: PAR is a fixed fraction of global radiation; the canopy
   intercepts ``1 - exp(-k * LAI)`` of it (Beer's law); dry matter is
   ``RUE * PAR * f_int`` scaled to kg/ha and reduced by the *scarcer* resource,
   ``min(1 - water_stress, 1 - nitrogen_stress)``.
3. **Partitioning**: :func:`partition_fractions` splits the day's dry matter
   across root, stem, leaf and storage as a function of ``dvs`` alone.
4. **Morphology**: LAI expands with leaf dry matter via the specific leaf
   area (capped at the crop maximum) or senesces by a fixed daily fraction;
   height follows stem allocation until a late-stage cutoff; roots deepen
   while vegetative.

The stage of the crop is a pure function of ``dvs`` and ``health`` and is
provided separately as :func:`derive_stage`.

Design Principles
-----------------
- **Deterministic**: no randomness; the same inputs give the same
  :class:`GrowthStep`.
- **Immutable state**: :meth:`GrowthModel.update` returns a new
  :class:`~agritwin.core.data_containers.CropState` instead of mutating.
- **Mass conservation**: pools only accumulate their share of the day's dry
  matter; total biomass is always derived as their sum.

Examples
--------
>>> from agritwin.core.model import GrowthModel, partition_fractions
>>> round(sum(partition_fractions(0.5)), 12)
1.0
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import NamedTuple

import numpy as np

from agritwin.core.crops import CropProfile
from agritwin.core.data_containers import (
    CropState,
    DailyWeather,
    Stage,
    StressIndices,
)


class PartitionFractions(NamedTuple):
    """Shares of daily dry matter per organ; they sum to 1."""

    root: float
    stem: float
    leaf: float
    storage: float


# Fixed split once the crop is past flowering (dvs >= 1).
REPRODUCTIVE_PARTITION = PartitionFractions(
    root=0.1, stem=0.1, leaf=0.0, storage=0.8
)

# Upper dvs bound of each stage; HARVEST beyond the last bound.
STAGE_BOUNDS: tuple[tuple[float, Stage], ...] = (
    (0.1, Stage.SEED),
    (0.4, Stage.SEEDLING),
    (1.0, Stage.VEGETATIVE),
    (2.0, Stage.FLOWERING),
)


def partition_fractions(dvs: float) -> PartitionFractions:
    """
    Dry-matter partitioning as a function of development stage.

    Parameters
    ----------
    dvs : float
        Development stage (≥ 0).

    Returns
    -------
    PartitionFractions
        Below ``dvs = 1`` the root share falls linearly from 0.4 to 0.2 and
        the leaf share from 0.4 to 0.3, with stems taking the remainder and
        nothing going to storage. From ``dvs = 1`` the split switches to the
        fixed :data:`REPRODUCTIVE_PARTITION`.

    Notes
    -----
    The stem share is computed as the complement of root and leaf so the
    vegetative fractions sum to one whatever the root/leaf curves are.
    """
    if dvs >= 1.0:
        return REPRODUCTIVE_PARTITION
    dvs = max(0.0, dvs)
    root = float(np.interp(dvs, [0.0, 1.0], [0.4, 0.2]))
    leaf = float(np.interp(dvs, [0.0, 1.0], [0.4, 0.3]))
    return PartitionFractions(
        root=root, stem=1.0 - root - leaf, leaf=leaf, storage=0.0
    )


def derive_stage(dvs: float, health: float) -> Stage:
    """
    Crop stage from development stage and health.

    ``DEAD`` whenever ``health`` has reached 0, otherwise the first stage in
    :data:`STAGE_BOUNDS` whose bound exceeds ``dvs``, and ``HARVEST`` past
    the last bound.
    """
    if health <= 0.0:
        return Stage.DEAD
    for bound, stage in STAGE_BOUNDS:
        if dvs < bound:
            return stage
    return Stage.HARVEST


class GrowthStep(NamedTuple):
    """Outcome of one :meth:`GrowthModel.update` call."""

    crop: CropState
    dry_matter: float
    partition: PartitionFractions
    thermal_time: float


@dataclass(frozen=True, slots=True)
class GrowthModel:
    r"""
    Radiation-use-efficiency crop growth model.

    Parameters
    ----------
    rue : float, default=2.5
        Radiation-use efficiency [g DM / MJ PAR].
    par_fraction : float, default=0.5
        Share of global radiation that is photosynthetically active.
    extinction : float, default=0.6
        Canopy light-extinction coefficient ``k``.
    g_m2_to_kg_ha : float, default=10.0
        Unit conversion from g/m² to kg/ha.
    thermal_time_per_day : float, default=15.0
        Degree-days per nominal season day; thermal time to flowering is
        ``duration_days * thermal_time_per_day``.
    sla : float, default=0.0025
        Specific leaf area [ha leaf / kg leaf DM].
    senescence_rate : float, default=0.01
        Daily relative LAI loss outside leaf expansion.
    height_per_stem_kg : float, default=0.05
        Height gain per kg/ha of stem dry matter [cm].
    height_cutoff_dvs : float, default=1.2
        Development stage after which height is frozen.
    root_growth_rate : float, default=1.5
        Root elongation without water stress [cm/day].

    Notes
    -----
    Daily dry matter:

    .. math::

        \Delta W = \mathrm{RUE} \cdot f_{PAR} R \cdot
        (1 - e^{-k\,\mathrm{LAI}}) \cdot 10 \cdot
        \min(1 - s_w,\ 1 - s_N)
    """

    rue: float = 2.5
    par_fraction: float = 0.5
    extinction: float = 0.6
    g_m2_to_kg_ha: float = 10.0
    thermal_time_per_day: float = 15.0
    sla: float = 0.0025
    senescence_rate: float = 0.01
    height_per_stem_kg: float = 0.05
    height_cutoff_dvs: float = 1.2
    root_growth_rate: float = 1.5

    def __post_init__(self):
        if self.rue <= 0.0:
            raise ValueError("rue must be positive.")
        if not (0.0 < self.par_fraction <= 1.0):
            raise ValueError("par_fraction must be in (0, 1].")
        if self.thermal_time_per_day <= 0.0:
            raise ValueError("thermal_time_per_day must be positive.")
        if not (0.0 <= self.senescence_rate < 1.0):
            raise ValueError("senescence_rate must be in [0, 1).")

    # ---------------------------
    # Public API
    # ---------------------------
    def update(
        self,
        crop: CropState,
        weather: DailyWeather,
        stress: StressIndices,
        profile: CropProfile,
    ) -> GrowthStep:
        """Advance the crop by one day under today's weather and stress."""
        thermal_time = self._thermal_time(weather.temp_avg, profile.base_temp)
        dvs = crop.dvs + thermal_time / (
            profile.duration_days * self.thermal_time_per_day
        )

        dry_matter = self._dry_matter(weather.radiation, crop.lai, stress)
        fractions = partition_fractions(dvs)

        lai = self._lai_next(crop.lai, dvs, dry_matter, fractions, profile)
        height = self._height_next(crop.height, dvs, dry_matter, fractions)
        root_depth = self._root_next(crop.root_depth, dvs, stress, profile)

        new_crop = replace(
            crop,
            dvs=dvs,
            biomass_root=crop.biomass_root + dry_matter * fractions.root,
            biomass_stem=crop.biomass_stem + dry_matter * fractions.stem,
            biomass_leaf=crop.biomass_leaf + dry_matter * fractions.leaf,
            biomass_storage=(
                crop.biomass_storage + dry_matter * fractions.storage
            ),
            lai=lai,
            height=height,
            root_depth=root_depth,
            health=self.composite_health(stress, crop.injury),
        )
        return GrowthStep(new_crop, dry_matter, fractions, thermal_time)

    @staticmethod
    def composite_health(stress: StressIndices, injury: float = 0.0) -> float:
        """``100 * (1 - max stress)`` less accumulated injury, in [0, 100]."""
        health = 100.0 * (1.0 - stress.limiting) - injury
        return float(np.clip(health, 0.0, 100.0))

    @staticmethod
    def heat_stress(temp_max: float, profile: CropProfile) -> float:
        """
        Heat stress from the daily maximum temperature.

        Zero up to ``profile.heat_onset``, rising linearly to one at
        ``profile.heat_critical`` (the hot side of a thermal trapezoid).
        """
        span = profile.heat_critical - profile.heat_onset
        return float(np.clip((temp_max - profile.heat_onset) / span, 0.0, 1.0))

    # ---------------------------
    # Substeps
    # ---------------------------
    @staticmethod
    def _thermal_time(temp_avg: float, base_temp: float) -> float:
        """Degree-days above the base temperature."""
        return max(0.0, temp_avg - base_temp)

    def intercepted_fraction(self, lai: float) -> float:
        """Beer's law light interception, ``1 - exp(-k * LAI)``."""
        return float(1.0 - np.exp(-self.extinction * max(0.0, lai)))

    def _dry_matter(
        self, radiation: float, lai: float, stress: StressIndices
    ) -> float:
        par = radiation * self.par_fraction
        potential = (
            self.rue * par * self.intercepted_fraction(lai) * self.g_m2_to_kg_ha
        )
        growth_factor = min(1.0 - stress.water, 1.0 - stress.nitrogen)
        return max(0.0, potential * growth_factor)

    def _lai_next(
        self,
        lai: float,
        dvs: float,
        dry_matter: float,
        fractions: PartitionFractions,
        profile: CropProfile,
    ) -> float:
        """Leaf expansion while vegetative, senescence afterwards."""
        if dvs < 1.0 and fractions.leaf > 0.0:
            lai = lai + dry_matter * fractions.leaf * self.sla
        else:
            lai = lai - self.senescence_rate * lai
        return float(np.clip(lai, 0.0, profile.max_lai))

    def _height_next(
        self,
        height: float,
        dvs: float,
        dry_matter: float,
        fractions: PartitionFractions,
    ) -> float:
        if dvs >= self.height_cutoff_dvs:
            return height
        return height + dry_matter * fractions.stem * self.height_per_stem_kg

    def _root_next(
        self,
        root_depth: float,
        dvs: float,
        stress: StressIndices,
        profile: CropProfile,
    ) -> float:
        """Root deepening, slowed by water stress, capped at crop maximum."""
        if dvs >= 1.0:
            return root_depth
        growth = self.root_growth_rate * (1.0 - stress.water)
        return min(profile.max_root_depth_cm, root_depth + growth)
