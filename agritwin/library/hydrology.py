"""
Single-bucket soil water balance.

Soil moisture is one pool expressed as a percentage of field capacity. Each
day the net balance of rainfall and irrigation against crop
evapotranspiration and weed water use is scaled by the soil's retention and
added to the pool; deep drainage is a separate per-soil loss. The pool is
clamped to ``[0, 100]``; saturation carries no extra penalty beyond the clamp.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from agritwin.core.crops import crop_profile, soil_profile
from agritwin.core.data_containers import SimulationState


def linear_stress(level: float, threshold: float) -> float:
    """Stress rising linearly from 0 at ``threshold`` to 1 at ``level == 0``."""
    if level >= threshold:
        return 0.0
    return float(np.clip((threshold - level) / threshold, 0.0, 1.0))


class WaterBalance(NamedTuple):
    moisture: float
    water_stress: float
    irrigation_mm: float
    etc_mm: float


@dataclass(frozen=True, slots=True)
class HydrologyModel:
    """
    Daily soil-moisture update.

    Parameters
    ----------
    max_irrigation_mm : float, default=1000.0
        Cap on a single irrigation input [mm].
    kc_base : float, default=0.4
        Crop coefficient of bare soil.
    kc_lai_divisor : float, default=3.0
        ``Kc = kc_base + lai / kc_lai_divisor``.
    kc_cap : float, default=1.2
        Upper bound on ``Kc``.
    reference_water_need_mm : float, default=5.0
        Daily water need [mm/day] of a crop whose ETc is not rescaled; a
        crop's own daily need divided by this value multiplies its ETc.
    mm_per_percent : float, default=2.0
        Water depth equivalent to 1% of field capacity [mm].
    weed_water_draw_mm : float, default=2.0
        Weed water use at full competing density [mm/day].
    stress_threshold : float, default=30.0
        Moisture [% FC] below which water stress builds up.

    Notes
    -----
    Whether weeds compete is decided by
    :meth:`~agritwin.library.weeds.WeedModel.competition`; this model only
    receives the competing density.
    """

    max_irrigation_mm: float = 1000.0
    kc_base: float = 0.4
    kc_lai_divisor: float = 3.0
    kc_cap: float = 1.2
    reference_water_need_mm: float = 5.0
    mm_per_percent: float = 2.0
    weed_water_draw_mm: float = 2.0
    stress_threshold: float = 30.0

    def __post_init__(self):
        if self.max_irrigation_mm < 0.0:
            raise ValueError("max_irrigation_mm must be ≥ 0.")
        if self.kc_lai_divisor <= 0.0 or self.mm_per_percent <= 0.0:
            raise ValueError("kc_lai_divisor and mm_per_percent must be > 0.")
        if self.reference_water_need_mm <= 0.0:
            raise ValueError("reference_water_need_mm must be > 0.")
        if not (0.0 < self.stress_threshold <= 100.0):
            raise ValueError("stress_threshold must be in (0, 100].")

    def clamp_irrigation(self, irrigation_mm: float) -> float:
        return float(np.clip(irrigation_mm, 0.0, self.max_irrigation_mm))

    def crop_et(self, et0: float, lai: float, demand: float = 1.0) -> float:
        """Crop ET, ``ET0 * min(Kc, kc_cap) * demand`` [mm/day]."""
        kc = self.kc_base + lai / self.kc_lai_divisor
        return et0 * min(kc, self.kc_cap) * demand

    def infiltrate(
        self, moisture: float, water_mm: float, retention: float
    ) -> float:
        """Add ``water_mm`` of (clamped) irrigation to ``moisture``."""
        gain = self.clamp_irrigation(water_mm) * retention
        return float(np.clip(moisture + gain / self.mm_per_percent, 0, 100))

    def water_stress(self, moisture: float) -> float:
        return linear_stress(moisture, self.stress_threshold)

    def update(
        self,
        state: SimulationState,
        irrigation_mm: float = 0.0,
        weed_competition: float = 0.0,
    ) -> WaterBalance:
        """
        Advance soil moisture by one day.

        Parameters
        ----------
        state : SimulationState
            Reads today's weather, the crop type and LAI, soil moisture and
            soil type.
        irrigation_mm : float
            Irrigation input [mm]; clamped to ``[0, max_irrigation_mm]``.
        weed_competition : float
            Competing weed density in [0, 1]; 0 when weeds are below the
            competition threshold.

        Returns
        -------
        WaterBalance
            New moisture, water stress, applied irrigation and ETc.
        """
        props = soil_profile(state.soil.soil_type)
        demand = (
            crop_profile(state.crop.crop_type).daily_water_need_mm
            / self.reference_water_need_mm
        )
        irrigation = self.clamp_irrigation(irrigation_mm)
        etc = self.crop_et(state.weather.et0, state.crop.lai, demand)

        balance = (
            state.weather.rain
            + irrigation
            - etc
            - self.weed_water_draw_mm * weed_competition
        )
        moisture = (
            state.soil.moisture
            + balance * props.retention / self.mm_per_percent
            - props.drainage
        )
        moisture = float(np.clip(moisture, 0.0, 100.0))
        return WaterBalance(
            moisture=moisture,
            water_stress=self.water_stress(moisture),
            irrigation_mm=irrigation,
            etc_mm=etc,
        )
