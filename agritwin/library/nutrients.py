"""
Single-pool soil nitrogen balance.

The pool gains a constant mineralization flux and fertilizer, and loses
canopy-driven crop uptake, soil leaching, and weed uptake once weeds pass the
competition threshold. It is floored at zero: demand the soil cannot meet is
simply unmet and never carried over as a debt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from agritwin.core.crops import soil_profile
from agritwin.core.data_containers import SimulationState
from agritwin.library.hydrology import linear_stress


class NitrogenBalance(NamedTuple):
    n_pool: float
    nitrogen_stress: float
    fertilizer_kg: float
    uptake_kg: float


@dataclass(frozen=True, slots=True)
class NutrientModel:
    """
    Daily nitrogen update.

    Parameters
    ----------
    max_fertilizer_kg : float, default=500.0
        Cap on a single N application [kg/ha].
    mineralization : float, default=0.5
        Daily N release from organic matter [kg/ha/day].
    uptake_per_lai : float, default=1.5
        Crop N demand per unit LAI [kg/ha/day].
    weed_uptake : float, default=0.5
        Weed N uptake at full competing density [kg/ha/day].
    stress_threshold : float, default=20.0
        Pool size [kg/ha] below which nitrogen stress builds up.
    """

    max_fertilizer_kg: float = 500.0
    mineralization: float = 0.5
    uptake_per_lai: float = 1.5
    weed_uptake: float = 0.5
    stress_threshold: float = 20.0

    def __post_init__(self):
        if self.max_fertilizer_kg < 0.0 or self.mineralization < 0.0:
            raise ValueError(
                "max_fertilizer_kg and mineralization must be ≥ 0."
            )
        if self.stress_threshold <= 0.0:
            raise ValueError("stress_threshold must be positive.")

    def clamp_fertilizer(self, fertilizer_kg: float) -> float:
        return float(np.clip(fertilizer_kg, 0.0, self.max_fertilizer_kg))

    def nitrogen_stress(self, n_pool: float) -> float:
        return linear_stress(n_pool, self.stress_threshold)

    def update(
        self,
        state: SimulationState,
        fertilizer_kg: float = 0.0,
        weed_competition: float = 0.0,
    ) -> NitrogenBalance:
        """
        Advance the nitrogen pool by one day.

        ``fertilizer_kg`` is clamped to ``[0, max_fertilizer_kg]``;
        ``weed_competition`` is the competing weed density (0 below the weed
        competition threshold). Returns the new pool, nitrogen stress, the
        applied dose and today's crop uptake demand.
        """
        props = soil_profile(state.soil.soil_type)
        fertilizer = self.clamp_fertilizer(fertilizer_kg)
        uptake = state.crop.lai * self.uptake_per_lai

        losses = (
            uptake
            + props.nutrient_leak
            + self.weed_uptake * weed_competition
        )

        n_pool = max(
            0.0, state.soil.n_pool + self.mineralization + fertilizer - losses
        )
        return NitrogenBalance(
            n_pool=n_pool,
            nitrogen_stress=self.nitrogen_stress(n_pool),
            fertilizer_kg=fertilizer,
            uptake_kg=uptake,
        )
