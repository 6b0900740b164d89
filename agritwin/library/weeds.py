"""Weed density growth and canopy suppression."""

from __future__ import annotations

from dataclasses import dataclass

from agritwin.core.data_containers import SimulationState


@dataclass(frozen=True, slots=True)
class WeedModel:
    """
    Daily weed-density update.

    Parameters
    ----------
    base_growth : float, default=0.02
        Daily density increment.
    rain_growth : float, default=0.02
        Extra increment on rain and storm days.
    lush_growth : float, default=0.01
        Extra increment when soil N exceeds ``lush_nitrogen``.
    lush_nitrogen : float, default=60.0
        Soil N [kg/ha] above which weeds profit from fertility.
    suppression_per_lai : float, default=0.05
        Growth removed per unit crop LAI (shading).
    competition_threshold : float, default=0.3
        Density above which weeds draw water and nitrogen (see
        :meth:`competition`).
    """

    base_growth: float = 0.02
    rain_growth: float = 0.02
    lush_growth: float = 0.01
    lush_nitrogen: float = 60.0
    suppression_per_lai: float = 0.05
    competition_threshold: float = 0.3

    def __post_init__(self):
        if not (0.0 <= self.competition_threshold <= 1.0):
            raise ValueError("competition_threshold must be in [0, 1].")

    def update(self, state: SimulationState, is_rain_day: bool) -> float:
        """
        New weed density for today.

        Canopy shading can cut the day's growth to zero but never removes
        established weeds; only weeding lowers the density.
        """
        growth = self.base_growth
        if is_rain_day:
            growth += self.rain_growth
        if state.soil.n_pool > self.lush_nitrogen:
            growth += self.lush_growth
        growth = max(0.0, growth - self.suppression_per_lai * state.crop.lai)
        return min(1.0, max(0.0, state.crop.weed_density + growth))

    def is_competing(self, density: float) -> bool:
        return density > self.competition_threshold

    def competition(self, density: float) -> float:
        """
        Density competing for water and nitrogen.

        Equal to ``density`` above ``competition_threshold`` and 0 otherwise;
        the soil water and nitrogen balances both take this value.
        """
        return density if self.is_competing(density) else 0.0

    @staticmethod
    def remove(density: float, amount: float) -> float:
        """Density after manual weeding of ``amount``."""
        return max(0.0, density - amount)
