"""
Random field disturbances and pest pressure.

Shocks are rare discrete events (locust attack, heavy wind) that injure the
crop and may raise pest pressure. Pests also build up on their own in
proportion to the crop's susceptibility. Injury accumulates while pests sit
above the damage threshold and heals slowly once they are under control.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from agritwin.library.weather import RandomSource


class Disturbance(NamedTuple):
    name: str
    injury: float
    pest_increase: float
    message: str


LOCUST_ATTACK = Disturbance(
    "Locust Attack", 20.0, 40.0, "LOCUST ATTACK! Crop damaged."
)
HEAVY_WIND = Disturbance("Heavy Wind", 5.0, 0.0, "HEAVY WIND! Minor damage.")


@dataclass(frozen=True, slots=True)
class DisturbanceModel:
    """
    Shock and pest parameters.

    Parameters
    ----------
    event_chance : float, default=0.05
        Daily probability of a shock.
    locust_share : float, default=0.5
        Share of shocks that are locust attacks (the rest is wind).
    pest_build_chance : float, default=0.4
        Daily probability that pests build up.
    pest_build : float, default=5.0
        Build-up amount, scaled by the crop's pest risk.
    damage_threshold : float, default=40.0
        Pest level above which the crop takes ``pest_injury`` per day.
    pest_injury : float, default=5.0
    recovery_threshold : float, default=20.0
        Pest level below which injury heals by ``recovery`` per day.
    recovery : float, default=2.0
    pesticide_effect : float, default=50.0
        Pest reduction from one pesticide spray.
    """

    event_chance: float = 0.05
    locust_share: float = 0.5
    pest_build_chance: float = 0.4
    pest_build: float = 5.0
    damage_threshold: float = 40.0
    pest_injury: float = 5.0
    recovery_threshold: float = 20.0
    recovery: float = 2.0
    pesticide_effect: float = 50.0

    def __post_init__(self):
        for v in (self.event_chance, self.locust_share, self.pest_build_chance):
            if not (0.0 <= v <= 1.0):
                raise ValueError("Probabilities must be in [0, 1].")

    def roll(self, rng: RandomSource) -> Disturbance | None:
        """Draw today's shock, if any."""
        if rng.random() >= self.event_chance:
            return None
        if rng.random() < self.locust_share:
            return LOCUST_ATTACK
        return HEAVY_WIND

    def pest_pressure(
        self, pest_level: float, pest_risk: float, rng: RandomSource
    ) -> float:
        """Pest level after today's spontaneous build-up, in [0, 100]."""
        if rng.random() < self.pest_build_chance:
            pest_level += self.pest_build * pest_risk
        return min(100.0, max(0.0, pest_level))

    def injury_change(self, pest_level: float) -> float:
        """Daily injury increment (positive) or healing (negative)."""
        if pest_level > self.damage_threshold:
            return self.pest_injury
        if pest_level < self.recovery_threshold:
            return -self.recovery
        return 0.0

    def spray(self, pest_level: float) -> float:
        return max(0.0, pest_level - self.pesticide_effect)
