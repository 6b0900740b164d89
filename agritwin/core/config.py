"""
Engine configuration.

:class:`EngineConfig` gathers the orchestrator constants (funds, action costs
and doses, event-log size, initial conditions) together with one instance of
each subsystem model. Like the subsystem parameter sets it is frozen and
validated on construction; override any field by passing it explicitly.

Examples
--------
>>> from agritwin.core.config import EngineConfig
>>> from agritwin.library.hydrology import HydrologyModel
>>> cfg = EngineConfig(
...     starting_funds=200.0,
...     hydrology=HydrologyModel(max_irrigation_mm=500.0),
... )
"""

from __future__ import annotations

from dataclasses import dataclass, field

from agritwin.core.model import GrowthModel
from agritwin.library.disturbance import DisturbanceModel
from agritwin.library.hydrology import HydrologyModel
from agritwin.library.nutrients import NutrientModel
from agritwin.library.weather import WeatherGenerator, WeatherSource
from agritwin.library.weeds import WeedModel


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """
    Orchestrator settings and subsystem models.

    Parameters
    ----------
    starting_funds : float, default=1000.0
    water_cost, fertilizer_cost, pesticide_cost : float
        Price of the costed actions (10, 50, 100).
    water_dose_mm : float, default=60.0
        Irrigation applied by one WATER action [mm].
    fertilizer_dose_kg : float, default=40.0
        N applied by one FERTILIZE action before soil efficiency [kg/ha].
    weeding_removal : float, default=0.5
        Weed density removed by one weeding.
    weed_carryover : float, default=0.1
        Weed density left in the field after a harvest.
    initial_moisture : float, default=50.0
        Soil moisture at construction [% FC].
    event_log_size : int, default=20
        Maximum number of retained events.
    weather, growth, hydrology, nutrients, weeds, disturbance
        Subsystem models.
    """

    starting_funds: float = 1000.0
    water_cost: float = 10.0
    fertilizer_cost: float = 50.0
    pesticide_cost: float = 100.0
    water_dose_mm: float = 60.0
    fertilizer_dose_kg: float = 40.0
    weeding_removal: float = 0.5
    weed_carryover: float = 0.1
    initial_moisture: float = 50.0
    event_log_size: int = 20

    weather: WeatherSource = field(default_factory=WeatherGenerator)
    growth: GrowthModel = field(default_factory=GrowthModel)
    hydrology: HydrologyModel = field(default_factory=HydrologyModel)
    nutrients: NutrientModel = field(default_factory=NutrientModel)
    weeds: WeedModel = field(default_factory=WeedModel)
    disturbance: DisturbanceModel = field(default_factory=DisturbanceModel)

    def __post_init__(self):
        for name in ("water_cost", "fertilizer_cost", "pesticide_cost"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must be ≥ 0.")
        if not (0.0 <= self.weeding_removal <= 1.0):
            raise ValueError("weeding_removal must be in [0, 1].")
        if not (0.0 <= self.weed_carryover <= 1.0):
            raise ValueError("weed_carryover must be in [0, 1].")
        if not (0.0 <= self.initial_moisture <= 100.0):
            raise ValueError("initial_moisture must be in [0, 100].")
        if self.event_log_size < 1:
            raise ValueError("event_log_size must be at least 1.")
