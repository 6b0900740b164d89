"""
Core containers for soil tests, weather, and simulation state.

This module defines the data model shared by every subsystem. Inputs and
per-component state values are immutable; the single mutable record,
:class:`SimulationState`, is owned by the engine and only ever hands out
frozen :class:`StateSnapshot` copies.

Classes
-------
SoilHealthCard
    Frozen soil-test input that seeds the nutrient pools.
WeatherRegime, Stage
    Enumerations for the daily weather regime and the crop stage.
DailyWeather
    Frozen single-day observation.
CropState, SoilState, StressIndices
    Frozen component values, replaced wholesale each day.
SimulationState
    Mutable aggregate owned by :class:`~agritwin.core.engine.AgriTwinEngine`.
StateSnapshot
    Immutable view returned to callers.

Notes
-----
- ``CropState.biomass`` is a property: total biomass is always the sum of the
  root, stem, leaf and storage pools and is never stored on its own.
- ``yield_forecast`` mirrors the storage pool in the same way.
- The event log is a bounded ``deque`` with the most recent entry first; the
  oldest entry is evicted once the cap is reached.
"""

from __future__ import annotations

import datetime as dt
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

from agritwin.core.crops import CropType, SoilType, crop_profile


@dataclass(frozen=True, slots=True)
class SoilHealthCard:
    """
    Soil Health Card laboratory values.

    Parameters
    ----------
    n, p, k : float
        Available nitrogen, phosphorus and potassium [kg/ha].
    ph : float
        Soil reaction.
    ec : float
        Electrical conductivity [dS/m].
    oc : float
        Organic carbon [%].
    s, zn, fe, cu, mn, b : float or None
        Secondary and micro-nutrients [ppm], when tested.
    card_id : str, default=""
        Identifier printed on the card.
    """

    n: float
    p: float
    k: float
    ph: float
    ec: float
    oc: float
    s: float | None = None
    zn: float | None = None
    fe: float | None = None
    cu: float | None = None
    mn: float | None = None
    b: float | None = None
    card_id: str = ""


class WeatherRegime(str, Enum):
    """Discrete daily weather regimes drawn by the weather generator."""

    SUNNY = "SUNNY"
    RAIN = "RAIN"
    STORM = "STORM"
    DROUGHT = "DROUGHT"

    @property
    def is_wet(self) -> bool:
        return self in (WeatherRegime.RAIN, WeatherRegime.STORM)


class Stage(str, Enum):
    """Crop development stage; ``DEAD`` is absorbing until replanting."""

    SEED = "SEED"
    SEEDLING = "SEEDLING"
    VEGETATIVE = "VEGETATIVE"
    FLOWERING = "FLOWERING"
    HARVEST = "HARVEST"
    DEAD = "DEAD"


@dataclass(frozen=True, slots=True)
class DailyWeather:
    """
    One day of weather forcing.

    Attributes
    ----------
    temp_max, temp_min : float
        Daily extreme air temperatures [°C].
    rain : float
        Rainfall [mm].
    radiation : float
        Global solar radiation [MJ/m²/day].
    et0 : float
        Reference evapotranspiration [mm/day].
    regime : WeatherRegime
        Regime the day was drawn from.
    """

    temp_max: float
    temp_min: float
    rain: float
    radiation: float
    et0: float = 5.0
    regime: WeatherRegime = WeatherRegime.SUNNY

    @property
    def temp_avg(self) -> float:
        return (self.temp_max + self.temp_min) / 2.0

    @property
    def is_rain_day(self) -> bool:
        return self.regime.is_wet


@dataclass(frozen=True, slots=True)
class CropState:
    """
    State of the crop stand.

    Attributes
    ----------
    crop_type : CropType
        Crop being grown.
    name, variety : str
        Display name and variety.
    dvs : float
        Development stage (continuous, ≥ 0, never decreasing).
    biomass_leaf, biomass_stem, biomass_storage, biomass_root : float
        Dry-matter pools [kg/ha], all ≥ 0.
    lai : float
        Leaf-area index, ``0 ≤ lai ≤ max_lai``.
    height : float
        Canopy height [cm], non-decreasing while alive.
    root_depth : float
        Rooting depth [cm].
    health : float
        Composite health in [0, 100].
    weed_density : float
        Competing weed density in [0, 1].
    pest_level : float
        Pest pressure in [0, 100].
    injury : float
        Accumulated damage from disturbances and pests in [0, 100],
        subtracted from the stress-derived health.
    stage : Stage
        Stage derived from ``dvs`` and ``health``.
    """

    crop_type: CropType
    name: str
    variety: str = "High Yielding"
    dvs: float = 0.0
    biomass_leaf: float = 20.0
    biomass_stem: float = 10.0
    biomass_storage: float = 0.0
    biomass_root: float = 20.0
    lai: float = 0.05
    height: float = 5.0
    root_depth: float = 5.0
    health: float = 100.0
    weed_density: float = 0.0
    pest_level: float = 0.0
    injury: float = 0.0
    stage: Stage = Stage.SEED

    @property
    def biomass(self) -> float:
        """Total dry matter, the sum of the four pools [kg/ha]."""
        return (
            self.biomass_root
            + self.biomass_stem
            + self.biomass_leaf
            + self.biomass_storage
        )

    @property
    def is_dead(self) -> bool:
        return self.stage is Stage.DEAD

    @classmethod
    def sown(
        cls, crop_type: CropType | str, weed_density: float = 0.0
    ) -> "CropState":
        """
        Fresh stand at emergence for ``crop_type``.

        Raises
        ------
        UnknownTypeError
            If the crop is not in the knowledge base.
        """
        profile = crop_profile(crop_type)
        return cls(
            crop_type=CropType(crop_type),
            name=profile.name,
            weed_density=weed_density,
        )


@dataclass(frozen=True, slots=True)
class SoilState:
    """
    Single-bucket soil pools.

    Attributes
    ----------
    soil_type : SoilType
        Soil texture.
    moisture : float
        Soil moisture in [0, 100], percent of field capacity.
    n_pool, p_pool, k_pool : float
        Available nutrients [kg/ha], floored at 0.
    """

    soil_type: SoilType
    moisture: float
    n_pool: float
    p_pool: float
    k_pool: float

    @classmethod
    def from_card(
        cls, card: SoilHealthCard, soil_type: SoilType, moisture: float
    ) -> "SoilState":
        """Seed the nutrient pools from a soil test."""
        return cls(
            soil_type=soil_type,
            moisture=min(100.0, max(0.0, moisture)),
            n_pool=max(0.0, card.n),
            p_pool=max(0.0, card.p),
            k_pool=max(0.0, card.k),
        )


@dataclass(frozen=True, slots=True)
class StressIndices:
    """Water, nitrogen and heat stress, each in [0, 1] (0 = no stress)."""

    water: float = 0.0
    nitrogen: float = 0.0
    heat: float = 0.0

    @property
    def limiting(self) -> float:
        """The most severe of the three stresses."""
        return max(self.water, self.nitrogen, self.heat)


@dataclass(frozen=True, slots=True)
class StateSnapshot:
    """
    Immutable copy of the simulation state handed to callers.

    All nested values are frozen and ``event_log`` is a tuple, so no caller
    can reach engine-internal state through a snapshot.
    """

    day: int
    date: dt.date
    region: str
    funds: float
    crop: CropState
    soil: SoilState
    weather: DailyWeather
    stress: StressIndices
    yield_forecast: float
    yield_grade: str | None
    harvested_yield: float | None
    season: int
    active_events: tuple[str, ...]
    event_log: tuple[str, ...]

    @property
    def stage(self) -> Stage:
        return self.crop.stage


@dataclass(slots=True)
class SimulationState:
    """
    The engine's single mutable record.

    Component values (``crop``, ``soil``, ``weather``, ``stress``) are frozen
    and replaced wholesale by the engine each day; only this aggregate
    mutates.
    """

    day: int
    date: dt.date
    region: str
    funds: float
    crop: CropState
    soil: SoilState
    weather: DailyWeather
    stress: StressIndices = field(default_factory=StressIndices)
    yield_grade: str | None = None
    harvested_yield: float | None = None
    season: int = 1
    active_events: tuple[str, ...] = ()
    event_log: deque[str] = field(default_factory=lambda: deque(maxlen=20))

    @property
    def yield_forecast(self) -> float:
        """Yield forecast [kg/ha]; the storage pool itself."""
        return self.crop.biomass_storage

    def log(self, message: str) -> None:
        """Prepend ``"Day N: message"`` to the bounded event log."""
        self.event_log.appendleft(f"Day {self.day}: {message}")

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            day=self.day,
            date=self.date,
            region=self.region,
            funds=self.funds,
            crop=self.crop,
            soil=self.soil,
            weather=self.weather,
            stress=self.stress,
            yield_forecast=self.yield_forecast,
            yield_grade=self.yield_grade,
            harvested_yield=self.harvested_yield,
            season=self.season,
            active_events=self.active_events,
            event_log=tuple(self.event_log),
        )
