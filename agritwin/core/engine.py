"""
Simulation orchestrator.

:class:`AgriTwinEngine` owns the single :class:`SimulationState` of one crop
stand and advances it day by day. Every public operation returns a frozen
:class:`StateSnapshot`; callers never get a handle on engine internals.

Daily sequence (:meth:`AgriTwinEngine.next_day`)
------------------------------------------------
1. weather generation,
2. random disturbance and pest pressure,
3. weed growth (using today's weather),
4. hydrology (weather + irrigation),
5. nitrogen balance (fertilizer),
6. crop growth (consuming the freshly computed stress),
7. stage re-derivation,
8. event-log entry.

A ``harvest`` request short-circuits into the harvest/replant transition at
any stage and skips the rest of the sequence. The ``HARVEST`` action, by
contrast, is refused before the crop is ready.

Concurrency
-----------
The engine is synchronous and keeps no locks. Confine each instance to one
caller, or guard it with a single mutex when embedding it in a concurrent
host.

Examples
--------
>>> from agritwin.core.data_containers import SoilHealthCard
>>> from agritwin.core.engine import AgriTwinEngine
>>> card = SoilHealthCard(n=280.0, p=12.0, k=150.0, ph=7.1, ec=0.4, oc=0.6)
>>> engine = AgriTwinEngine(card, "WHEAT", rng=42)
>>> snap = engine.next_day(irrigate=20.0)
>>> snap.day
2
"""

from __future__ import annotations

import datetime as dt
import logging
from collections import deque
from dataclasses import replace
from enum import Enum

import numpy as np

from agritwin.core.config import EngineConfig
from agritwin.core.crops import (
    CropType,
    FertilizerRecommendation,
    SoilType,
    coerce_key,
    crop_profile,
    soil_profile,
)
from agritwin.core.data_containers import (
    CropState,
    DailyWeather,
    SimulationState,
    SoilHealthCard,
    SoilState,
    Stage,
    StateSnapshot,
    StressIndices,
)
from agritwin.core.model import derive_stage
from agritwin.library.weather import (
    RandomSource,
    Region,
    as_random_source,
    region_profile,
)

_LOGGER = logging.getLogger(__name__)

# Lowest health for each grade, best first; anything lower is a "D".
YIELD_GRADES: tuple[tuple[float, str], ...] = (
    (90.0, "A+"),
    (80.0, "A"),
    (60.0, "B"),
    (40.0, "C"),
)


class ActionKind(str, Enum):
    WATER = "WATER"
    FERTILIZE = "FERTILIZE"
    PESTICIDE = "PESTICIDE"
    DEWEED = "DEWEED"
    HARVEST = "HARVEST"
    NEXT_DAY = "NEXT_DAY"


def grade_yield(health: float) -> str:
    """Letter grade of a harvest from the crop's final health."""
    for floor, grade in YIELD_GRADES:
        if health >= floor:
            return grade
    return "D"


class AgriTwinEngine:
    """
    Day-stepped simulation of one crop stand.

    Parameters
    ----------
    card : SoilHealthCard
        Soil test seeding the N/P/K pools. Never modified.
    crop_type : CropType or str
        Crop to plant.
    start_date : str or datetime.date, default="2024-06-15"
        Calendar date of day 1 (ISO string accepted).
    region : Region or str, default=Region.NORTH
        Region selecting the weather bias.
    soil_type : SoilType or str, default=SoilType.LOAMY
        Soil texture.
    rng : numpy.random.Generator, int or None
        Random source (or seed) for weather and disturbances.
    config : EngineConfig, optional
        Engine settings; defaults to ``EngineConfig()``.

    Raises
    ------
    UnknownTypeError
        If the crop, soil or region is not in the knowledge base.
    """

    def __init__(
        self,
        card: SoilHealthCard,
        crop_type: CropType | str,
        start_date: str | dt.date = "2024-06-15",
        *,
        region: Region | str = Region.NORTH,
        soil_type: SoilType | str = SoilType.LOAMY,
        rng: RandomSource | int | None = None,
        config: EngineConfig | None = None,
    ):
        crop = CropState.sown(crop_type)
        soil_type = coerce_key(SoilType, soil_type, "soil")
        region = coerce_key(Region, region, "region")
        soil_profile(soil_type)
        if isinstance(start_date, str):
            start_date = dt.date.fromisoformat(start_date)

        self.card = card
        self.config = config if config is not None else EngineConfig()
        self.rng = as_random_source(rng)

        soil = SoilState.from_card(
            card, soil_type, self.config.initial_moisture
        )
        self._state = SimulationState(
            day=1,
            date=start_date,
            region=region,
            funds=self.config.starting_funds,
            crop=crop,
            soil=soil,
            weather=DailyWeather(
                temp_max=30.0, temp_min=22.0, rain=0.0, radiation=20.0
            ),
            stress=self._soil_stress(soil),
            event_log=deque(maxlen=self.config.event_log_size),
        )
        place = region_profile(region).name
        self._state.log(
            f"Started in {place} on {soil_type.value.lower()} soil. "
            f"Planted {crop.name}. Seedbed prepared."
        )
        self._note_region_fit()
        _LOGGER.info(
            "New simulation: %s in %s (%s soil)",
            crop.name,
            place,
            soil_type.value,
        )

    # ---------------------------
    # Public API
    # ---------------------------
    def get_state(self) -> StateSnapshot:
        """Immutable copy of the current state."""
        return self._state.snapshot()

    def next_day(
        self,
        irrigate: float = 0.0,
        fertilize_n: float = 0.0,
        weed: bool = False,
        harvest: bool = False,
        new_crop: CropType | str | None = None,
    ) -> StateSnapshot:
        """
        Advance the simulation by one day.

        Parameters
        ----------
        irrigate : float
            Irrigation [mm]; clamped by the hydrology model.
        fertilize_n : float
            Nitrogen fertilizer [kg/ha]; clamped by the nutrient model.
        weed : bool
            Weed the field by hand before today's weed growth.
        harvest : bool
            Harvest whatever the crop holds and replant, at any stage; this
            replaces the rest of the day.
        new_crop : CropType or str, optional
            Crop for the next season. Defaults to the current crop (the same
            crop is replanted), not to a fixed crop type.

        Returns
        -------
        StateSnapshot
        """
        s = self._state
        s.day += 1
        s.date += dt.timedelta(days=1)
        s.active_events = ()

        if harvest:
            self._harvest(new_crop, require_ready=False)
            return self.get_state()

        if weed:
            self._remove_weeds("Manually removed weeds.")

        self._simulate_day(irrigate, fertilize_n)
        return self.get_state()

    def perform_action(
        self,
        kind: ActionKind | str,
        new_crop: CropType | str | None = None,
    ) -> StateSnapshot:
        """
        Apply one fixed-cost action.

        WATER, FERTILIZE and PESTICIDE are paid from the funds and refused
        (logged, no effect) when funds are short or the crop is dead. DEWEED
        is free and always applies. HARVEST grades and replants with
        ``new_crop``. NEXT_DAY is :meth:`next_day` without inputs.
        """
        kind = ActionKind(kind)
        if kind is ActionKind.NEXT_DAY:
            return self.next_day()
        if kind is ActionKind.HARVEST:
            self._harvest(new_crop, require_ready=True)
            return self.get_state()
        if kind is ActionKind.DEWEED:
            self._remove_weeds("Removed weeds. Crop can breathe now!")
            return self.get_state()

        if self._state.crop.is_dead:
            self._state.log(
                f"Crop is dead; {kind.value.lower()} has no effect."
            )
            return self.get_state()

        if kind is ActionKind.WATER:
            self._water()
        elif kind is ActionKind.FERTILIZE:
            self._fertilize()
        else:
            self._spray()
        return self.get_state()

    def fertilizer_recommendation(
        self, target_yield: float | None = None
    ) -> FertilizerRecommendation:
        """
        STCR doses for the current crop and soil pools.

        ``target_yield`` is in q/ha and defaults to 70% of the crop's
        potential. Negative doses are returned unchanged.
        """
        profile = crop_profile(self._state.crop.crop_type)
        if target_yield is None:
            target_yield = profile.default_target_yield
        soil = self._state.soil
        return profile.recommend(
            target_yield, soil.n_pool, soil.p_pool, soil.k_pool
        )

    # --------------------------- End of public API --------------------------

    # ---------------------------
    # Daily sequence
    # ---------------------------
    def _simulate_day(self, irrigation: float, fertilizer: float) -> None:
        s, cfg = self._state, self.config
        profile = crop_profile(s.crop.crop_type)

        bias = region_profile(s.region).weather_bias
        s.weather = cfg.weather.generate(bias, s.day, self.rng)

        self._disturb(profile.pest_risk)

        was_competing = cfg.weeds.is_competing(s.crop.weed_density)
        density = cfg.weeds.update(s, s.weather.is_rain_day)
        s.crop = replace(s.crop, weed_density=density)
        if not was_competing and cfg.weeds.is_competing(density):
            s.log("Weeds are competing with the crop! De-weed needed.")

        competition = cfg.weeds.competition(density)
        water = cfg.hydrology.update(s, irrigation, competition)
        nitrogen = cfg.nutrients.update(s, fertilizer, competition)
        s.soil = replace(s.soil, moisture=water.moisture, n_pool=nitrogen.n_pool)
        s.stress = StressIndices(
            water=water.water_stress,
            nitrogen=nitrogen.nitrogen_stress,
            heat=cfg.growth.heat_stress(s.weather.temp_max, profile),
        )
        if water.irrigation_mm > 0.0:
            s.log(f"Irrigated {water.irrigation_mm:g}mm.")
        if nitrogen.fertilizer_kg > 0.0:
            s.log(f"Applied {nitrogen.fertilizer_kg:g} kg N.")
        if s.stress.water > 0.5:
            s.log("Water Stress Detected!")
        if s.stress.nitrogen > 0.5:
            s.log("Nitrogen Deficiency!")

        if not s.crop.is_dead:
            s.crop = cfg.growth.update(s.crop, s.weather, s.stress, profile).crop

        self._update_stage()
        s.log(
            f"{s.weather.regime.value}. Health: {int(s.crop.health)}%"
        )
        _LOGGER.debug(
            "Day %d: dvs=%.3f lai=%.2f moisture=%.1f n=%.1f health=%.1f",
            s.day,
            s.crop.dvs,
            s.crop.lai,
            s.soil.moisture,
            s.soil.n_pool,
            s.crop.health,
        )

    def _disturb(self, pest_risk: float) -> None:
        s, model = self._state, self.config.disturbance
        injury, pests = s.crop.injury, s.crop.pest_level

        shock = model.roll(self.rng)
        if shock is not None:
            s.active_events = s.active_events + (shock.name,)
            injury += shock.injury
            pests += shock.pest_increase
            s.log(shock.message)
            _LOGGER.warning("Day %d: %s", s.day, shock.name)

        pests = model.pest_pressure(pests, pest_risk, self.rng)
        injury = float(
            np.clip(injury + model.injury_change(pests), 0.0, 100.0)
        )
        s.crop = replace(s.crop, injury=injury, pest_level=pests)

    def _update_stage(self) -> None:
        s = self._state
        previous = s.crop.stage
        if previous is Stage.DEAD:
            stage = Stage.DEAD
        else:
            stage = derive_stage(s.crop.dvs, s.crop.health)
        if stage is previous:
            return

        if stage is Stage.DEAD:
            s.crop = replace(s.crop, stage=stage, health=0.0)
            s.log("Crop died. Harvest to clear the field and replant.")
            _LOGGER.warning("Day %d: %s died", s.day, s.crop.name)
        else:
            s.crop = replace(s.crop, stage=stage)
            s.log(f"{s.crop.name} reached {stage.value.lower()} stage.")
            _LOGGER.info("Day %d: stage %s", s.day, stage.value)

    # ---------------------------
    # Actions
    # ---------------------------
    def _can_afford(self, cost: float, what: str) -> bool:
        s = self._state
        if s.funds < cost:
            s.log(f"Not enough funds to {what}! (Need {cost:g})")
            return False
        s.funds -= cost
        return True

    def _water(self) -> None:
        s, cfg = self._state, self.config
        if not self._can_afford(cfg.water_cost, "water"):
            return
        retention = soil_profile(s.soil.soil_type).retention
        moisture = cfg.hydrology.infiltrate(
            s.soil.moisture, cfg.water_dose_mm, retention
        )
        s.soil = replace(s.soil, moisture=moisture)
        s.stress = replace(s.stress, water=cfg.hydrology.water_stress(moisture))
        s.log(
            f"Watered crop (-{cfg.water_cost:g} coins, "
            f"+{cfg.water_dose_mm:g}mm)."
        )

    def _fertilize(self) -> None:
        s, cfg = self._state, self.config
        if not self._can_afford(cfg.fertilizer_cost, "fertilize"):
            return
        efficiency = soil_profile(s.soil.soil_type).fertilizer_efficiency
        dose = cfg.nutrients.clamp_fertilizer(
            cfg.fertilizer_dose_kg * efficiency
        )
        n_pool = s.soil.n_pool + dose
        s.soil = replace(s.soil, n_pool=n_pool)
        s.stress = replace(
            s.stress, nitrogen=cfg.nutrients.nitrogen_stress(n_pool)
        )
        s.log(
            f"Applied fertilizer (-{cfg.fertilizer_cost:g} coins, "
            f"+{dose:g} kg N)."
        )

    def _spray(self) -> None:
        s, cfg = self._state, self.config
        if not self._can_afford(cfg.pesticide_cost, "spray pesticide"):
            return
        pests = cfg.disturbance.spray(s.crop.pest_level)
        s.crop = replace(s.crop, pest_level=pests)
        s.log(
            f"Sprayed pesticide (-{cfg.pesticide_cost:g} coins, "
            "reduced pests)."
        )

    def _remove_weeds(self, message: str) -> None:
        s = self._state
        density = self.config.weeds.remove(
            s.crop.weed_density, self.config.weeding_removal
        )
        s.crop = replace(s.crop, weed_density=density)
        s.log(message)

    def _harvest(
        self, new_crop: CropType | str | None, require_ready: bool
    ) -> None:
        """
        Grade the standing crop and replant.

        With ``require_ready`` the transition is refused (logged) unless the
        crop is at ``HARVEST`` or ``DEAD``; otherwise an immature crop is cut
        with whatever its storage pool holds.
        """
        s = self._state
        crop = s.crop
        ready = crop.stage in (Stage.HARVEST, Stage.DEAD)
        if require_ready and not ready:
            s.log(
                f"Not ready to harvest yet! ({crop.stage.value.lower()})"
            )
            return

        next_crop = CropState.sown(
            new_crop if new_crop is not None else crop.crop_type,
            weed_density=self.config.weed_carryover,
        )
        if not ready:
            s.log(f"Harvested early at {crop.stage.value.lower()} stage.")

        if crop.is_dead:
            s.harvested_yield = 0.0
            s.yield_grade = grade_yield(0.0)
            s.log(f"Cleared the failed {crop.name} crop.")
        else:
            s.harvested_yield = crop.biomass_storage
            s.yield_grade = grade_yield(crop.health)
            s.log(
                f"Harvested! Crop Quality: {s.yield_grade} "
                f"({int(crop.health)}/100), "
                f"{crop.biomass_storage:.0f} kg/ha."
            )
        _LOGGER.info(
            "Season %d closed: %s grade %s, yield %.0f kg/ha",
            s.season,
            crop.name,
            s.yield_grade,
            s.harvested_yield,
        )

        s.crop = next_crop
        s.day = 1
        s.season += 1
        s.stress = self._soil_stress(s.soil)
        s.log(f"Started season {s.season} with {next_crop.name}.")
        self._note_region_fit()

    # ---------------------------
    # Helpers
    # ---------------------------
    def _soil_stress(self, soil: SoilState) -> StressIndices:
        return StressIndices(
            water=self.config.hydrology.water_stress(soil.moisture),
            nitrogen=self.config.nutrients.nitrogen_stress(soil.n_pool),
        )

    def _note_region_fit(self) -> None:
        s = self._state
        region = region_profile(s.region)
        if s.crop.crop_type not in region.crops:
            s.log(
                f"Note: {s.crop.name} is not traditionally grown in "
                f"{region.name}."
            )
