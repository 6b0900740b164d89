"""
Season driver and per-day trace container.

:func:`run_season` repeatedly advances an engine and collects the daily
snapshots into a :class:`SeasonTrace` of NumPy arrays (one entry per simulated
day), which can be exported to a :class:`pandas.DataFrame`. The trace lives in
memory only.

Examples
--------
>>> from agritwin.core.data_containers import SoilHealthCard
>>> from agritwin.core.engine import AgriTwinEngine
>>> from agritwin.core.season import run_season
>>> card = SoilHealthCard(n=280.0, p=12.0, k=150.0, ph=7.1, ec=0.4, oc=0.6)
>>> engine = AgriTwinEngine(card, "MAIZE", region="EAST", rng=7)
>>> trace = run_season(engine, days=30, schedule={1: {"fertilize_n": 60.0}})
>>> trace.lai.shape
(30,)
>>> df = trace.to_frame()
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping

import numpy as np
import pandas as pd

from agritwin.core.data_containers import Stage, StateSnapshot
from agritwin.core.engine import AgriTwinEngine

Array = np.ndarray

Schedule = (
    Mapping[int, Mapping[str, Any]]
    | Callable[[StateSnapshot], Mapping[str, Any] | None]
)

# Column name -> accessor on a snapshot.
_COLUMNS: dict[str, Callable[[StateSnapshot], float]] = {
    "day": lambda s: s.day,
    "dvs": lambda s: s.crop.dvs,
    "lai": lambda s: s.crop.lai,
    "height": lambda s: s.crop.height,
    "root_depth": lambda s: s.crop.root_depth,
    "biomass": lambda s: s.crop.biomass,
    "biomass_root": lambda s: s.crop.biomass_root,
    "biomass_stem": lambda s: s.crop.biomass_stem,
    "biomass_leaf": lambda s: s.crop.biomass_leaf,
    "biomass_storage": lambda s: s.crop.biomass_storage,
    "health": lambda s: s.crop.health,
    "weed_density": lambda s: s.crop.weed_density,
    "pest_level": lambda s: s.crop.pest_level,
    "moisture": lambda s: s.soil.moisture,
    "n_pool": lambda s: s.soil.n_pool,
    "water_stress": lambda s: s.stress.water,
    "nitrogen_stress": lambda s: s.stress.nitrogen,
    "heat_stress": lambda s: s.stress.heat,
    "temp_max": lambda s: s.weather.temp_max,
    "temp_min": lambda s: s.weather.temp_min,
    "rain": lambda s: s.weather.rain,
    "radiation": lambda s: s.weather.radiation,
    "funds": lambda s: s.funds,
}


@dataclass
class SeasonTrace:
    """Per-day simulation outputs, each an array of shape (T,)."""

    dates: Array  # (T,) datetime64[D]
    stage: Array  # (T,) str
    day: Array
    dvs: Array
    lai: Array
    height: Array
    root_depth: Array
    biomass: Array
    biomass_root: Array
    biomass_stem: Array
    biomass_leaf: Array
    biomass_storage: Array
    health: Array
    weed_density: Array
    pest_level: Array
    moisture: Array
    n_pool: Array
    water_stress: Array
    nitrogen_stress: Array
    heat_stress: Array
    temp_max: Array
    temp_min: Array
    rain: Array
    radiation: Array
    funds: Array

    def __len__(self) -> int:
        return len(self.dates)

    @classmethod
    def from_snapshots(cls, snapshots: list[StateSnapshot]) -> "SeasonTrace":
        """Stack snapshots day by day into arrays."""
        columns = {
            name: np.array([get(s) for s in snapshots], dtype=float)
            for name, get in _COLUMNS.items()
        }
        columns["day"] = columns["day"].astype(int)
        return cls(
            dates=np.array([s.date for s in snapshots], dtype="datetime64[D]"),
            stage=np.array([s.stage.value for s in snapshots], dtype=str),
            **columns,
        )

    def to_frame(self) -> pd.DataFrame:
        """One row per day, indexed by date."""
        data = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "dates"
        }
        return pd.DataFrame(data, index=pd.DatetimeIndex(self.dates, name="date"))


def _actions_for(
    schedule: Schedule | None, step: int, snapshot: StateSnapshot
) -> Mapping[str, Any]:
    if schedule is None:
        return {}
    if callable(schedule):
        return schedule(snapshot) or {}
    return schedule.get(step, {})


def run_season(
    engine: AgriTwinEngine,
    days: int | None = None,
    schedule: Schedule | None = None,
    *,
    max_days: int = 365,
) -> SeasonTrace:
    """
    Advance ``engine`` and record every day.

    Parameters
    ----------
    engine : AgriTwinEngine
        Engine to drive; it is advanced in place.
    days : int, optional
        Number of days to simulate. If ``None``, run until the crop reaches
        ``HARVEST`` or ``DEAD`` (at most ``max_days``).
    schedule : mapping or callable, optional
        Keyword arguments for :meth:`AgriTwinEngine.next_day`, either keyed
        by step number (1-based) or produced by a callable receiving the
        snapshot before the step.
    max_days : int, default=365
        Safety cap when ``days`` is ``None``.

    Returns
    -------
    SeasonTrace
        One entry per simulated day.
    """
    if days is not None and days < 0:
        raise ValueError("days must be ≥ 0.")
    horizon = max_days if days is None else days

    snapshots: list[StateSnapshot] = []
    snapshot = engine.get_state()
    for step in range(1, horizon + 1):
        snapshot = engine.next_day(**_actions_for(schedule, step, snapshot))
        snapshots.append(snapshot)
        if days is None and snapshot.stage in (Stage.HARVEST, Stage.DEAD):
            break
    return SeasonTrace.from_snapshots(snapshots)
