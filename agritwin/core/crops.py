"""
Crop and soil-type knowledge base.

This module holds the static, read-only parameter tables consumed by the
simulation: one :class:`CropProfile` per :class:`CropType` and one
:class:`SoilTypeProfile` per :class:`SoilType`. Both record types are
**frozen** (immutable) and use **slots**; the tables themselves are exposed as
read-only mappings so that every engine instance shares the same records
without being able to alter them.

The crop records carry phenology and canopy limits (season duration, base
temperature, maximum leaf-area index), water demand, potential yield, pest
susceptibility, heat-stress breakpoints, rooting depth, and three STCR
(Soil Test Crop Response) equations that map a target yield and a soil-test
value to a recommended fertilizer dose.

Classes
-------
CropType, SoilType
    ``str``-valued enumerations used as table keys.
StcrEquation
    Linear recommendation ``a * target_yield - b * soil_test``.
FertilizerRecommendation
    N/P/K doses returned by :meth:`CropProfile.recommend`.
CropProfile
    Immutable per-crop parameter set.
SoilTypeProfile
    Immutable per-soil-type parameter set.

Functions
---------
crop_profile
    Look up a :class:`CropProfile`; raises ``UnknownTypeError`` if absent.
soil_profile
    Look up a :class:`SoilTypeProfile`; raises ``UnknownTypeError`` if absent.

Notes
-----
- **STCR output is not clamped.** When the soil already holds more of a
  nutrient than the target yield requires, the equations return a negative
  dose. That value is surfaced as-is; flooring it for display is the
  caller's decision.
- **Units.** Target yield in quintals per hectare [q/ha], soil tests and
  doses in [kg/ha], temperatures in [°C], water in [mm], depths in [cm].

Examples
--------
>>> from agritwin.core.crops import CropType, crop_profile
>>> wheat = crop_profile(CropType.WHEAT)
>>> wheat.max_lai
5.0
>>> round(wheat.stcr_n(40.0, 280.0), 6)
64.0
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, NamedTuple, TypeVar

from agritwin.core.exceptions import UnknownTypeError


class CropType(str, Enum):
    """Crops with a full growth parameterization."""

    RICE = "RICE"
    WHEAT = "WHEAT"
    COTTON = "COTTON"
    MAIZE = "MAIZE"
    CHILLI = "CHILLI"


class SoilType(str, Enum):
    """Soil textures with distinct water and nutrient behaviour."""

    SANDY = "SANDY"
    LOAMY = "LOAMY"
    CLAY = "CLAY"


@dataclass(frozen=True, slots=True)
class StcrEquation:
    """
    Linear Soil Test Crop Response equation.

    Parameters
    ----------
    a : float
        Nutrient requirement per unit of target yield [kg/q].
    b : float
        Contribution of the soil-test value (unitless efficiency ratio).
    """

    a: float
    b: float

    def __call__(self, target_yield: float, soil_test: float) -> float:
        """Return ``a * target_yield - b * soil_test`` (may be negative)."""
        return self.a * target_yield - self.b * soil_test


class FertilizerRecommendation(NamedTuple):
    """Recommended fertilizer doses [kg/ha]; components may be negative."""

    n: float
    p: float
    k: float


@dataclass(frozen=True, slots=True)
class CropProfile:
    """
    Concrete crop parameter set.

    Parameters
    ----------
    name : str
        Human-readable crop name.
    duration_days : int
        Nominal season length [days]. The thermal time needed to reach
        flowering is derived from it.
    max_lai : float
        Maximum leaf-area index the canopy may reach.
    water_need_mm : float
        Seasonal water requirement [mm].
    base_temp : float
        Base temperature for thermal-time accumulation [°C].
    potential_yield : float
        Potential yield under no stress [kg/ha].
    pest_risk : float
        Pest susceptibility multiplier in [0, 1].
    heat_onset, heat_critical : float
        Daily maximum temperatures [°C] at which heat stress starts (0) and
        saturates (1). Must satisfy ``heat_onset < heat_critical``.
    max_root_depth_cm : float
        Maximum rooting depth [cm].
    stcr_n, stcr_p, stcr_k : StcrEquation
        Fertilizer recommendation equations for N, P and K.
    """

    name: str
    duration_days: int
    max_lai: float
    water_need_mm: float
    base_temp: float
    potential_yield: float
    pest_risk: float
    heat_onset: float
    heat_critical: float
    max_root_depth_cm: float
    stcr_n: StcrEquation
    stcr_p: StcrEquation
    stcr_k: StcrEquation

    def __post_init__(self):
        if self.duration_days <= 0:
            raise ValueError("duration_days must be positive.")
        if self.max_lai <= 0.0:
            raise ValueError("max_lai must be positive.")
        if not (0.0 <= self.pest_risk <= 1.0):
            raise ValueError("pest_risk must be in [0, 1].")
        if not (self.heat_onset < self.heat_critical):
            raise ValueError("Heat stress requires heat_onset < heat_critical.")
        if self.max_root_depth_cm <= 0.0:
            raise ValueError("max_root_depth_cm must be positive.")

    @property
    def daily_water_need_mm(self) -> float:
        """Seasonal water need spread evenly over the nominal season."""
        return self.water_need_mm / self.duration_days

    @property
    def default_target_yield(self) -> float:
        """Target yield [q/ha] at 70% of the potential yield."""
        return self.potential_yield / 100.0 * 0.7

    def recommend(
        self,
        target_yield: float,
        soil_n: float,
        soil_p: float,
        soil_k: float,
    ) -> FertilizerRecommendation:
        """
        STCR fertilizer doses for a target yield and soil-test values.

        Parameters
        ----------
        target_yield : float
            Target yield [q/ha].
        soil_n, soil_p, soil_k : float
            Soil-test (available) nutrient amounts [kg/ha].

        Returns
        -------
        FertilizerRecommendation
            Unclamped doses [kg/ha].
        """
        return FertilizerRecommendation(
            n=self.stcr_n(target_yield, soil_n),
            p=self.stcr_p(target_yield, soil_p),
            k=self.stcr_k(target_yield, soil_k),
        )


@dataclass(frozen=True, slots=True)
class SoilTypeProfile:
    """
    Soil-type parameters for the single-bucket water and nitrogen pools.

    Parameters
    ----------
    drainage : float
        Daily moisture loss to deep drainage [% of field capacity].
    nutrient_leak : float
        Daily nitrogen leaching [kg/ha].
    retention : float
        Multiplier applied to water gains (rain and irrigation).
    fertilizer_efficiency : float
        Fraction of a fixed fertilizer dose that reaches the N pool.
    """

    drainage: float
    nutrient_leak: float
    retention: float
    fertilizer_efficiency: float

    def __post_init__(self):
        if self.drainage < 0.0 or self.nutrient_leak < 0.0:
            raise ValueError("drainage and nutrient_leak must be ≥ 0.")
        if self.retention <= 0.0:
            raise ValueError("retention must be positive.")
        if self.fertilizer_efficiency <= 0.0:
            raise ValueError("fertilizer_efficiency must be positive.")


# -------------------------
# Tables
# -------------------------
CROP_LIBRARY: Mapping[CropType, CropProfile] = MappingProxyType(
    {
        CropType.RICE: CropProfile(
            name="Rice (Paddy)",
            duration_days=120,
            max_lai=6.0,
            water_need_mm=1200.0,
            base_temp=10.0,
            potential_yield=8500.0,
            pest_risk=0.5,
            heat_onset=35.0,
            heat_critical=45.0,
            max_root_depth_cm=40.0,
            stcr_n=StcrEquation(4.25, 0.45),
            stcr_p=StcrEquation(3.55, 4.89),
            stcr_k=StcrEquation(2.10, 0.18),
        ),
        CropType.COTTON: CropProfile(
            name="Cotton (Bt)",
            duration_days=150,
            max_lai=4.5,
            water_need_mm=700.0,
            base_temp=15.0,
            potential_yield=4000.0,
            pest_risk=0.8,
            heat_onset=38.0,
            heat_critical=48.0,
            max_root_depth_cm=150.0,
            stcr_n=StcrEquation(8.15, 0.57),
            stcr_p=StcrEquation(2.95, 2.80),
            stcr_k=StcrEquation(5.92, 0.66),
        ),
        CropType.WHEAT: CropProfile(
            name="Wheat",
            duration_days=110,
            max_lai=5.0,
            water_need_mm=450.0,
            base_temp=5.0,
            potential_yield=6000.0,
            pest_risk=0.3,
            heat_onset=34.0,
            heat_critical=44.0,
            max_root_depth_cm=120.0,
            stcr_n=StcrEquation(4.4, 0.40),
            stcr_p=StcrEquation(3.8, 3.20),
            stcr_k=StcrEquation(2.5, 0.20),
        ),
        CropType.MAIZE: CropProfile(
            name="Maize",
            duration_days=100,
            max_lai=5.5,
            water_need_mm=500.0,
            base_temp=10.0,
            potential_yield=9000.0,
            pest_risk=0.6,
            heat_onset=36.0,
            heat_critical=45.0,
            max_root_depth_cm=150.0,
            stcr_n=StcrEquation(3.6, 0.35),
            stcr_p=StcrEquation(2.8, 2.10),
            stcr_k=StcrEquation(1.9, 0.25),
        ),
        CropType.CHILLI: CropProfile(
            name="Chilli",
            duration_days=160,
            max_lai=3.5,
            water_need_mm=600.0,
            base_temp=18.0,
            potential_yield=3500.0,
            pest_risk=0.7,
            heat_onset=35.0,
            heat_critical=42.0,
            max_root_depth_cm=60.0,
            stcr_n=StcrEquation(7.2, 0.50),
            stcr_p=StcrEquation(3.1, 2.40),
            stcr_k=StcrEquation(5.2, 0.55),
        ),
    }
)

SOIL_LIBRARY: Mapping[SoilType, SoilTypeProfile] = MappingProxyType(
    {
        SoilType.SANDY: SoilTypeProfile(
            drainage=8.0,
            nutrient_leak=5.0,
            retention=0.5,
            fertilizer_efficiency=0.75,
        ),
        SoilType.LOAMY: SoilTypeProfile(
            drainage=4.0,
            nutrient_leak=2.0,
            retention=1.0,
            fertilizer_efficiency=1.0,
        ),
        SoilType.CLAY: SoilTypeProfile(
            drainage=2.0,
            nutrient_leak=1.0,
            retention=1.5,
            fertilizer_efficiency=1.25,
        ),
    }
)


# -------------------------
# Accessors
# -------------------------
K = TypeVar("K", bound=Enum)


def coerce_key(enum_cls: type[K], key: K | str, kind: str) -> K:
    """
    Convert ``key`` to a member of ``enum_cls``.

    Raises
    ------
    UnknownTypeError
        If ``key`` names no member of ``enum_cls``.
    """
    try:
        return enum_cls(key)
    except ValueError as e:
        raise UnknownTypeError(
            kind, key, (m.value for m in enum_cls)
        ) from e


def crop_profile(crop_type: CropType | str) -> CropProfile:
    """
    Return the static record for ``crop_type``.

    Parameters
    ----------
    crop_type : CropType or str
        Crop key, e.g. ``CropType.WHEAT`` or ``"WHEAT"``.

    Returns
    -------
    CropProfile

    Raises
    ------
    UnknownTypeError
        If the crop is not in :data:`CROP_LIBRARY`.
    """
    return CROP_LIBRARY[coerce_key(CropType, crop_type, "crop")]


def soil_profile(soil_type: SoilType | str) -> SoilTypeProfile:
    """Return the static record for ``soil_type`` (``UnknownTypeError`` if absent)."""
    return SOIL_LIBRARY[coerce_key(SoilType, soil_type, "soil")]
