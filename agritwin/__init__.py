"""
agritwin: a day-stepped agronomic simulation of a single crop stand.

The engine couples generated weather, a single-bucket soil water and nitrogen
balance, weed competition, and a radiation-use-efficiency crop growth model,
and exposes operator actions (irrigate, fertilize, weed, spray, harvest).
"""

from agritwin.core.crops import CropType, SoilType
from agritwin.core.data_containers import SoilHealthCard, Stage, StateSnapshot
from agritwin.core.engine import ActionKind, AgriTwinEngine
from agritwin.core.exceptions import UnknownTypeError
from agritwin.library.weather import Region

__version__ = "0.1.0"

__all__ = [
    "ActionKind",
    "AgriTwinEngine",
    "CropType",
    "Region",
    "SoilHealthCard",
    "SoilType",
    "Stage",
    "StateSnapshot",
    "UnknownTypeError",
    "__version__",
]
