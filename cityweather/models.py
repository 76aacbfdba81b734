from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from cityweather.errors import WeatherError

LOADING_TEXT = "Loading..."
UNKNOWN_ICON = "unknown"


@dataclass(frozen=True)
class WeatherSnapshot:
    temp_c: float
    condition_code: int
    resolved_name: str


@dataclass(frozen=True)
class FetchResult:
    city: str
    snapshot: Optional[WeatherSnapshot] = None
    error: Optional[WeatherError] = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None


@dataclass(frozen=True)
class DisplayState:
    temperature: str = LOADING_TEXT
    icon: str = UNKNOWN_ICON
    city_name: str = LOADING_TEXT


@dataclass(frozen=True)
class StoreState:
    cities: Tuple[str, ...] = ()
    selected_city: Optional[str] = None
    snapshots: Dict[str, WeatherSnapshot] = field(default_factory=dict)
    display: DisplayState = field(default_factory=DisplayState)
    is_night: bool = False


def normalize_city(raw_name: str) -> str:
    """Trim and join whitespace runs with hyphens: " New York " -> "New-York"."""
    return "-".join((raw_name or "").split())


def format_temperature(snapshot: WeatherSnapshot) -> str:
    return f"{snapshot.temp_c}°"
