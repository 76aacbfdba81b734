import os
from copy import deepcopy
from typing import Any, Dict, List, Tuple

import yaml
from dotenv import load_dotenv

from cityweather.models import normalize_city

UNITS = ("metric", "imperial", "standard")
SELECTION_FALLBACKS = ("keep", "first", "clear")

DEFAULT_CONFIG: Dict[str, Any] = {
    "openweather": {
        "base_url": "https://api.openweathermap.org",
        "api_key": "YOUR_API_KEY",
        "units": "metric",
        "timeout_seconds": 5.0,
    },
    "cities": {
        "defaults": ["Kadikoy", "Istanbul", "Londra", "Izmir"],
        "selected": "Kadikoy",
        "selection_fallback": "keep",
        "dedupe_inflight": False,
    },
    "clock": {
        "tick_seconds": 60,
        "night_after": "19:51",
    },
    "display": {
        "w": 320,
        "h": 480,
        "frame_seconds": 1.0,
        "output_path": os.path.expanduser("~/.cache/cityweather/frame.png"),
    },
    "logging": {
        "level": "INFO",
    },
}


def _merge_section(dst: Dict[str, Any], key: str, overrides: Dict[str, Any]) -> None:
    base = deepcopy(DEFAULT_CONFIG.get(key, {}))
    if overrides:
        base.update(overrides)
    dst[key] = base


def parse_hhmm(value: str) -> Tuple[int, int]:
    try:
        hh, mm = str(value).strip().split(":")
        hour, minute = int(hh), int(mm)
    except ValueError:
        raise ValueError(f"clock.night_after must look like HH:MM, got {value!r}")
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"clock.night_after out of range: {value!r}")
    return hour, minute


def _normalize_openweather(cfg: Dict[str, Any]) -> None:
    ow = cfg.get("openweather", {})
    # camelCase alias from older configs
    if "apiKey" in ow:
        ow["api_key"] = ow.pop("apiKey")
    env_key = os.getenv("OPENWEATHER_API_KEY")
    if env_key:
        ow["api_key"] = env_key
    ow["units"] = str(ow.get("units", "metric")).strip().lower()
    if ow["units"] not in UNITS:
        raise ValueError(f"openweather.units must be one of {UNITS}, got {ow['units']!r}")
    ow["timeout_seconds"] = float(ow["timeout_seconds"])
    cfg["openweather"] = ow


def _dedupe(names: List[str]) -> List[str]:
    out: List[str] = []
    for name in names:
        city = normalize_city(str(name))
        if city and city not in out:
            out.append(city)
    return out


def _normalize_cities(cfg: Dict[str, Any]) -> None:
    cities = cfg.get("cities", {})
    cities["defaults"] = _dedupe(cities.get("defaults") or [])
    selected = cities.get("selected")
    cities["selected"] = normalize_city(str(selected)) if selected else None
    fallback = str(cities.get("selection_fallback", "keep")).lower()
    if fallback not in SELECTION_FALLBACKS:
        raise ValueError(f"cities.selection_fallback must be one of {SELECTION_FALLBACKS}")
    cities["selection_fallback"] = fallback
    cities["dedupe_inflight"] = bool(cities.get("dedupe_inflight"))
    cfg["cities"] = cities


def _normalize_clock(cfg: Dict[str, Any]) -> None:
    clock = cfg.get("clock", {})
    clock["night_after"] = parse_hhmm(clock["night_after"])
    clock["tick_seconds"] = float(clock["tick_seconds"])
    cfg["clock"] = clock


def _normalize_display(cfg: Dict[str, Any], raw_display: Dict[str, Any]) -> None:
    disp = cfg.get("display", {})
    # width/height aliases apply only when the file does not set w/h itself
    if "w" not in raw_display and raw_display.get("width"):
        disp["w"] = raw_display["width"]
    if "h" not in raw_display and raw_display.get("height"):
        disp["h"] = raw_display["height"]
    disp["w"] = int(disp["w"])
    disp["h"] = int(disp["h"])
    if disp.get("output_path"):
        disp["output_path"] = os.path.expanduser(disp["output_path"])
    cfg["display"] = disp


def load_config(path: str) -> dict:
    load_dotenv()
    raw: Dict[str, Any] = {}
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    cfg: Dict[str, Any] = {}
    for key in DEFAULT_CONFIG:
        _merge_section(cfg, key, raw.get(key) or {})

    _normalize_openweather(cfg)
    _normalize_cities(cfg)
    _normalize_clock(cfg)
    _normalize_display(cfg, raw.get("display") or {})

    return cfg
