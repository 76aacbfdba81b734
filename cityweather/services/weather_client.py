import logging
from typing import Any, Optional

import requests

from cityweather.config_loader import UNITS
from cityweather.errors import DecodeError, NetworkError
from cityweather.models import WeatherSnapshot

logger = logging.getLogger("cityweather").getChild("weather_client")


class WeatherClient:
    """
    OpenWeatherMap request composition:
    - URL: {base_url}/data/2.5/weather
    - Query: q=<city>&appid=<key>&units=<metric|imperial|standard>
    - Consumed body fields: main.temp, weather[0].id, name
    """

    PATH = "/data/2.5/weather"

    def __init__(
        self,
        api_key: str,
        units: str = "metric",
        base_url: str = "https://api.openweathermap.org",
        timeout_seconds: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        if units not in UNITS:
            raise ValueError(f"units must be one of {UNITS}, got {units!r}")
        self.api_key = api_key.strip()
        self.units = units
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session

    @classmethod
    def from_config(cls, ow_cfg: dict) -> "WeatherClient":
        return cls(
            api_key=ow_cfg["api_key"],
            units=ow_cfg["units"],
            base_url=ow_cfg["base_url"],
            timeout_seconds=ow_cfg["timeout_seconds"],
        )

    def _params(self, city: str) -> dict:
        return {"q": city, "appid": self.api_key, "units": self.units}

    def fetch(self, city: str) -> WeatherSnapshot:
        url = f"{self.base_url}{self.PATH}"
        logger.debug("GET %s q=%s units=%s", url, city, self.units)
        try:
            r = (self.session or requests).get(url, params=self._params(city), timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise NetworkError(city, str(e)) from e
        if not 200 <= r.status_code < 300:
            raise NetworkError(city, f"HTTP {r.status_code}", status_code=r.status_code)
        try:
            body = r.json()
        except ValueError as e:
            raise DecodeError(city, "response body is not JSON") from e
        return parse_weather(city, body)


def parse_weather(city: str, body: Any) -> WeatherSnapshot:
    """Decode the consumed subset of a current-weather body; extra fields are ignored."""
    try:
        temp = body["main"]["temp"]
        conditions = body["weather"]
        name = body["name"]
    except (KeyError, TypeError) as e:
        raise DecodeError(city, f"missing field {e}") from e

    if isinstance(temp, bool) or not isinstance(temp, (int, float)):
        raise DecodeError(city, f"main.temp is not a number: {temp!r}")
    if not isinstance(conditions, list):
        raise DecodeError(city, "weather is not a list")
    if not isinstance(name, str):
        raise DecodeError(city, "name is not a string")

    # empty list maps to code 0, which falls through to the default icon
    code = 0
    if conditions:
        first = conditions[0]
        if not isinstance(first, dict) or not isinstance(first.get("id"), int) or isinstance(first.get("id"), bool):
            raise DecodeError(city, "weather[0].id is not an integer")
        code = first["id"]

    return WeatherSnapshot(temp_c=float(temp), condition_code=code, resolved_name=name)
