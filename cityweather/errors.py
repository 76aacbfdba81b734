from typing import Optional


class WeatherError(Exception):
    """Base class for failures while fetching a city's weather."""

    def __init__(self, city: str, message: str):
        super().__init__(f"{city}: {message}")
        self.city = city
        self.message = message


class NetworkError(WeatherError):
    """Connectivity failure or a non-2xx response."""

    def __init__(self, city: str, message: str, status_code: Optional[int] = None):
        super().__init__(city, message)
        self.status_code = status_code


class DecodeError(WeatherError):
    """Response body did not match the expected shape."""
