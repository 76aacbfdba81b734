import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime
from functools import partial
from threading import Event, Thread
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from cityweather.errors import WeatherError
from cityweather.icons import DEFAULT_ICON, icon_for_code
from cityweather.main_queue import MainQueue
from cityweather.models import (
    LOADING_TEXT,
    DisplayState,
    FetchResult,
    StoreState,
    format_temperature,
    normalize_city,
)
from cityweather.services.weather_client import WeatherClient

logger = logging.getLogger("cityweather").getChild("weather_store")

DEFAULT_CITIES = ("Kadikoy", "Istanbul", "Londra", "Izmir")
DEFAULT_SELECTED = "Kadikoy"
NIGHT_AFTER = (19, 51)

UNFETCHED = "unfetched"
PENDING = "pending"
FETCHED = "fetched"


def is_night_at(hour: int, minute: int, threshold: Tuple[int, int] = NIGHT_AFTER) -> bool:
    th, tm = threshold
    return hour > th or (hour == th and minute > tm)


def apply_fetch_result(state: StoreState, result: FetchResult) -> StoreState:
    """
    Fold one fetch result into the store state.
    - Failures leave the state as it was.
    - Results for cities no longer tracked are dropped.
    - The display fields follow only the currently selected city.
    """
    if not result.ok or result.city not in state.cities:
        return state

    snap = result.snapshot
    snapshots = dict(state.snapshots)
    snapshots[result.city] = snap

    display = state.display
    if result.city == state.selected_city:
        display = DisplayState(
            temperature=format_temperature(snap),
            icon=icon_for_code(snap.condition_code),
            city_name=snap.resolved_name,
        )
    return replace(state, snapshots=snapshots, display=display)


class WeatherStore:
    def __init__(
        self,
        client: WeatherClient,
        cities: Optional[Iterable[str]] = None,
        selected_city: Optional[str] = None,
        main_queue: Optional[MainQueue] = None,
        clock: Callable[[], datetime] = datetime.now,
        tick_seconds: float = 60.0,
        night_after: Tuple[int, int] = NIGHT_AFTER,
        selection_fallback: str = "keep",
        dedupe_inflight: bool = False,
        max_workers: Optional[int] = None,
        on_error: Optional[Callable[[WeatherError], None]] = None,
    ):
        tracked: List[str] = []
        for name in DEFAULT_CITIES if cities is None else cities:
            city = normalize_city(name)
            if city and city not in tracked:
                tracked.append(city)
        selected = DEFAULT_SELECTED if selected_city is None else normalize_city(selected_city)

        self._state = StoreState(cities=tuple(tracked), selected_city=selected or None)
        self._client = client
        self._queue = main_queue or MainQueue()
        self._clock = clock
        self._tick_seconds = tick_seconds
        self._night_after = night_after
        self._selection_fallback = selection_fallback
        self._dedupe_inflight = dedupe_inflight
        self._on_error = on_error
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="cityweather-fetch")

        # in-flight bookkeeping, touched on the owner thread only
        self._inflight: Dict[str, int] = {}
        self._latest_future: Dict[str, Future] = {}

        self._stop = Event()
        self._timer: Optional[Thread] = None
        self.last_error: Optional[WeatherError] = None

    @classmethod
    def from_config(cls, cfg: dict, client: WeatherClient, main_queue: Optional[MainQueue] = None,
                    on_error: Optional[Callable[[WeatherError], None]] = None) -> "WeatherStore":
        cities = cfg["cities"]
        clock = cfg["clock"]
        return cls(
            client,
            cities=cities["defaults"],
            selected_city=cities["selected"] or "",
            main_queue=main_queue,
            tick_seconds=clock["tick_seconds"],
            night_after=clock["night_after"],
            selection_fallback=cities["selection_fallback"],
            dedupe_inflight=cities["dedupe_inflight"],
            on_error=on_error,
        )

    # read side
    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def main_queue(self) -> MainQueue:
        return self._queue

    @property
    def cities(self) -> List[str]:
        return list(self._state.cities)

    @property
    def selected_city(self) -> Optional[str]:
        return self._state.selected_city

    @property
    def temperature(self) -> str:
        return self._state.display.temperature

    @property
    def icon(self) -> str:
        return self._state.display.icon

    @property
    def city_name(self) -> str:
        return self._state.display.city_name

    @property
    def is_night(self) -> bool:
        return self._state.is_night

    def icon_for(self, city: str) -> str:
        snap = self._state.snapshots.get(city)
        if snap is None:
            return DEFAULT_ICON
        return icon_for_code(snap.condition_code)

    def temperature_for(self, city: str) -> str:
        snap = self._state.snapshots.get(city)
        if snap is None:
            return LOADING_TEXT
        return format_temperature(snap)

    def status_of(self, city: str) -> str:
        if self._inflight.get(city):
            return PENDING
        if city in self._state.snapshots:
            return FETCHED
        return UNFETCHED

    # write side
    def add_city(self, raw_name: str) -> Optional[str]:
        city = normalize_city(raw_name)
        if not city or city in self._state.cities:
            logger.debug("add ignored for %r", raw_name)
            return None
        self._state = replace(self._state, cities=self._state.cities + (city,), selected_city=city)
        logger.info("tracking %s", city)
        self.fetch_weather(city)
        return city

    def remove_city(self, city: str) -> bool:
        cities = list(self._state.cities)
        if city not in cities:
            return False
        cities.remove(city)

        snapshots = dict(self._state.snapshots)
        snapshots.pop(city, None)

        selected = self._state.selected_city
        if selected == city:
            if self._selection_fallback == "first":
                selected = cities[0] if cities else None
            elif self._selection_fallback == "clear":
                selected = None

        self._state = replace(self._state, cities=tuple(cities), snapshots=snapshots, selected_city=selected)
        logger.info("stopped tracking %s", city)
        return True

    def select_city(self, city: str) -> bool:
        if city not in self._state.cities:
            logger.debug("select ignored for untracked %r", city)
            return False
        self._state = replace(self._state, selected_city=city)
        return True

    def select_and_refresh(self, city: str) -> Optional[Future]:
        if not self.select_city(city):
            return None
        return self.fetch_weather(city)

    def fetch_weather(self, city: str) -> Future:
        """
        Fetch `city` on a worker thread.

        The returned future resolves to a FetchResult and never raises for
        NetworkError/DecodeError. The state update is posted onto the main
        queue and takes effect on the next process_pending().
        """
        if self._dedupe_inflight and self._inflight.get(city):
            return self._latest_future[city]
        future = self._executor.submit(self._load, city)
        self._inflight[city] = self._inflight.get(city, 0) + 1
        self._latest_future[city] = future
        return future

    def refresh_all(self) -> List[Future]:
        return [self.fetch_weather(city) for city in self._state.cities]

    def update_day_night(self, now: Optional[datetime] = None) -> bool:
        now = now or self._clock()
        flag = is_night_at(now.hour, now.minute, self._night_after)
        if flag != self._state.is_night:
            logger.info("switching to %s mode", "night" if flag else "day")
        self._state = replace(self._state, is_night=flag)
        return flag

    def process_pending(self, max_items: Optional[int] = None) -> int:
        return self._queue.drain(max_items)

    # lifecycle
    def start(self) -> None:
        if self._timer and self._timer.is_alive():
            return
        self.update_day_night()
        self.refresh_all()
        self._stop.clear()
        self._timer = Thread(target=self._timer_loop, name="cityweather-clock", daemon=True)
        self._timer.start()

    def close(self) -> None:
        self._stop.set()
        if self._timer:
            self._timer.join(timeout=1.0)
            self._timer = None
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "WeatherStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # internal
    def _timer_loop(self) -> None:
        while not self._stop.wait(self._tick_seconds):
            self._queue.post(self.update_day_night)

    def _load(self, city: str) -> FetchResult:
        # worker thread: only the client call and a post back to the main queue
        try:
            result = FetchResult(city, snapshot=self._client.fetch(city))
        except WeatherError as e:
            result = FetchResult(city, error=e)
        except Exception:
            self._queue.post(partial(self._release, city))
            raise
        self._queue.post(partial(self._finish, result))
        return result

    def _release(self, city: str) -> None:
        left = self._inflight.get(city, 0) - 1
        if left > 0:
            self._inflight[city] = left
        else:
            self._inflight.pop(city, None)
            self._latest_future.pop(city, None)

    def _finish(self, result: FetchResult) -> None:
        self._release(result.city)
        self._state = apply_fetch_result(self._state, result)
        if result.ok:
            logger.info("%s: %s, code %s", result.city, format_temperature(result.snapshot),
                        result.snapshot.condition_code)
            return
        self.last_error = result.error
        logger.warning("weather fetch failed: %s", result.error)
        if self._on_error:
            self._on_error(result.error)
