import logging
from threading import Event, Thread
from typing import Callable, Iterable, Optional, Tuple

from cityweather.main_queue import MainQueue
from cityweather.models import normalize_city
from cityweather.services.weather_store import WeatherStore

logger = logging.getLogger("cityweather").getChild("commands")

COMMANDS = ("add", "remove", "select", "refresh", "quit")


def parse_command(line: str) -> Optional[Tuple[str, str]]:
    """Split "add New York" into ("add", "New York"); None for blank or unknown input."""
    text = (line or "").strip()
    if not text:
        return None
    verb, _, arg = text.partition(" ")
    verb = verb.lower()
    if verb not in COMMANDS:
        logger.warning("unknown command %r (expected one of %s)", verb, ", ".join(COMMANDS))
        return None
    arg = arg.strip()
    if verb in ("add", "remove", "select") and not arg:
        logger.warning("%s needs a city name", verb)
        return None
    return verb, arg


def apply_command(store: WeatherStore, verb: str, arg: str, stop: Event) -> None:
    # tracked names are stored normalized, so match them the same way add does
    city = normalize_city(arg)
    if verb == "add":
        store.add_city(arg)
    elif verb == "remove":
        store.remove_city(city)
    elif verb == "select":
        store.select_and_refresh(city)
    elif verb == "refresh":
        if city:
            store.fetch_weather(city)
        else:
            store.refresh_all()
    elif verb == "quit":
        stop.set()


class CommandReader:
    """Reads commands from a line source and marshals them onto the main queue."""

    def __init__(self, store: WeatherStore, lines: Iterable[str], stop: Event,
                 queue: Optional[MainQueue] = None):
        self.store = store
        self.lines = lines
        self.stop = stop
        self.queue = queue or store.main_queue
        self._worker: Optional[Thread] = None

    def start(self) -> None:
        if self._worker and self._worker.is_alive():
            return
        self._worker = Thread(target=self._reader_loop, name="cityweather-commands", daemon=True)
        self._worker.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._worker:
            self._worker.join(timeout=timeout)

    def _post(self, verb: str, arg: str) -> None:
        fn: Callable[[], None] = lambda: apply_command(self.store, verb, arg, self.stop)
        self.queue.post(fn)

    def _reader_loop(self) -> None:
        for line in self.lines:
            if self.stop.is_set():
                return
            parsed = parse_command(line)
            if parsed is None:
                continue
            self._post(*parsed)
            if parsed[0] == "quit":
                return
