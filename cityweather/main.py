#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
City weather panel
- Tracks a small list of cities and shows current weather (OpenWeatherMap)
- Day/night gradient recomputed every clock tick
- Frames rendered with Pillow and written to display.output_path
- Commands on stdin: add <city>, remove <city>, select <city>, refresh [city], quit
"""

import os
import signal
import sys
import time
from threading import Event

from cityweather.commands import CommandReader
from cityweather.config_loader import load_config
from cityweather.logging_config import configure_logging
from cityweather.main_queue import MainQueue
from cityweather.services.weather_client import WeatherClient
from cityweather.services.weather_store import WeatherStore
from cityweather.ui.panel import build_view, render_panel, save_frame

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")

_stop = Event()


def _handle_signal(signum, frame):
    _stop.set()


def run(config: dict, lines=None) -> None:
    logger = configure_logging(config["logging"]["level"])
    display_cfg = config["display"]

    queue = MainQueue()
    client = WeatherClient.from_config(config["openweather"])
    store = WeatherStore.from_config(config, client, main_queue=queue)

    reader = CommandReader(store, lines if lines is not None else sys.stdin, _stop, queue=queue)

    with store:
        store.start()
        reader.start()
        logger.info("tracking %s, selected %s", ", ".join(store.cities), store.selected_city)

        last_frame = 0.0
        while not _stop.is_set():
            queue.wait_and_drain(timeout=0.2)
            if time.monotonic() - last_frame >= display_cfg["frame_seconds"]:
                last_frame = time.monotonic()
                frame = render_panel(build_view(store), display_cfg)
                save_frame(frame, display_cfg["output_path"])

    logger.info("stopped")


def main():
    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    path = sys.argv[1] if len(sys.argv) > 1 else os.getenv("CITYWEATHER_CONFIG", DEFAULT_CONFIG_PATH)
    run(load_config(path))


if __name__ == "__main__":
    main()
