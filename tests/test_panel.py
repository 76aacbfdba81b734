from cityweather.services.weather_store import WeatherStore
from cityweather.models import WeatherSnapshot
from cityweather.ui.panel import DAY_GRADIENT, NIGHT_GRADIENT, build_view, render_panel, save_frame

DISPLAY = {"w": 320, "h": 480}


class StaticClient:
    def fetch(self, city):
        return WeatherSnapshot(temp_c=12.5, condition_code=500, resolved_name=city)


def test_build_view_reflects_store():
    with WeatherStore(StaticClient(), cities=["Izmir", "Bursa"], selected_city="Izmir") as store:
        store.fetch_weather("Izmir").result(timeout=5)
        store.process_pending()
        view = build_view(store)
    assert view.city_name == "Izmir"
    assert view.temperature == "12.5°"
    assert view.icon == "rain"
    assert [t.city for t in view.tiles] == ["Izmir", "Bursa"]
    assert view.tiles[0].selected and not view.tiles[1].selected
    assert view.tiles[1].temperature == "Loading..."
    assert view.tiles[1].icon == "unknown"


def test_render_uses_day_and_night_gradients():
    with WeatherStore(StaticClient()) as store:
        view = build_view(store)
    view.is_night = False
    day = render_panel(view, DISPLAY)
    view.is_night = True
    night = render_panel(view, DISPLAY)
    assert day.size == (320, 480)
    assert day.getpixel((319, 0)) == DAY_GRADIENT[0]
    assert night.getpixel((319, 0)) == NIGHT_GRADIENT[0]


def test_save_frame(tmp_path):
    with WeatherStore(StaticClient()) as store:
        img = render_panel(build_view(store), DISPLAY)
    out = tmp_path / "nested" / "frame.png"
    save_frame(img, str(out))
    assert out.exists()
    assert not (tmp_path / "nested" / "frame.png.tmp.png").exists()
