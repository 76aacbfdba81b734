import pytest

from cityweather.config_loader import load_config, parse_hhmm


@pytest.fixture(autouse=True)
def no_env_key(monkeypatch):
    monkeypatch.delenv("OPENWEATHER_API_KEY", raising=False)
    monkeypatch.setattr("cityweather.config_loader.load_dotenv", lambda: False)


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_config(str(tmp_path / "absent.yaml"))
    assert cfg["openweather"]["units"] == "metric"
    assert cfg["openweather"]["api_key"] == "YOUR_API_KEY"
    assert cfg["cities"]["defaults"] == ["Kadikoy", "Istanbul", "Londra", "Izmir"]
    assert cfg["cities"]["selected"] == "Kadikoy"
    assert cfg["cities"]["selection_fallback"] == "keep"
    assert cfg["clock"]["night_after"] == (19, 51)
    assert cfg["clock"]["tick_seconds"] == 60.0


def test_overrides_and_aliases(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "openweather:\n"
        "  apiKey: secret\n"
        "  units: Imperial\n"
        "cities:\n"
        "  defaults: [New York, New-York, Izmir]\n"
        "  selected: New York\n"
        "  selection_fallback: FIRST\n"
        "clock:\n"
        "  night_after: '18:30'\n"
        "display:\n"
        "  width: 240\n"
        "  height: 320\n"
    )
    cfg = load_config(str(path))
    assert cfg["openweather"]["api_key"] == "secret"
    assert "apiKey" not in cfg["openweather"]
    assert cfg["openweather"]["units"] == "imperial"
    assert cfg["openweather"]["base_url"] == "https://api.openweathermap.org"
    assert cfg["cities"]["defaults"] == ["New-York", "Izmir"]
    assert cfg["cities"]["selected"] == "New-York"
    assert cfg["cities"]["selection_fallback"] == "first"
    assert cfg["clock"]["night_after"] == (18, 30)
    assert cfg["display"]["w"] == 240
    assert cfg["display"]["h"] == 320


def test_env_key_wins(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("openweather:\n  api_key: from-file\n")
    monkeypatch.setenv("OPENWEATHER_API_KEY", "from-env")
    assert load_config(str(path))["openweather"]["api_key"] == "from-env"


def test_bad_units_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("openweather:\n  units: kelvin\n")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_bad_fallback_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("cities:\n  selection_fallback: random\n")
    with pytest.raises(ValueError):
        load_config(str(path))


@pytest.mark.parametrize("value", ["7pm", "25:00", "19:60", ""])
def test_parse_hhmm_rejects(value):
    with pytest.raises(ValueError):
        parse_hhmm(value)


def test_empty_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(str(path))["display"]["w"] == 320


def test_explicit_w_h_beat_aliases(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("display:\n  w: 200\n  width: 240\n  height: 300\n")
    cfg = load_config(str(path))
    assert cfg["display"]["w"] == 200
    assert cfg["display"]["h"] == 300
