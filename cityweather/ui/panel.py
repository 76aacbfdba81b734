import os
from dataclasses import dataclass
from typing import List, Tuple

from PIL import Image, ImageDraw

from cityweather.services.weather_store import WeatherStore
from cityweather.ui.fonts import load_font

Color = Tuple[int, int, int]

DAY_GRADIENT: Tuple[Color, Color] = ((0, 122, 255), (173, 216, 230))
NIGHT_GRADIENT: Tuple[Color, Color] = ((0, 0, 0), (128, 128, 128))
WHITE: Color = (255, 255, 255)


@dataclass
class CityTile:
    city: str
    icon: str
    temperature: str
    selected: bool


@dataclass
class PanelView:
    city_name: str
    temperature: str
    icon: str
    is_night: bool
    tiles: List[CityTile]


def build_view(store: WeatherStore) -> PanelView:
    selected = store.selected_city
    tiles = [
        CityTile(city=c, icon=store.icon_for(c), temperature=store.temperature_for(c), selected=(c == selected))
        for c in store.cities
    ]
    return PanelView(
        city_name=store.city_name,
        temperature=store.temperature,
        icon=store.icon,
        is_night=store.is_night,
        tiles=tiles,
    )


def _gradient(w: int, h: int, top: Color, bottom: Color) -> Image.Image:
    img = Image.new("RGB", (w, h), top)
    draw = ImageDraw.Draw(img)
    span = max(h - 1, 1)
    for y in range(h):
        t = y / span
        row = tuple(int(a + (b - a) * t) for a, b in zip(top, bottom))
        draw.line([0, y, w, y], fill=row)
    return img


def render_panel(view: PanelView, display_cfg: dict) -> Image.Image:
    w, h = display_cfg["w"], display_cfg["h"]
    top, bottom = NIGHT_GRADIENT if view.is_night else DAY_GRADIENT
    img = _gradient(w, h, top, bottom)
    draw = ImageDraw.Draw(img)

    font_small = load_font(14)
    font_mid = load_font(28)
    font_big = load_font(56)

    # selected city
    draw.text((12, 16), view.city_name[:18], font=font_mid, fill=WHITE)

    icon_size = min(w // 2, 140)
    # icon id framed as a badge
    draw.rectangle([12, 64, 12 + icon_size, 64 + icon_size], outline=WHITE, width=2)
    draw.text((20, 64 + icon_size // 2 - 8), view.icon, font=font_small, fill=WHITE)

    draw.text((12, 80 + icon_size), view.temperature, font=font_big, fill=WHITE)

    # city strip
    tile_w = 96
    y0 = h - 96
    for i, tile in enumerate(view.tiles):
        x0 = 8 + i * (tile_w + 6)
        if x0 + tile_w > w:
            break
        outline = WHITE if tile.selected else (200, 200, 200)
        draw.rectangle([x0, y0, x0 + tile_w, y0 + 84], outline=outline, width=2 if tile.selected else 1)
        draw.text((x0 + 6, y0 + 6), tile.city[:11], font=font_small, fill=WHITE)
        draw.text((x0 + 6, y0 + 30), tile.icon, font=font_small, fill=WHITE)
        draw.text((x0 + 6, y0 + 54), tile.temperature, font=font_small, fill=WHITE)

    return img


def save_frame(img: Image.Image, path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp = path + ".tmp.png"
    img.save(tmp, format="PNG")
    os.replace(tmp, path)
