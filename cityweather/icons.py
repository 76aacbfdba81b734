# condition code ranges from the provider, inclusive on both ends
ICON_RANGES = [
    (200, 232, "thunderstorm"),
    (300, 321, "drizzle"),
    (500, 531, "rain"),
    (600, 622, "snow"),
    (701, 781, "fog"),
    (800, 800, "clear"),
    (801, 804, "cloudy"),
]

DEFAULT_ICON = "unknown"


def icon_for_code(code: int) -> str:
    for low, high, icon in ICON_RANGES:
        if low <= code <= high:
            return icon
    return DEFAULT_ICON
