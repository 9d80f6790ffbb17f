"""Video filters a creator can apply to a live."""

DEFAULT_FILTER = "normal"
UNKNOWN_FILTER = "none"

LIVE_FILTERS: dict[str, str] = {
    "normal": "Normal",
    "icy-water": "Icy Water",
    "summer-heat": "Summer Heat",
    "fever": "Fever",
    "strawberry": "Strawberry",
    "ibiza": "Ibiza",
    "sweet-sunset": "Sweet Sunset",
    "blue-rock": "Blue Rock",
    "ocean-wave": "Ocean Wave",
    "little-red": "Little Red",
    "vintage-may": "Vintage May",
    "desert-morning": "Desert Morning",
    "blue-lagoon": "Blue Lagoon",
    "warm-ice": "Warm Ice",
    "burnt-coffee": "Burnt Coffee",
    "waterness": "Waterness",
    "old-wood": "Old Wood",
    "distant-mountain": "Distant Mountain",
    "coal-paper": "Coal Paper",
    "simple-gray": "Simple Gray",
    "rose-quartz": "Rose Quartz",
    "amazon": "Amazon",
    "baseline-special": "Baseline Special",
    "baby-glass": "Baby Glass",
    "rose-glass": "Rose Glass",
    "yellow-haze": "Yellow Haze",
    "blue-haze": "Blue Haze",
    "studio-54": "Studio 54",
    "burnt-peach": "Burnt Peach",
    "mono-sky": "Mono Sky",
    "mustard-grass": "Mustard Grass",
    "leaf": "Leaf",
    "ryellow": "Ryellow",
    "baseline-darken": "Baseline Darken",
    "red-sky": "Red Sky",
}


def sanitize_filter(key) -> str:
    """Return the key when whitelisted, otherwise ``none``."""
    if isinstance(key, str) and key in LIVE_FILTERS:
        return key
    return UNKNOWN_FILTER
