"""Place categories and the Places API type tokens each one searches for."""

from enum import Enum


class FilterKey(str, Enum):
    POI = "poi"
    HOSPITAL = "hospital"
    POLICE = "police"
    FIRE_STATION = "fire_station"


# includedTypes per filter (poi uses a few broad buckets)
FILTER_TO_TYPES: dict[FilterKey, tuple[str, ...]] = {
    FilterKey.POI: ("tourist_attraction", "point_of_interest", "establishment"),
    FilterKey.HOSPITAL: ("hospital",),
    FilterKey.POLICE: ("police",),
    FilterKey.FIRE_STATION: ("fire_station",),
}

FILTER_TITLES: dict[FilterKey, str] = {
    FilterKey.POI: "Nearby Landmarks",
    FilterKey.HOSPITAL: "Nearby Hospitals",
    FilterKey.POLICE: "Nearby Police",
    FilterKey.FIRE_STATION: "Nearby Fire Stations",
}

FILTER_LABELS: dict[FilterKey, str] = {
    FilterKey.POI: "All",
    FilterKey.HOSPITAL: "Hospital",
    FilterKey.POLICE: "Police",
    FilterKey.FIRE_STATION: "Fire",
}


def parse_filter(value: str | FilterKey) -> FilterKey:
    if isinstance(value, FilterKey):
        return value
    try:
        return FilterKey(value)
    except ValueError:
        raise ValueError(f"Unknown filter: {value!r}") from None


def included_types(key: FilterKey) -> list[str]:
    return list(FILTER_TO_TYPES[key])


def filter_title(key: FilterKey) -> str:
    return FILTER_TITLES[key]


def filter_label(key: FilterKey) -> str:
    return FILTER_LABELS[key]
