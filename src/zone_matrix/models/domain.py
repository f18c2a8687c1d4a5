"""Domain models for geography records, zones and price matrix entries."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Literal, Optional

Region = Literal["North", "South", "East", "West", "Northeast", "Central"]

REGIONS: tuple[Region, ...] = ("North", "South", "East", "West", "Northeast", "Central")

REGION_ZONES: dict[Region, tuple[str, ...]] = {
    "North": ("N1", "N2", "N3", "N4", "N5", "N6"),
    "South": ("S1", "S2", "S3", "S4", "S5", "S6"),
    "East": ("E1", "E2", "E3", "E4"),
    "West": ("W1", "W2", "W3", "W4"),
    "Northeast": ("NE1", "NE2", "NE3", "NE4"),
    "Central": ("C1", "C2", "C3", "C4"),
}

# Canonical display order; regions are kept together.
ZONE_ORDER: tuple[str, ...] = (
    *REGION_ZONES["North"],
    *REGION_ZONES["West"],
    *REGION_ZONES["Central"],
    *REGION_ZONES["South"],
    *REGION_ZONES["East"],
    *REGION_ZONES["Northeast"],
)

CITY_KEY_SEPARATOR = "||"


def code_to_region(code: str) -> Region:
    """Map a zone code (or a raw dataset zone tag) to its coarse region."""
    normalized = (code or "").strip().upper()
    if normalized.startswith("NE"):
        return "Northeast"
    prefix = normalized[:1]
    if prefix == "S":
        return "South"
    if prefix == "E":
        return "East"
    if prefix == "W":
        return "West"
    if prefix == "C":
        return "Central"
    return "North"


def is_known_zone(code: str) -> bool:
    return code in ZONE_ORDER


def sort_zone_codes(codes: Iterable[str]) -> list[str]:
    return sorted(codes, key=ZONE_ORDER.index)


def city_key(city: str, state: str) -> str:
    return f"{city}{CITY_KEY_SEPARATOR}{state}"


def parse_city_key(key: str) -> tuple[str, str]:
    """Split a city key into ``(city, state)`` on the last separator."""
    city, sep, state = key.rpartition(CITY_KEY_SEPARATOR)
    if not sep:
        raise ValueError(f"Malformed city key '{key}'.")
    return city, state


def state_of(key: str) -> str:
    return parse_city_key(key)[1]


def display_sort_key(key: str) -> tuple[str, str]:
    city, state = parse_city_key(key)
    return (city.casefold(), state.casefold())


def derive_states(city_keys: Iterable[str]) -> frozenset[str]:
    return frozenset(state_of(key) for key in city_keys)


@dataclass(frozen=True, slots=True)
class GeoRecord:
    """A single validated pincode row."""

    pincode: str
    state: str
    city: str
    region_code: Region

    @property
    def city_key(self) -> str:
        return city_key(self.city, self.state)


@dataclass(frozen=True, slots=True)
class Zone:
    """A configurable zone. States are always derived from the assigned cities."""

    code: str
    region: Region
    assigned_cities: frozenset[str] = field(default_factory=frozenset)
    is_complete: bool = False

    @property
    def derived_states(self) -> frozenset[str]:
        return derive_states(self.assigned_cities)

    @property
    def is_empty(self) -> bool:
        return not self.assigned_cities

    def sorted_states(self) -> list[str]:
        return sorted(self.derived_states, key=str.casefold)

    def sorted_cities(self) -> list[str]:
        return sorted(self.assigned_cities, key=display_sort_key)

    def cities_in_state(self, state: str) -> frozenset[str]:
        return frozenset(key for key in self.assigned_cities if state_of(key) == state)

    def with_cities(self, cities: Iterable[str]) -> "Zone":
        return replace(self, assigned_cities=frozenset(cities))

    def with_complete(self, flag: bool) -> "Zone":
        return replace(self, is_complete=flag)


@dataclass(frozen=True, slots=True)
class PriceMatrixEntry:
    from_zone: str
    to_zone: str
    price: Optional[float]
