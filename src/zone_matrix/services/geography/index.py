"""Region → state → city lookup built once per geography dataset."""

from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Sequence

from ...errors import UnknownZoneError
from ...models.domain import REGIONS, GeoRecord, Region, code_to_region, display_sort_key

_PINCODE_PATTERN = re.compile(r"^\d{6}$")
_PLACEHOLDERS = {"", "NAN", "NONE", "NULL"}


def _field(row: Mapping[str, Any], name: str) -> str:
    """Read a column case-insensitively, returning a stripped string."""
    value = row.get(name)
    if value is None:
        for key, candidate in row.items():
            if str(key).strip().lower() == name:
                value = candidate
                break
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def normalize_record(row: Mapping[str, Any]) -> Optional[GeoRecord]:
    """Validate a raw dataset row. Returns ``None`` for rows that must be skipped."""
    state = _field(row, "state")
    city = _field(row, "city")
    pincode = _field(row, "pincode")
    if state.upper() in _PLACEHOLDERS or city.upper() in _PLACEHOLDERS:
        return None
    if not _PINCODE_PATTERN.match(pincode):
        return None
    return GeoRecord(
        pincode=pincode,
        state=state,
        city=city,
        region_code=code_to_region(_field(row, "zone")),
    )


class GeographyIndex:
    """Read-only lookup of cities per (region, state) and records per pincode."""

    def __init__(self, records: Sequence[GeoRecord], *, discarded: int = 0) -> None:
        by_region: dict[Region, dict[str, set[str]]] = {region: {} for region in REGIONS}
        by_pincode: dict[str, GeoRecord] = {}
        region_of_key: dict[str, Region] = {}
        for record in records:
            key = record.city_key
            by_region[record.region_code].setdefault(record.state, set()).add(key)
            by_pincode.setdefault(record.pincode, record)
            region_of_key.setdefault(key, record.region_code)

        self._cities = MappingProxyType(
            {
                region: MappingProxyType({state: frozenset(keys) for state, keys in states.items()})
                for region, states in by_region.items()
            }
        )
        self._states_sorted = {
            region: tuple(sorted(states, key=str.casefold)) for region, states in by_region.items()
        }
        self._region_keys = {
            region: frozenset(key for keys in states.values() for key in keys)
            for region, states in by_region.items()
        }
        self._by_pincode = MappingProxyType(by_pincode)
        self._region_of_key = MappingProxyType(region_of_key)
        self.record_count = len(records)
        self.discarded_count = discarded

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "GeographyIndex":
        records: list[GeoRecord] = []
        discarded = 0
        for row in rows:
            record = normalize_record(row)
            if record is None:
                discarded += 1
                continue
            records.append(record)
        logging.info(f"Geography index built from {len(records)} records ({discarded} discarded)")
        return cls(records, discarded=discarded)

    def cities_of(self, region: Region, state: str) -> frozenset[str]:
        return self._cities[self._check_region(region)].get(state, frozenset())

    def by_pincode(self, pincode: str) -> Optional[GeoRecord]:
        return self._by_pincode.get(str(pincode).strip())

    def states_of(self, region: Region) -> tuple[str, ...]:
        return self._states_sorted[self._check_region(region)]

    def has_state(self, region: Region, state: str) -> bool:
        return state in self._cities[self._check_region(region)]

    def city_keys_in_region(self, region: Region) -> frozenset[str]:
        return self._region_keys[self._check_region(region)]

    def total_cities(self, region: Region) -> int:
        return len(self.city_keys_in_region(region))

    def region_of_city(self, key: str) -> Optional[Region]:
        return self._region_of_key.get(key)

    def sorted_cities(self, region: Region, state: str) -> list[str]:
        return sorted(self.cities_of(region, state), key=display_sort_key)

    def summary(self) -> dict[str, Any]:
        return {
            "records": self.record_count,
            "discarded": self.discarded_count,
            "pincodes": len(self._by_pincode),
            "regions": {
                region: {"states": len(self._states_sorted[region]), "cities": len(self._region_keys[region])}
                for region in REGIONS
            },
        }

    @staticmethod
    def _check_region(region: str) -> Region:
        if region not in REGIONS:
            raise UnknownZoneError(f"Unknown region '{region}'.")
        return region  # type: ignore[return-value]


def build_index(rows: Iterable[Mapping[str, Any]]) -> GeographyIndex:
    return GeographyIndex.from_rows(rows)


__all__ = ["GeographyIndex", "build_index", "normalize_record"]
