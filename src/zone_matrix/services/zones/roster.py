"""Ordered roster of zone codes chosen for configuration."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional, Protocol

from ...config import settings
from ...errors import UnknownZoneError, ZoneOrderingError
from ...models.domain import REGION_ZONES, REGIONS, Region, code_to_region, is_known_zone, sort_zone_codes


class OrderingPolicy(Protocol):
    """Guard deciding whether a code may join or leave the roster."""

    def check_select(self, code: str, selected_in_region: tuple[str, ...]) -> None: ...

    def check_deselect(self, code: str, selected_in_region: tuple[str, ...]) -> None: ...


class SequentialOrdering:
    """Zones are added in catalogue order and removed in reverse order, per region."""

    def check_select(self, code: str, selected_in_region: tuple[str, ...]) -> None:
        catalogue = REGION_ZONES[code_to_region(code)]
        expected = next((slot for slot in catalogue if slot not in selected_in_region), None)
        if expected is not None and code != expected:
            raise ZoneOrderingError(f"Please select {expected} first before selecting {code}.")

    def check_deselect(self, code: str, selected_in_region: tuple[str, ...]) -> None:
        last = selected_in_region[-1] if selected_in_region else None
        if code != last:
            raise ZoneOrderingError(f"Please remove {last} before removing {code}.")


class UnorderedSelection:
    """Any catalogue slot may be selected or removed at any time."""

    def check_select(self, code: str, selected_in_region: tuple[str, ...]) -> None:
        return None

    def check_deselect(self, code: str, selected_in_region: tuple[str, ...]) -> None:
        return None


def _default_visible() -> Mapping[Region, int]:
    return MappingProxyType(
        {
            region: max(1, min(len(REGION_ZONES[region]), int(settings.initial_visible_zones.get(region, 2))))
            for region in REGIONS
        }
    )


@dataclass(frozen=True)
class ZoneRoster:
    """Immutable roster value. Every mutator returns a new roster."""

    selected: tuple[str, ...] = ()
    visible: Mapping[Region, int] = field(default_factory=_default_visible)
    max_zones: int = 28
    policy: OrderingPolicy = field(default_factory=SequentialOrdering, compare=False, repr=False)

    def __contains__(self, code: object) -> bool:
        return code in self.selected

    def __len__(self) -> int:
        return len(self.selected)

    def in_region(self, region: Region) -> tuple[str, ...]:
        catalogue = REGION_ZONES[region]
        return tuple(code for code in catalogue if code in self.selected)

    def next_expected(self, region: Region) -> Optional[str]:
        chosen = self.in_region(region)
        return next((code for code in REGION_ZONES[region] if code not in chosen), None)

    def visible_codes(self, region: Region) -> tuple[str, ...]:
        return REGION_ZONES[region][: self.visible.get(region, len(REGION_ZONES[region]))]

    def select(self, code: str) -> "ZoneRoster":
        self._check_code(code)
        if code in self.selected:
            return self
        if len(self.selected) >= self.max_zones:
            raise ZoneOrderingError(f"At most {self.max_zones} zones can be selected.")
        self.policy.check_select(code, self.in_region(code_to_region(code)))
        return self._with_selected((*self.selected, code))

    def deselect(self, code: str) -> "ZoneRoster":
        self._check_code(code)
        if code not in self.selected:
            return self
        self.policy.check_deselect(code, self.in_region(code_to_region(code)))
        return self._with_selected(tuple(c for c in self.selected if c != code))

    def select_all_visible(self, region: Region) -> tuple["ZoneRoster", list[str]]:
        """Advance slot by slot through the visible codes, stopping at the first rejection."""
        self._check_region(region)
        roster = self
        added: list[str] = []
        for code in self.visible_codes(region):
            if code in roster.selected:
                continue
            try:
                roster = roster.select(code)
            except ZoneOrderingError:
                break
            added.append(code)
        return roster, added

    def deselect_all_visible(self, region: Region) -> tuple["ZoneRoster", list[str]]:
        """Remove visible codes from the tail backwards, stopping at the first rejection."""
        self._check_region(region)
        roster = self
        removed: list[str] = []
        for code in reversed(self.visible_codes(region)):
            if code not in roster.selected:
                continue
            try:
                roster = roster.deselect(code)
            except ZoneOrderingError:
                break
            removed.append(code)
        return roster, removed

    def drop_tail(self, codes: list[str]) -> "ZoneRoster":
        """Remove codes that form the tail of their regions, as lifecycle deletions do."""
        remaining = self.selected
        for code in sorted(codes, key=lambda c: REGION_ZONES[code_to_region(c)].index(c), reverse=True):
            region_codes = tuple(c for c in REGION_ZONES[code_to_region(code)] if c in remaining)
            if not region_codes or region_codes[-1] != code:
                raise ZoneOrderingError(
                    f"Zone {code} cannot be removed while later zones of its region still exist."
                )
            remaining = tuple(c for c in remaining if c != code)
        return self._with_selected(remaining)

    def reveal_more(self, region: Region) -> "ZoneRoster":
        self._check_region(region)
        current = self.visible.get(region, 0)
        if current >= len(REGION_ZONES[region]):
            return self
        visible = dict(self.visible)
        visible[region] = current + 1
        return replace(self, visible=MappingProxyType(visible))

    def is_prefix(self, region: Region) -> bool:
        chosen = self.in_region(region)
        return chosen == REGION_ZONES[region][: len(chosen)]

    def _with_selected(self, codes: tuple[str, ...]) -> "ZoneRoster":
        return replace(self, selected=tuple(sort_zone_codes(codes)))

    @staticmethod
    def _check_code(code: str) -> None:
        if not is_known_zone(code):
            raise UnknownZoneError(f"Unknown zone code '{code}'.")

    @staticmethod
    def _check_region(region: str) -> None:
        if region not in REGIONS:
            raise UnknownZoneError(f"Unknown region '{region}'.")
