"""Partition engine: exclusive city ownership per zone plus leftover pools."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Literal, Mapping, Optional, Sequence

from ...errors import CityUnavailableError, UnknownZoneError, ZoneLockedError
from ...models.domain import REGIONS, Region, Zone, code_to_region, display_sort_key, sort_zone_codes
from ..geography.index import GeographyIndex
from .leftovers import EMPTY_POOL, LeftoverPool

SelectionStatus = Literal["none", "partial", "full"]


@dataclass(frozen=True, slots=True)
class StateStats:
    state: str
    total: int
    selected_here: int
    leftover_count: int
    fresh_remaining: int
    available_for_zone: int

    @property
    def status(self) -> SelectionStatus:
        if self.selected_here == 0:
            return "none"
        if self.selected_here == self.total:
            return "full"
        return "partial"


class PartitionEngine:
    """Owns every zone's city set and the per-region leftover pools.

    Zones are kept in canonical roster order and addressed by position. All
    state is held in immutable containers that are swapped wholesale on each
    mutation, so readers never see a half-applied change.
    """

    def __init__(
        self,
        index: GeographyIndex,
        zones: Sequence[Zone] = (),
        pools: Optional[Mapping[Region, LeftoverPool]] = None,
    ) -> None:
        self.index = index
        self._zones: tuple[Zone, ...] = self._ordered(zones)
        self._pools: Mapping[Region, LeftoverPool] = MappingProxyType(
            {region: (pools or {}).get(region, EMPTY_POOL) for region in REGIONS}
        )

    # ------------------------------------------------------------------ reads

    @property
    def zones(self) -> tuple[Zone, ...]:
        return self._zones

    @property
    def pools(self) -> Mapping[Region, LeftoverPool]:
        return self._pools

    def pool(self, region: Region) -> LeftoverPool:
        return self._pools[region]

    def zone(self, position: int) -> Zone:
        if not 0 <= position < len(self._zones):
            raise UnknownZoneError(f"No zone at position {position}.")
        return self._zones[position]

    def position_of(self, code: str) -> int:
        for position, zone in enumerate(self._zones):
            if zone.code == code:
                return position
        raise UnknownZoneError(f"Zone {code} is not part of the roster.")

    def zones_in_region(self, region: Region) -> list[Zone]:
        return [zone for zone in self._zones if zone.region == region]

    def owner_of(self, key: str) -> Optional[str]:
        for zone in self._zones:
            if key in zone.assigned_cities:
                return zone.code
        return None

    def owned_by_others(self, position: int) -> frozenset[str]:
        self.zone(position)
        owned: set[str] = set()
        for other, zone in enumerate(self._zones):
            if other != position:
                owned |= zone.assigned_cities
        return frozenset(owned)

    def all_owned(self) -> frozenset[str]:
        owned: set[str] = set()
        for zone in self._zones:
            owned |= zone.assigned_cities
        return frozenset(owned)

    def unclaimed_in_region(self, region: Region) -> frozenset[str]:
        return self.index.city_keys_in_region(region) - self.all_owned()

    def has_selectable_cities(self, region: Region) -> bool:
        return bool(self.unclaimed_in_region(region))

    def is_region_exhausted(self, region: Region) -> bool:
        return not self.unclaimed_in_region(region)

    def available_cities(self, position: int, state: str) -> frozenset[str]:
        """Cities of ``state`` that no *other* zone owns (self-owned included)."""
        zone = self.zone(position)
        self._check_state(zone.region, state)
        return self.index.cities_of(zone.region, state) - self.owned_by_others(position)

    def leftover_cities(self, position: int, state: str) -> frozenset[str]:
        zone = self.zone(position)
        self._check_state(zone.region, state)
        return self.index.cities_of(zone.region, state) & self._pools[zone.region].keys()

    def fresh_cities(self, position: int, state: str) -> frozenset[str]:
        """Available cities that were never released into the leftover pool."""
        zone = self.zone(position)
        return self.available_cities(position, state) - self._pools[zone.region].keys()

    def fully_owned_by_earlier_zone(self, position: int, state: str) -> bool:
        zone = self.zone(position)
        all_keys = self.index.cities_of(zone.region, state)
        if not all_keys:
            return False
        for earlier in self._zones[:position]:
            if earlier.region == zone.region and all_keys <= earlier.assigned_cities:
                return True
        return False

    def state_visibility(self, position: int, state: str) -> bool:
        zone = self.zone(position)
        self._check_state(zone.region, state)
        if zone.cities_in_state(state):
            return True
        if self.fully_owned_by_earlier_zone(position, state):
            return False
        return bool(self.available_cities(position, state))

    def visible_states(self, position: int) -> list[str]:
        zone = self.zone(position)
        return [state for state in self.index.states_of(zone.region) if self.state_visibility(position, state)]

    def state_stats(self, position: int, state: str) -> StateStats:
        zone = self.zone(position)
        self._check_state(zone.region, state)
        all_keys = self.index.cities_of(zone.region, state)
        available = self.available_cities(position, state)
        pool_keys = self._pools[zone.region].keys()
        return StateStats(
            state=state,
            total=len(all_keys),
            selected_here=len(zone.cities_in_state(state)),
            leftover_count=len(all_keys & pool_keys),
            fresh_remaining=len(available - pool_keys - zone.assigned_cities),
            available_for_zone=len(available),
        )

    def sorted_available(self, position: int, state: str) -> list[str]:
        return sorted(self.available_cities(position, state), key=display_sort_key)

    # -------------------------------------------------------------- mutations

    def add_zone(self, code: str) -> Zone:
        for zone in self._zones:
            if zone.code == code:
                return zone
        created = Zone(code=code, region=code_to_region(code))
        self._zones = self._ordered((*self._zones, created))
        return created

    def remove_zones(self, codes: Iterable[str]) -> list[Zone]:
        """Delete zones. Their cities become available again; pool entries stay."""
        drop = set(codes)
        removed = [zone for zone in self._zones if zone.code in drop]
        if removed:
            self._zones = tuple(zone for zone in self._zones if zone.code not in drop)
            released = sum(len(zone.assigned_cities) for zone in removed)
            logging.info(f"Removed zones {[z.code for z in removed]}, releasing {released} cities")
        return removed

    def toggle_city(self, position: int, key: str) -> bool:
        """Flip ownership of ``key`` for the zone. Returns whether the zone now owns it."""
        zone = self._editable(position)
        if key not in self.index.city_keys_in_region(zone.region):
            raise CityUnavailableError(f"City '{key}' is not part of the {zone.region} region.")

        pool = self._pools[zone.region]
        if key in zone.assigned_cities:
            self._commit(position, zone.with_cities(zone.assigned_cities - {key}), pool.add(key, zone.code))
            return False

        owner = self.owner_of(key)
        if owner is not None:
            raise CityUnavailableError(f"City '{key}' is already assigned to zone {owner}.")
        self._commit(position, zone.with_cities(zone.assigned_cities | {key}), pool.discard_many([key]))
        return True

    def select_all_for_state(self, position: int, state: str) -> frozenset[str]:
        """Claim every available city of ``state``, leftovers included."""
        zone = self._editable(position)
        added = self.available_cities(position, state) - zone.assigned_cities
        if added:
            pool = self._pools[zone.region].discard_many(added)
            self._commit(position, zone.with_cities(zone.assigned_cities | added), pool)
        return added

    def select_fresh_for_state(self, position: int, state: str) -> frozenset[str]:
        """Claim only the available cities of ``state`` that are not leftovers."""
        zone = self._editable(position)
        added = self.fresh_cities(position, state) - zone.assigned_cities
        if added:
            self._commit(position, zone.with_cities(zone.assigned_cities | added), self._pools[zone.region])
        return added

    def clear_state(self, position: int, state: str) -> frozenset[str]:
        """Release every city of ``state`` owned by the zone into the leftover pool."""
        zone = self._editable(position)
        self._check_state(zone.region, state)
        removed = zone.cities_in_state(state)
        if removed:
            pool = self._pools[zone.region].add_many(removed, zone.code)
            self._commit(position, zone.with_cities(zone.assigned_cities - removed), pool)
        return removed

    def set_complete(self, position: int, flag: bool) -> Zone:
        zone = self.zone(position).with_complete(flag)
        self._replace_zone(position, zone)
        return zone

    def clear_pool(self, region: Region) -> None:
        if not self._pools[region]:
            return
        logging.info(f"Clearing {len(self._pools[region])} leftover cities in {region}")
        self._set_pool(region, EMPTY_POOL)

    # ---------------------------------------------------------------- helpers

    def _editable(self, position: int) -> Zone:
        zone = self.zone(position)
        if zone.is_complete:
            raise ZoneLockedError(f"Zone {zone.code} is complete. Re-open it before editing.")
        return zone

    def _check_state(self, region: Region, state: str) -> None:
        if not self.index.has_state(region, state):
            raise UnknownZoneError(f"State '{state}' has no cities in the {region} region.")

    def _commit(self, position: int, zone: Zone, pool: LeftoverPool) -> None:
        zones = list(self._zones)
        zones[position] = zone
        pools = dict(self._pools)
        pools[zone.region] = pool
        self._zones = tuple(zones)
        self._pools = MappingProxyType(pools)

    def _replace_zone(self, position: int, zone: Zone) -> None:
        zones = list(self._zones)
        zones[position] = zone
        self._zones = tuple(zones)

    def _set_pool(self, region: Region, pool: LeftoverPool) -> None:
        pools = dict(self._pools)
        pools[region] = pool
        self._pools = MappingProxyType(pools)

    @staticmethod
    def _ordered(zones: Iterable[Zone]) -> tuple[Zone, ...]:
        by_code = {zone.code: zone for zone in zones}
        return tuple(by_code[code] for code in sort_zone_codes(by_code))
