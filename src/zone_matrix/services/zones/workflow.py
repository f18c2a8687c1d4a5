"""Zone lifecycle: saving, exhaustion handling and navigation between zones."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from ...errors import EmptyZoneError, UnknownZoneError, ZoneOrderingError
from ...models.domain import Region, Zone
from ..geography.index import GeographyIndex
from .partition import PartitionEngine
from .roster import ZoneRoster

PromptKind = Literal["delete_empty_zone", "region_exhausted", "replace_prices"]


@dataclass(frozen=True, slots=True)
class ConfirmationPrompt:
    kind: PromptKind
    message: str
    zone_codes: tuple[str, ...] = ()


Confirm = Callable[[ConfirmationPrompt], bool]


@dataclass(frozen=True, slots=True)
class SaveOutcome:
    status: Literal["completed", "deleted", "cancelled"]
    zone_code: str
    deleted: tuple[str, ...] = ()
    prompt: Optional[ConfirmationPrompt] = None
    next_position: Optional[int] = None
    all_complete: bool = False


def _confirmed(confirm: Optional[Confirm], prompt: ConfirmationPrompt) -> bool:
    if confirm is None:
        return False
    return bool(confirm(prompt))


class ZoneWorkflow:
    """Coordinates the roster and the partition engine around a focused zone."""

    def __init__(
        self,
        index: GeographyIndex,
        roster: ZoneRoster,
        engine: Optional[PartitionEngine] = None,
        *,
        current: int = 0,
        active_states: Optional[dict[str, Optional[str]]] = None,
    ) -> None:
        self.index = index
        self.roster = roster
        self.engine = engine or PartitionEngine(index)
        for code in roster.selected:
            self.engine.add_zone(code)
        self.active_states: dict[str, Optional[str]] = dict(active_states or {})
        self.current = current if 0 <= current < len(self.engine.zones) else 0
        self.focus_region: Optional[Region] = self.current_zone.region if self.current_zone else None

    # ----------------------------------------------------------------- roster

    def select_zone(self, code: str) -> None:
        focused = self._focused_code()
        self.roster = self.roster.select(code)
        self.engine.add_zone(code)
        self.active_states.setdefault(code, None)
        self._refocus(focused)

    def deselect_zone(self, code: str) -> None:
        focused = self._focused_code()
        self.roster = self.roster.deselect(code)
        self._forget(self.engine.remove_zones([code]))
        self._refocus(focused)

    def select_all_visible(self, region: Region) -> list[str]:
        focused = self._focused_code()
        self.roster, added = self.roster.select_all_visible(region)
        for code in added:
            self.engine.add_zone(code)
            self.active_states.setdefault(code, None)
        self._refocus(focused)
        return added

    def deselect_all_visible(self, region: Region) -> list[str]:
        focused = self._focused_code()
        self.roster, removed = self.roster.deselect_all_visible(region)
        self._forget(self.engine.remove_zones(removed))
        self._refocus(focused)
        return removed

    def reveal_more(self, region: Region) -> None:
        self.roster = self.roster.reveal_more(region)

    # ------------------------------------------------------------- navigation

    @property
    def current_zone(self) -> Optional[Zone]:
        zones = self.engine.zones
        return zones[self.current] if 0 <= self.current < len(zones) else None

    @property
    def all_complete(self) -> bool:
        return bool(self.engine.zones) and all(zone.is_complete for zone in self.engine.zones)

    def can_open(self, target: int) -> bool:
        zones = self.engine.zones
        if not 0 <= target < len(zones):
            return False
        if target <= self.current:
            return True
        return all(zone.is_complete for zone in zones[:target])

    def open_zone(self, target: int) -> Zone:
        self._check_reachable(target)
        self._move_focus(target)
        return self.engine.zone(target)

    def reopen_zone(self, target: int) -> Zone:
        self._check_reachable(target)
        zone = self.engine.set_complete(target, False)
        self._move_focus(target)
        logging.info(f"Zone {zone.code} re-opened for editing")
        return zone

    def progress(self) -> float:
        zones = self.engine.zones
        if not zones:
            return 0.0
        return round(100.0 * sum(1 for zone in zones if zone.is_complete) / len(zones), 2)

    # ------------------------------------------------------------ city edits

    def toggle_city(self, position: int, key: str) -> bool:
        self._check_reachable(position)
        return self.engine.toggle_city(position, key)

    def select_all_for_state(self, position: int, state: str, *, include_leftovers: bool = True) -> frozenset[str]:
        self._check_reachable(position)
        if include_leftovers:
            added = self.engine.select_all_for_state(position, state)
        else:
            added = self.engine.select_fresh_for_state(position, state)
        self.active_states[self.engine.zone(position).code] = state
        return added

    def clear_state(self, position: int, state: str) -> frozenset[str]:
        self._check_reachable(position)
        return self.engine.clear_state(position, state)

    def set_active_state(self, position: int, state: Optional[str]) -> None:
        zone = self.engine.zone(position)
        if state is not None and not self.index.has_state(zone.region, state):
            raise UnknownZoneError(f"State '{state}' has no cities in the {zone.region} region.")
        self.active_states[zone.code] = state

    def active_state(self, position: int) -> Optional[str]:
        """The state the zone is focused on, falling back to a sensible default."""
        zone = self.engine.zone(position)
        chosen = self.active_states.get(zone.code)
        if chosen:
            return chosen
        states = zone.sorted_states()
        if states:
            return states[0]
        visible = self.engine.visible_states(position)
        for state in visible:
            stats = self.engine.state_stats(position, state)
            if stats.leftover_count > 0 or stats.status == "partial":
                return state
        return visible[0] if visible else None

    # ------------------------------------------------------------------ saving

    def save_zone(self, confirm: Optional[Confirm] = None) -> SaveOutcome:
        """Validate and complete the focused zone.

        Destructive branches ask ``confirm``; a missing or negative answer
        returns a ``cancelled`` outcome and leaves every structure untouched.
        """
        zone = self.current_zone
        if zone is None:
            raise UnknownZoneError("No zone is selected for configuration.")
        if zone.is_empty:
            return self._save_empty(zone, confirm)

        region = zone.region
        cascade: list[str] = []
        if self.engine.is_region_exhausted(region):
            cascade = self._trailing_empty_zones(region, zone.code)

        if cascade:
            prompt = ConfirmationPrompt(
                kind="region_exhausted",
                message=(
                    f"You have selected all available cities in the {region} region. "
                    f"Saving this will remove these unused sub-zones: {', '.join(cascade)}."
                ),
                zone_codes=tuple(cascade),
            )
            if not _confirmed(confirm, prompt):
                logging.info(f"Save of {zone.code} cancelled at region exhaustion prompt")
                return SaveOutcome(status="cancelled", zone_code=zone.code, prompt=prompt)
            roster = self.roster.drop_tail(cascade)
        else:
            prompt = None
            roster = self.roster

        position = self.current
        self.engine.set_complete(position, True)
        if cascade:
            self.roster = roster
            self._forget(self.engine.remove_zones(cascade))
            self.engine.clear_pool(region)
            logging.info(f"Region {region} exhausted by {zone.code}; deleted {cascade}")
        if all(z.is_complete for z in self.engine.zones_in_region(region)):
            self.engine.clear_pool(region)

        next_position = self._next_incomplete(position)
        if next_position is not None:
            self._move_focus(next_position)
        logging.info(f"Zone {zone.code} saved with {len(zone.assigned_cities)} cities")
        return SaveOutcome(
            status="completed",
            zone_code=zone.code,
            deleted=tuple(cascade),
            prompt=prompt,
            next_position=self.current,
            all_complete=self.all_complete,
        )

    def _save_empty(self, zone: Zone, confirm: Optional[Confirm]) -> SaveOutcome:
        if self.engine.has_selectable_cities(zone.region):
            raise EmptyZoneError("Cannot save empty zone. Please select at least one city.")

        later = self._region_zones_after(zone)
        blocking = [z.code for z in later if not z.is_empty]
        if blocking:
            holders = ", ".join(blocking)
            raise ZoneOrderingError(
                f"Zone {zone.code} cannot be deleted while {holders} still hold cities. "
                f"Re-open {holders} and release cities for {zone.code}, or clear {holders} first."
            )
        codes = [zone.code, *(z.code for z in later)]
        prompt = ConfirmationPrompt(
            kind="delete_empty_zone",
            message=(
                f"No cities are available for selection in {zone.code}. "
                f"All cities in the {zone.region} region have been selected in previous zones. "
                f"Delete {', '.join(codes)} and continue?"
            ),
            zone_codes=tuple(codes),
        )
        if not _confirmed(confirm, prompt):
            return SaveOutcome(status="cancelled", zone_code=zone.code, prompt=prompt)

        roster = self.roster.drop_tail(codes)
        position = self.current
        self.roster = roster
        self._forget(self.engine.remove_zones(codes))
        logging.info(f"Deleted empty zones {codes} after {zone.region} ran out of cities")

        zones = self.engine.zones
        next_position = next((i for i in range(position, len(zones)) if not zones[i].is_complete), None)
        if next_position is None:
            next_position = next((i for i, z in enumerate(zones) if not z.is_complete), None)
        if next_position is not None:
            self._move_focus(next_position)
        else:
            self.current = min(position, max(len(zones) - 1, 0))
        return SaveOutcome(
            status="deleted",
            zone_code=zone.code,
            deleted=tuple(codes),
            prompt=prompt,
            next_position=next_position,
            all_complete=next_position is None,
        )

    # ---------------------------------------------------------------- helpers

    def _region_zones_after(self, zone: Zone) -> list[Zone]:
        region_zones = self.engine.zones_in_region(zone.region)
        codes = [z.code for z in region_zones]
        return region_zones[codes.index(zone.code) + 1 :]

    def _trailing_empty_zones(self, region: Region, saved_code: str) -> list[str]:
        """Editable empty zones at the tail of the region, which exhaustion makes impossible."""
        trailing: list[str] = []
        for zone in reversed(self.engine.zones_in_region(region)):
            if zone.code == saved_code or zone.is_complete or not zone.is_empty:
                break
            trailing.append(zone.code)
        return list(reversed(trailing))

    def _next_incomplete(self, position: int) -> Optional[int]:
        zones = self.engine.zones
        after = next((i for i in range(position + 1, len(zones)) if not zones[i].is_complete), None)
        if after is not None:
            return after
        return next((i for i in range(0, min(position, len(zones))) if not zones[i].is_complete), None)

    def _move_focus(self, target: int) -> None:
        zone = self.engine.zone(target)
        previous = self.focus_region
        if previous is not None and previous != zone.region:
            finished = self.engine.zones_in_region(previous)
            if all(z.is_complete for z in finished):
                self.engine.clear_pool(previous)
        self.current = target
        self.focus_region = zone.region

    def _focused_code(self) -> Optional[str]:
        zone = self.current_zone
        return zone.code if zone else None

    def _refocus(self, code: Optional[str]) -> None:
        """Keep focus on the same zone after the roster shifts positions."""
        zones = self.engine.zones
        codes = [zone.code for zone in zones]
        if code in codes:
            self.current = codes.index(code)
        else:
            self.current = next((i for i, zone in enumerate(zones) if not zone.is_complete), 0)
        if zones:
            self.focus_region = zones[self.current].region

    def _check_reachable(self, target: int) -> None:
        self.engine.zone(target)
        if not self.can_open(target):
            raise ZoneOrderingError("Complete the previous zones before configuring this one.")

    def _forget(self, removed: list[Zone]) -> None:
        for zone in removed:
            self.active_states.pop(zone.code, None)
        if self.current >= len(self.engine.zones):
            self.current = max(len(self.engine.zones) - 1, 0)
