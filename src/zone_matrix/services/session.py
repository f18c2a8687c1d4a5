"""Configurator session: the single versioned value holding all configurator state."""

from __future__ import annotations

import logging
import uuid
from types import MappingProxyType
from typing import Any, Literal, Mapping, Optional

from ..config import settings
from ..errors import EmptyZoneError, ZoneOrderingError
from ..models.domain import REGION_ZONES, REGIONS, Region, Zone
from .geography.index import GeographyIndex
from .outputs.formatter import handoff_payload, matrix_to_json, zones_by_region
from .pricing.matrix import ImportResult, PriceMatrix
from .zones.leftovers import LeftoverPool
from .zones.partition import PartitionEngine
from .zones.roster import ZoneRoster
from .zones.workflow import Confirm, SaveOutcome, ZoneWorkflow

SNAPSHOT_VERSION = 1

Step = Literal["select-zones", "configure-zones", "price-matrix"]


class ConfiguratorSession:
    """Roster, partition, workflow focus and price matrix for one vendor.

    Every mutating call bumps ``revision`` so callers can persist the whole
    value after each change.
    """

    def __init__(
        self,
        index: GeographyIndex,
        *,
        session_id: Optional[str] = None,
        workflow: Optional[ZoneWorkflow] = None,
        matrix: Optional[PriceMatrix] = None,
        step: Step = "select-zones",
        revision: int = 0,
        vendor_id: Optional[str] = None,
    ) -> None:
        self.index = index
        self.session_id = session_id or uuid.uuid4().hex
        self.workflow = workflow or ZoneWorkflow(index, ZoneRoster(max_zones=settings.max_zones))
        self.matrix = matrix
        self.step: Step = step
        self.revision = revision
        self.vendor_id = vendor_id

    @property
    def engine(self) -> PartitionEngine:
        return self.workflow.engine

    @property
    def roster(self) -> ZoneRoster:
        return self.workflow.roster

    # ------------------------------------------------------------------ roster

    def select_zone(self, code: str) -> None:
        before = self.roster.selected
        self.workflow.select_zone(code)
        self._roster_changed(before)

    def deselect_zone(self, code: str) -> None:
        before = self.roster.selected
        self.workflow.deselect_zone(code)
        self._roster_changed(before)

    def select_all_visible(self, region: Region) -> list[str]:
        before = self.roster.selected
        added = self.workflow.select_all_visible(region)
        self._roster_changed(before)
        return added

    def deselect_all_visible(self, region: Region) -> list[str]:
        before = self.roster.selected
        removed = self.workflow.deselect_all_visible(region)
        self._roster_changed(before)
        return removed

    def reveal_more(self, region: Region) -> None:
        self.workflow.reveal_more(region)
        self._touch()

    def proceed_to_configuration(self) -> None:
        if not self.roster.selected:
            raise EmptyZoneError("Please select at least one zone.")
        self.step = "configure-zones"
        self.workflow.open_zone(0)
        self._touch()

    # --------------------------------------------------------------- partition

    def toggle_city(self, position: int, key: str) -> bool:
        self._require_configuring()
        owned = self.workflow.toggle_city(position, key)
        self._touch()
        return owned

    def select_all_for_state(self, position: int, state: str, *, include_leftovers: bool = True) -> frozenset[str]:
        self._require_configuring()
        added = self.workflow.select_all_for_state(position, state, include_leftovers=include_leftovers)
        self._touch()
        return added

    def clear_state(self, position: int, state: str) -> frozenset[str]:
        self._require_configuring()
        removed = self.workflow.clear_state(position, state)
        self._touch()
        return removed

    def set_active_state(self, position: int, state: Optional[str]) -> None:
        self._require_configuring()
        self.workflow.set_active_state(position, state)
        self._touch()

    def open_zone(self, position: int) -> Zone:
        self._require_configuring()
        zone = self.workflow.open_zone(position)
        self.step = "configure-zones"
        self._touch()
        return zone

    def reopen_zone(self, position: int) -> Zone:
        self._require_configuring()
        zone = self.workflow.reopen_zone(position)
        self.step = "configure-zones"
        self._touch()
        return zone

    def save_zone(self, confirm: Optional[Confirm] = None) -> SaveOutcome:
        self._require_configuring()
        outcome = self.workflow.save_zone(confirm)
        if outcome.status == "cancelled":
            return outcome
        if outcome.status == "deleted" and outcome.all_complete and self._finalizable():
            self._build_matrix()
        self._touch()
        return outcome

    # ----------------------------------------------------------------- pricing

    def finalize(self) -> PriceMatrix:
        self._require_configuring()
        if not self._finalizable():
            raise EmptyZoneError("Please configure at least one zone with cities.")
        matrix = self._build_matrix()
        self._touch()
        return matrix

    def set_price(self, from_zone: str, to_zone: str, value: Optional[float]) -> None:
        self._require_matrix().set_price(from_zone, to_zone, value)
        self._touch()

    def export_csv(self) -> str:
        return self._require_matrix().export_csv()

    def import_csv(self, text: str, confirm: Optional[Confirm] = None) -> ImportResult:
        result = self._require_matrix().import_csv(text, confirm)
        if result.status != "cancelled":
            self._touch()
        return result

    def finalized_zones(self) -> list[Zone]:
        return [zone for zone in self.engine.zones if zone.is_complete and not zone.is_empty]

    def handoff(self) -> dict:
        matrix = self._require_matrix()
        codes = set(matrix.zones)
        zones = [zone for zone in self.engine.zones if zone.code in codes]
        return handoff_payload(zones, matrix, vendor_id=self.vendor_id)

    # --------------------------------------------------------------- snapshots

    def to_snapshot(self) -> dict[str, Any]:
        engine = self.engine
        return {
            "version": SNAPSHOT_VERSION,
            "session_id": self.session_id,
            "vendor_id": self.vendor_id,
            "revision": self.revision,
            "step": self.step,
            "current_zone_index": self.workflow.current,
            "focus_region": self.workflow.focus_region,
            "selected_zone_codes": list(self.roster.selected),
            "visible_zones_per_region": dict(self.roster.visible),
            "zones": zones_by_region(engine.zones),
            "leftovers": {region: engine.pool(region).to_dict() for region in REGIONS if engine.pool(region)},
            "active_state_by_zone": dict(self.workflow.active_states),
            "price_matrix": (
                {"zones": list(self.matrix.zones), "entries": matrix_to_json(self.matrix)}
                if self.matrix is not None
                else None
            ),
        }

    @classmethod
    def from_snapshot(cls, index: GeographyIndex, data: Mapping[str, Any]) -> "ConfiguratorSession":
        version = data.get("version")
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported session snapshot version {version!r}.")

        visible = {
            region: int((data.get("visible_zones_per_region") or {}).get(region, len(REGION_ZONES[region])))
            for region in REGIONS
        }
        roster = ZoneRoster(
            selected=tuple(data.get("selected_zone_codes") or ()),
            visible=MappingProxyType(visible),
            max_zones=settings.max_zones,
        )

        zones: list[Zone] = []
        for region, items in (data.get("zones") or {}).items():
            for item in items:
                if item["zone_code"] not in roster.selected:
                    continue
                cities = frozenset(item.get("selected_cities") or ())
                zones.append(
                    Zone(
                        code=item["zone_code"],
                        region=region,
                        assigned_cities=cities,
                        is_complete=bool(item.get("is_complete")),
                    )
                )

        pools = {
            region: LeftoverPool.from_dict(pool) for region, pool in (data.get("leftovers") or {}).items()
        }
        engine = PartitionEngine(index, zones, pools)
        workflow = ZoneWorkflow(
            index,
            roster,
            engine,
            current=int(data.get("current_zone_index") or 0),
            active_states=data.get("active_state_by_zone") or {},
        )
        if data.get("focus_region") in REGIONS:
            workflow.focus_region = data["focus_region"]

        matrix_data = data.get("price_matrix")
        matrix = (
            PriceMatrix.from_entries(matrix_data.get("zones") or (), matrix_data.get("entries") or ())
            if matrix_data
            else None
        )
        return cls(
            index,
            session_id=data.get("session_id"),
            workflow=workflow,
            matrix=matrix,
            step=data.get("step") or "select-zones",
            revision=int(data.get("revision") or 0),
            vendor_id=data.get("vendor_id"),
        )

    # ---------------------------------------------------------------- helpers

    def _finalizable(self) -> bool:
        return bool(self.finalized_zones())

    def _build_matrix(self) -> PriceMatrix:
        codes = [zone.code for zone in self.finalized_zones()]
        self.matrix = PriceMatrix.build(codes)
        self.step = "price-matrix"
        logging.info(f"Price matrix initialised for {len(codes)} zones")
        return self.matrix

    def _roster_changed(self, before: tuple[str, ...]) -> None:
        # a finalized matrix only covers the zones it was built from
        if self.matrix is not None and self.roster.selected != before:
            logging.info(f"Roster changed after finalize; discarding price matrix for {list(self.matrix.zones)}")
            self.matrix = None
            self.step = "configure-zones"
        self._touch()

    def _require_configuring(self) -> None:
        if self.step == "select-zones":
            raise ZoneOrderingError("Proceed to zone configuration first.")

    def _require_matrix(self) -> PriceMatrix:
        if self.matrix is None:
            raise ZoneOrderingError("Finalize the zone configuration before pricing.")
        return self.matrix

    def _touch(self) -> None:
        self.revision += 1
