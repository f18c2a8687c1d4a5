"""Utilities to serialize zones and price matrices into JSON/CSV artifacts."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Iterable, Sequence

from ...models.domain import REGIONS, Zone
from ..pricing.matrix import PriceMatrix


def zone_to_json(zone: Zone) -> dict:
    return {
        "zone_code": zone.code,
        "zone_name": zone.code,
        "region": zone.region,
        "selected_states": zone.sorted_states(),
        "selected_cities": zone.sorted_cities(),
        "is_complete": zone.is_complete,
    }


def zones_by_region(zones: Iterable[Zone]) -> dict[str, list[dict]]:
    grouped: dict[str, list[dict]] = {region: [] for region in REGIONS}
    for zone in zones:
        grouped[zone.region].append(zone_to_json(zone))
    return {region: items for region, items in grouped.items() if items}


def matrix_to_json(matrix: PriceMatrix) -> list[dict]:
    return [asdict(entry) for entry in matrix.entries()]


def handoff_payload(zones: Sequence[Zone], matrix: PriceMatrix, *, vendor_id: str | None = None) -> dict:
    """Final result consumed by the vendor onboarding form."""
    return {
        "vendor_id": vendor_id,
        "zones": [zone_to_json(zone) for zone in zones],
        "price_matrix": matrix_to_json(matrix),
        "price_chart": matrix.to_nested(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
