"""Zone-to-zone price matrix with CSV export/import."""

from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Iterable, Mapping, Optional, Sequence

from ...config import settings
from ...errors import PriceMatrixImportError, PriceValidationError, UnknownZoneError
from ...models.domain import PriceMatrixEntry
from ..zones.workflow import Confirm, ConfirmationPrompt

Cell = tuple[str, str]


@dataclass(frozen=True, slots=True)
class ImportResult:
    status: str
    imported: int = 0
    skipped_cells: int = 0
    skipped_rows: int = 0
    prompt: Optional[ConfirmationPrompt] = None


def format_price(value: Optional[float]) -> str:
    if value is None:
        return ""
    text = f"{value:.{settings.price_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def _decimal_places(value: float) -> int:
    exponent = Decimal(repr(float(value))).normalize().as_tuple().exponent
    return max(0, -exponent) if isinstance(exponent, int) else 0


def check_price(value: object) -> Optional[float]:
    """Return a validated price, or raise ``PriceValidationError``."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PriceValidationError(f"Price must be a number, got {value!r}.")
    price = float(value)
    if not math.isfinite(price):
        raise PriceValidationError("Price must be a finite number.")
    if price < settings.price_min or price > settings.price_max:
        raise PriceValidationError(
            f"Price {format_price(price)} is outside [{format_price(settings.price_min)}, "
            f"{format_price(settings.price_max)}]."
        )
    if _decimal_places(price) > settings.price_decimals:
        raise PriceValidationError(f"Price {value} has more than {settings.price_decimals} decimal places.")
    return price


def _parse_cell(raw: str) -> Optional[float]:
    """Parse an imported cell; ``None`` means the cell is dropped."""
    try:
        Decimal(raw)
        return check_price(float(raw))
    except (InvalidOperation, ValueError):
        return None


@dataclass(eq=False)
class PriceMatrix:
    """Full ``zones x zones`` grid; ``(A, B)`` and ``(B, A)`` are independent."""

    zones: tuple[str, ...]
    _prices: dict[Cell, Optional[float]] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self.zones = tuple(self.zones)
        if len(set(self.zones)) != len(self.zones):
            raise ValueError("Price matrix zones must be unique.")
        self._prices = {
            (src, dst): self._prices.get((src, dst)) for src in self.zones for dst in self.zones
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PriceMatrix):
            return NotImplemented
        return set(self.zones) == set(other.zones) and self._prices == other._prices

    @classmethod
    def build(cls, zone_codes: Iterable[str]) -> "PriceMatrix":
        return cls(tuple(zone_codes))

    @classmethod
    def from_entries(cls, zone_codes: Iterable[str], entries: Iterable[Mapping]) -> "PriceMatrix":
        matrix = cls(tuple(zone_codes))
        for entry in entries:
            cell = (entry.get("from_zone"), entry.get("to_zone"))
            if cell in matrix._prices:
                matrix._prices[cell] = entry.get("price")
        return matrix

    @property
    def size(self) -> int:
        return len(self._prices)

    @property
    def filled(self) -> int:
        return sum(1 for price in self._prices.values() if price is not None)

    def get_price(self, from_zone: str, to_zone: str) -> Optional[float]:
        return self._prices[self._cell(from_zone, to_zone)]

    def set_price(self, from_zone: str, to_zone: str, value: Optional[float]) -> None:
        cell = self._cell(from_zone, to_zone)
        prices = dict(self._prices)
        prices[cell] = check_price(value)
        self._prices = prices

    def entries(self) -> list[PriceMatrixEntry]:
        return [
            PriceMatrixEntry(from_zone=src, to_zone=dst, price=self._prices[(src, dst)])
            for src in self.zones
            for dst in self.zones
        ]

    def to_nested(self) -> dict[str, dict[str, float]]:
        nested: dict[str, dict[str, float]] = {}
        for (src, dst), price in self._prices.items():
            if price is not None:
                nested.setdefault(src, {})[dst] = price
        return nested

    def export_csv(self) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["", *self.zones])
        for src in self.zones:
            writer.writerow([src, *(format_price(self._prices[(src, dst)]) for dst in self.zones)])
        return buffer.getvalue()

    def parse_csv(self, text: str) -> tuple[dict[Cell, Optional[float]], ImportResult]:
        """Parse an uploaded grid against the current zones without applying it."""
        rows = [row for row in csv.reader(io.StringIO(text.lstrip("\ufeff"))) if any(c.strip() for c in row)]
        if len(rows) < 2:
            raise PriceMatrixImportError(
                "Invalid CSV format. Please ensure the file has headers and data rows."
            )

        columns = {pos: name.strip() for pos, name in enumerate(rows[0]) if pos > 0 and name.strip()}
        uploaded = list(columns.values())
        if sorted(uploaded) != sorted(self.zones):
            raise PriceMatrixImportError(
                f"Zone mismatch. Current zones: {', '.join(self.zones)}. "
                f"Uploaded zones: {', '.join(uploaded)}"
            )

        prices: dict[Cell, Optional[float]] = {cell: None for cell in self._prices}
        imported = skipped_cells = skipped_rows = 0
        for row in rows[1:]:
            src = row[0].strip() if row else ""
            if src not in self.zones:
                skipped_rows += 1
                continue
            for pos, raw in enumerate(row):
                dst = columns.get(pos)
                if dst is None or not raw.strip():
                    continue
                price = _parse_cell(raw.strip())
                if price is None:
                    skipped_cells += 1
                    continue
                prices[(src, dst)] = price
                imported += 1
        return prices, ImportResult(
            status="imported", imported=imported, skipped_cells=skipped_cells, skipped_rows=skipped_rows
        )

    def import_csv(self, text: str, confirm: Optional[Confirm] = None) -> ImportResult:
        """Replace every price with the uploaded grid, or leave the matrix untouched."""
        prices, result = self.parse_csv(text)
        if self.filled:
            prompt = ConfirmationPrompt(
                kind="replace_prices",
                message=f"Importing will replace {self.filled} existing prices. Continue?",
                zone_codes=self.zones,
            )
            if confirm is None or not confirm(prompt):
                return ImportResult(status="cancelled", prompt=prompt)
        self._prices = prices
        logging.info(
            f"Imported {result.imported} prices ({result.skipped_cells} cells and "
            f"{result.skipped_rows} rows skipped)"
        )
        return result

    def _cell(self, from_zone: str, to_zone: str) -> Cell:
        cell = (from_zone, to_zone)
        if cell not in self._prices:
            raise UnknownZoneError(f"No price cell for {from_zone} -> {to_zone}.")
        return cell


def build_matrix(zone_codes: Sequence[str]) -> PriceMatrix:
    return PriceMatrix.build(zone_codes)
