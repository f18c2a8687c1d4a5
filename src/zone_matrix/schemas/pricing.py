"""Pydantic request/response models for price matrix endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from .sessions import PromptModel, ZoneModel


class PriceEntryModel(BaseModel):
    from_zone: str
    to_zone: str
    price: Optional[float] = None


class PriceUpdateRequest(BaseModel):
    from_zone: str
    to_zone: str
    price: Optional[float] = Field(default=None, description="Lane price, or null to clear the cell.")


class PriceMatrixResponse(BaseModel):
    zones: list[str]
    entries: list[PriceEntryModel]
    filled: int
    size: int


class ImportResponse(BaseModel):
    status: str
    imported: int
    skipped_cells: int
    skipped_rows: int
    prompt: Optional[PromptModel] = None


class SubmissionResponse(BaseModel):
    vendor_id: Optional[str] = None
    zones: list[ZoneModel]
    price_matrix: list[PriceEntryModel]
    price_chart: dict[str, dict[str, float]]
    timestamp: str
    outputs: dict[str, Any]
