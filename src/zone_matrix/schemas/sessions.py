"""Pydantic request/response models for configurator session endpoints."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class SessionCreateRequest(BaseModel):
    vendor_id: Optional[str] = Field(default=None, description="Vendor the zone configuration belongs to.")


class ZoneCodeRequest(BaseModel):
    code: str = Field(..., description="Zone code from the region catalogue, e.g. 'N1'.")

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()


class CityToggleRequest(BaseModel):
    city_key: str = Field(..., description="City key in the form 'City||State'.")


class SelectAllRequest(BaseModel):
    include_leftovers: bool = Field(
        default=True, description="Also claim cities released by other zones of the region."
    )


class ActiveStateRequest(BaseModel):
    state: Optional[str] = None


class ConfirmRequest(BaseModel):
    confirm: bool = Field(default=False, description="Answer to a pending confirmation prompt.")


class ZoneModel(BaseModel):
    zone_code: str
    zone_name: str
    region: str
    selected_states: list[str]
    selected_cities: list[str]
    is_complete: bool


class PromptModel(BaseModel):
    kind: str
    message: str
    zone_codes: list[str]


class RosterChangeResponse(BaseModel):
    changed: list[str]
    selected_zone_codes: list[str]


class StateSummaryModel(BaseModel):
    state: str
    total: int
    selected_here: int
    leftover_count: int
    fresh_remaining: int
    available_for_zone: int
    status: Literal["none", "partial", "full"]


class StateListResponse(BaseModel):
    zone_code: str
    active_state: Optional[str]
    states: list[StateSummaryModel]


class CityModel(BaseModel):
    city_key: str
    city: str
    state: str
    selected: bool
    available: bool
    leftover_sources: list[str]


class CityListResponse(BaseModel):
    zone_code: str
    state: str
    cities: list[CityModel]


class CityChangeResponse(BaseModel):
    zone: ZoneModel
    changed: list[str]
    owned: Optional[bool] = None


class SaveZoneResponse(BaseModel):
    status: Literal["completed", "deleted", "cancelled"]
    zone_code: str
    deleted: list[str]
    prompt: Optional[PromptModel] = None
    next_zone_index: Optional[int] = None
    all_complete: bool
    step: str


class SessionResponse(BaseModel):
    session_id: str
    vendor_id: Optional[str] = None
    revision: int
    step: str
    current_zone_index: int
    progress: float
    selected_zone_codes: list[str]
    visible_zones_per_region: dict[str, int]
    zones: list[ZoneModel]
    leftovers: dict[str, dict[str, dict[str, list[str]]]]
    active_state_by_zone: dict[str, Optional[str]]
    has_price_matrix: bool
