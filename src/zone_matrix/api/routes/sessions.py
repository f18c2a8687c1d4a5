"""Configurator session endpoints: roster selection, city partitioning and zone saving."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import APIRouter, HTTPException, status

from ...data.pincodes_repository import get_geography_index
from ...errors import (
    CityUnavailableError,
    EmptyZoneError,
    PriceMatrixImportError,
    PriceValidationError,
    UnknownZoneError,
    ZoneLockedError,
    ZoneOrderingError,
)
from ...models.domain import REGIONS, parse_city_key
from ...persistence.sessions import SessionStore
from ...schemas.sessions import (
    ActiveStateRequest,
    CityChangeResponse,
    CityListResponse,
    CityModel,
    CityToggleRequest,
    ConfirmRequest,
    PromptModel,
    RosterChangeResponse,
    SaveZoneResponse,
    SelectAllRequest,
    SessionCreateRequest,
    SessionResponse,
    StateListResponse,
    StateSummaryModel,
    ZoneCodeRequest,
    ZoneModel,
)
from ...services.outputs.formatter import zone_to_json
from ...services.session import ConfiguratorSession
from ...services.zones.workflow import ConfirmationPrompt

router = APIRouter(prefix="/sessions", tags=["sessions"])

_ERROR_STATUS: tuple[tuple[type[ValueError], int], ...] = (
    (ZoneOrderingError, status.HTTP_409_CONFLICT),
    (ZoneLockedError, status.HTTP_409_CONFLICT),
    (CityUnavailableError, status.HTTP_409_CONFLICT),
    (EmptyZoneError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (PriceValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (PriceMatrixImportError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (UnknownZoneError, status.HTTP_404_NOT_FOUND),
)


@contextmanager
def service_errors(action: str) -> Iterator[None]:
    """Translate domain errors raised inside the block into HTTP responses."""
    try:
        yield
    except HTTPException:
        raise
    except FileNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Geography dataset unavailable: {exc}",
        ) from exc
    except ConnectionError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Database connection error: {exc}. Please check your connection and try again.",
        ) from exc
    except ValueError as exc:
        code = next(
            (code for error_type, code in _ERROR_STATUS if isinstance(exc, error_type)),
            status.HTTP_400_BAD_REQUEST,
        )
        raise HTTPException(status_code=code, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error while trying to {action}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {action}: {exc}",
        ) from exc


def load_session(session_id: str) -> ConfiguratorSession:
    data = SessionStore().load(session_id)
    if data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Session '{session_id}' not found.")
    return ConfiguratorSession.from_snapshot(get_geography_index(), data)


def store_session(session: ConfiguratorSession) -> None:
    SessionStore().save(session.session_id, session.to_snapshot())


def prompt_model(prompt: ConfirmationPrompt) -> PromptModel:
    return PromptModel(kind=prompt.kind, message=prompt.message, zone_codes=list(prompt.zone_codes))


def confirmation_required(prompt: ConfirmationPrompt) -> HTTPException:
    """409 carrying the prompt so the client can re-submit with ``confirm``."""
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"message": prompt.message, "prompt": prompt_model(prompt).model_dump()},
    )


def session_response(session: ConfiguratorSession) -> SessionResponse:
    engine = session.engine
    return SessionResponse(
        session_id=session.session_id,
        vendor_id=session.vendor_id,
        revision=session.revision,
        step=session.step,
        current_zone_index=session.workflow.current,
        progress=session.workflow.progress(),
        selected_zone_codes=list(session.roster.selected),
        visible_zones_per_region=dict(session.roster.visible),
        zones=[ZoneModel(**zone_to_json(zone)) for zone in engine.zones],
        leftovers={region: engine.pool(region).to_dict() for region in REGIONS if engine.pool(region)},
        active_state_by_zone={
            zone.code: session.workflow.active_state(position) for position, zone in enumerate(engine.zones)
        },
        has_price_matrix=session.matrix is not None,
    )


def _zone_model(session: ConfiguratorSession, index: int) -> ZoneModel:
    return ZoneModel(**zone_to_json(session.engine.zone(index)))


def _state_list(session: ConfiguratorSession, index: int) -> StateListResponse:
    engine = session.engine
    states = []
    for state in engine.visible_states(index):
        stats = engine.state_stats(index, state)
        states.append(
            StateSummaryModel(
                state=stats.state,
                total=stats.total,
                selected_here=stats.selected_here,
                leftover_count=stats.leftover_count,
                fresh_remaining=stats.fresh_remaining,
                available_for_zone=stats.available_for_zone,
                status=stats.status,
            )
        )
    return StateListResponse(
        zone_code=engine.zone(index).code,
        active_state=session.workflow.active_state(index),
        states=states,
    )


# ---------------------------------------------------------------- lifecycle


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(payload: Optional[SessionCreateRequest] = None) -> SessionResponse:
    with service_errors("create session"):
        session = ConfiguratorSession(get_geography_index(), vendor_id=payload.vendor_id if payload else None)
        store_session(session)
        logging.info(f"Created configurator session {session.session_id}")
        return session_response(session)


@router.get("/{session_id}", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def get_session(session_id: str) -> SessionResponse:
    with service_errors("load session"):
        return session_response(load_session(session_id))


@router.delete("/{session_id}", status_code=status.HTTP_200_OK)
def delete_session(session_id: str) -> dict:
    with service_errors("delete session"):
        if not SessionStore().delete(session_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Session '{session_id}' not found.")
        return {"session_id": session_id, "deleted": True}


# ------------------------------------------------------------------- roster


@router.post("/{session_id}/roster/select", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def select_zone(session_id: str, payload: ZoneCodeRequest) -> SessionResponse:
    with service_errors("select zone"):
        session = load_session(session_id)
        session.select_zone(payload.code)
        store_session(session)
        return session_response(session)


@router.post("/{session_id}/roster/deselect", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def deselect_zone(session_id: str, payload: ZoneCodeRequest) -> SessionResponse:
    with service_errors("deselect zone"):
        session = load_session(session_id)
        session.deselect_zone(payload.code)
        store_session(session)
        return session_response(session)


@router.post(
    "/{session_id}/regions/{region}/select-all",
    response_model=RosterChangeResponse,
    status_code=status.HTTP_200_OK,
)
def select_all_visible(session_id: str, region: str) -> RosterChangeResponse:
    with service_errors("select visible zones"):
        session = load_session(session_id)
        added = session.select_all_visible(region)
        store_session(session)
        return RosterChangeResponse(changed=added, selected_zone_codes=list(session.roster.selected))


@router.post(
    "/{session_id}/regions/{region}/deselect-all",
    response_model=RosterChangeResponse,
    status_code=status.HTTP_200_OK,
)
def deselect_all_visible(session_id: str, region: str) -> RosterChangeResponse:
    with service_errors("deselect visible zones"):
        session = load_session(session_id)
        removed = session.deselect_all_visible(region)
        store_session(session)
        return RosterChangeResponse(changed=removed, selected_zone_codes=list(session.roster.selected))


@router.post("/{session_id}/regions/{region}/reveal", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def reveal_more(session_id: str, region: str) -> SessionResponse:
    with service_errors("reveal zone slot"):
        session = load_session(session_id)
        session.reveal_more(region)
        store_session(session)
        return session_response(session)


@router.post("/{session_id}/proceed", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def proceed(session_id: str) -> SessionResponse:
    with service_errors("proceed to zone configuration"):
        session = load_session(session_id)
        session.proceed_to_configuration()
        store_session(session)
        return session_response(session)


# ---------------------------------------------------------------- partition


@router.get("/{session_id}/zones/{index}/states", response_model=StateListResponse, status_code=status.HTTP_200_OK)
def list_states(session_id: str, index: int) -> StateListResponse:
    with service_errors("list states"):
        return _state_list(load_session(session_id), index)


@router.get(
    "/{session_id}/zones/{index}/states/{state}/cities",
    response_model=CityListResponse,
    status_code=status.HTTP_200_OK,
)
def list_cities(session_id: str, index: int, state: str) -> CityListResponse:
    with service_errors("list cities"):
        session = load_session(session_id)
        engine = session.engine
        zone = engine.zone(index)
        if not session.index.has_state(zone.region, state):
            raise UnknownZoneError(f"State '{state}' has no cities in the {zone.region} region.")
        available = engine.available_cities(index, state)
        pool = engine.pool(zone.region)
        cities = []
        for key in session.index.sorted_cities(zone.region, state):
            city, _ = parse_city_key(key)
            cities.append(
                CityModel(
                    city_key=key,
                    city=city,
                    state=state,
                    selected=key in zone.assigned_cities,
                    available=key in available,
                    leftover_sources=sorted(pool.sources(key)),
                )
            )
        return CityListResponse(zone_code=zone.code, state=state, cities=cities)


@router.post(
    "/{session_id}/zones/{index}/cities/toggle",
    response_model=CityChangeResponse,
    status_code=status.HTTP_200_OK,
)
def toggle_city(session_id: str, index: int, payload: CityToggleRequest) -> CityChangeResponse:
    with service_errors("toggle city"):
        session = load_session(session_id)
        owned = session.toggle_city(index, payload.city_key)
        store_session(session)
        return CityChangeResponse(zone=_zone_model(session, index), changed=[payload.city_key], owned=owned)


@router.post(
    "/{session_id}/zones/{index}/states/{state}/select-all",
    response_model=CityChangeResponse,
    status_code=status.HTTP_200_OK,
)
def select_all_for_state(
    session_id: str,
    index: int,
    state: str,
    payload: Optional[SelectAllRequest] = None,
) -> CityChangeResponse:
    include_leftovers = payload.include_leftovers if payload else True
    with service_errors("select cities"):
        session = load_session(session_id)
        added = session.select_all_for_state(index, state, include_leftovers=include_leftovers)
        store_session(session)
        return CityChangeResponse(zone=_zone_model(session, index), changed=sorted(added))


@router.post(
    "/{session_id}/zones/{index}/states/{state}/clear",
    response_model=CityChangeResponse,
    status_code=status.HTTP_200_OK,
)
def clear_state(session_id: str, index: int, state: str) -> CityChangeResponse:
    with service_errors("clear state"):
        session = load_session(session_id)
        removed = session.clear_state(index, state)
        store_session(session)
        return CityChangeResponse(zone=_zone_model(session, index), changed=sorted(removed))


@router.put(
    "/{session_id}/zones/{index}/active-state",
    response_model=StateListResponse,
    status_code=status.HTTP_200_OK,
)
def set_active_state(session_id: str, index: int, payload: ActiveStateRequest) -> StateListResponse:
    with service_errors("set active state"):
        session = load_session(session_id)
        session.set_active_state(index, payload.state)
        store_session(session)
        return _state_list(session, index)


# --------------------------------------------------------------- navigation


@router.post("/{session_id}/zones/{index}/open", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def open_zone(session_id: str, index: int) -> SessionResponse:
    with service_errors("open zone"):
        session = load_session(session_id)
        session.open_zone(index)
        store_session(session)
        return session_response(session)


@router.post("/{session_id}/zones/{index}/reopen", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def reopen_zone(session_id: str, index: int) -> SessionResponse:
    with service_errors("reopen zone"):
        session = load_session(session_id)
        session.reopen_zone(index)
        store_session(session)
        return session_response(session)


@router.post("/{session_id}/save", response_model=SaveZoneResponse, status_code=status.HTTP_200_OK)
def save_zone(session_id: str, payload: Optional[ConfirmRequest] = None) -> SaveZoneResponse:
    """Save the focused zone.

    Deleting an empty zone or cascading over an exhausted region needs
    ``confirm: true``; without it the call answers 409 with the prompt and
    nothing is changed.
    """
    confirmed = payload.confirm if payload else False
    with service_errors("save zone"):
        session = load_session(session_id)
        outcome = session.save_zone(lambda prompt: confirmed)
        if outcome.status == "cancelled" and outcome.prompt is not None:
            raise confirmation_required(outcome.prompt)
        store_session(session)
        return SaveZoneResponse(
            status=outcome.status,
            zone_code=outcome.zone_code,
            deleted=list(outcome.deleted),
            prompt=prompt_model(outcome.prompt) if outcome.prompt else None,
            next_zone_index=outcome.next_position,
            all_complete=outcome.all_complete,
            step=session.step,
        )
