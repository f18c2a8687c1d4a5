"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...data.pincodes_repository import get_geography_index

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/geography", status_code=status.HTTP_200_OK)
def health_geography() -> dict:
    """Report whether the pincode dataset is loaded and how much of it was usable."""
    try:
        index = get_geography_index()
    except FileNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Geography dataset unavailable: {exc}",
        ) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"loaded": True, **index.summary()}
