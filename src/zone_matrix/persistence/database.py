"""Supabase persistence for finalized zone configurations."""

from __future__ import annotations

import logging
from typing import Any

from ..config import settings
from ..db.supabase import get_supabase_client


def save_vendor_matrix_to_database(payload: dict[str, Any], *, key: str) -> bool:
    """Upsert the handoff payload keyed by vendor (or session) id.

    Repeating the call with the same payload leaves the row unchanged.

    Returns:
        True when the row was written, False when Supabase is unavailable.
    """
    supabase = get_supabase_client()
    if not supabase:
        logging.info("Supabase not configured - zone matrix will only be saved to files")
        return False

    record = {
        "matrix_key": key,
        "vendor_id": payload.get("vendor_id"),
        "zones": payload.get("zones", []),
        "price_matrix": payload.get("price_matrix", []),
        "price_chart": payload.get("price_chart", {}),
        "submitted_at": payload.get("timestamp"),
    }
    try:
        supabase.table(settings.supabase_table).upsert(record, on_conflict="matrix_key").execute()
    except Exception as exc:
        logging.error(f"Failed to save zone matrix '{key}' to database: {exc}")
        raise ConnectionError(f"Database write failed: {exc}") from exc
    logging.info(f"Saved zone matrix '{key}' with {len(record['zones'])} zones to database")
    return True
