"""Terminal handoff of a finalized session to the vendor onboarding flow."""

from __future__ import annotations

import logging
from typing import Any

from ..persistence.database import save_vendor_matrix_to_database
from ..persistence.filesystem import FileStorage
from .session import ConfiguratorSession


def submit_session(session: ConfiguratorSession, *, persist: bool = True) -> dict[str, Any]:
    """Write the handoff payload (JSON + CSV) and upsert it when a database is configured."""
    payload = session.handoff()
    outputs: dict[str, Any] = {}
    if persist:
        storage = FileStorage()
        run_dir = storage.make_run_directory(prefix=f"matrix_{session.session_id}")
        storage.write_json(run_dir / "handoff.json", payload)
        storage.write_csv(run_dir / "price_matrix.csv", session.export_csv())
        outputs["directory"] = str(run_dir)
        outputs["database"] = save_vendor_matrix_to_database(payload, key=session.vendor_id or session.session_id)
        logging.info(f"Submitted session {session.session_id} with {len(payload['zones'])} zones")
    payload["outputs"] = outputs
    return payload
