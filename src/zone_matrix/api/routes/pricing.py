"""Price matrix endpoints: finalize, edit, CSV export/import and vendor handoff."""

from __future__ import annotations

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from fastapi.responses import Response

from ...schemas.pricing import (
    ImportResponse,
    PriceEntryModel,
    PriceMatrixResponse,
    PriceUpdateRequest,
    SubmissionResponse,
)
from ...services.pricing.matrix import PriceMatrix
from ...services.submission import submit_session
from .sessions import confirmation_required, load_session, prompt_model, service_errors, store_session

router = APIRouter(prefix="/sessions", tags=["pricing"])


def _matrix_response(matrix: PriceMatrix) -> PriceMatrixResponse:
    return PriceMatrixResponse(
        zones=list(matrix.zones),
        entries=[PriceEntryModel(from_zone=e.from_zone, to_zone=e.to_zone, price=e.price) for e in matrix.entries()],
        filled=matrix.filled,
        size=matrix.size,
    )


@router.post("/{session_id}/finalize", response_model=PriceMatrixResponse, status_code=status.HTTP_200_OK)
def finalize(session_id: str) -> PriceMatrixResponse:
    with service_errors("finalize zones"):
        session = load_session(session_id)
        matrix = session.finalize()
        store_session(session)
        return _matrix_response(matrix)


@router.get("/{session_id}/matrix", response_model=PriceMatrixResponse, status_code=status.HTTP_200_OK)
def get_matrix(session_id: str) -> PriceMatrixResponse:
    with service_errors("load price matrix"):
        session = load_session(session_id)
        if session.matrix is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Price matrix has not been created. Finalize the zone configuration first.",
            )
        return _matrix_response(session.matrix)


@router.put("/{session_id}/matrix/price", response_model=PriceEntryModel, status_code=status.HTTP_200_OK)
def set_price(session_id: str, payload: PriceUpdateRequest) -> PriceEntryModel:
    with service_errors("update price"):
        session = load_session(session_id)
        session.set_price(payload.from_zone, payload.to_zone, payload.price)
        store_session(session)
        return PriceEntryModel(
            from_zone=payload.from_zone,
            to_zone=payload.to_zone,
            price=session.matrix.get_price(payload.from_zone, payload.to_zone),
        )


@router.get("/{session_id}/matrix/export", response_class=Response, status_code=status.HTTP_200_OK)
def export_matrix(session_id: str) -> Response:
    with service_errors("export price matrix"):
        content = load_session(session_id).export_csv()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="price_matrix_{session_id}.csv"'},
    )


@router.post("/{session_id}/matrix/import", response_model=ImportResponse, status_code=status.HTTP_200_OK)
async def import_matrix(
    session_id: str,
    file: UploadFile = File(...),
    confirm: bool = Form(False),
) -> ImportResponse:
    """Replace the matrix with an uploaded CSV.

    When prices are already set the upload must carry ``confirm=true``;
    otherwise the call answers 409 with the replacement prompt.
    """
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Filename is required.")
    if not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail="Only .csv files are supported.")

    raw = await file.read()
    with service_errors("import price matrix"):
        text = raw.decode("utf-8")
        session = load_session(session_id)
        result = session.import_csv(text, lambda prompt: confirm)
        if result.status == "cancelled" and result.prompt is not None:
            raise confirmation_required(result.prompt)
        store_session(session)
        return ImportResponse(
            status=result.status,
            imported=result.imported,
            skipped_cells=result.skipped_cells,
            skipped_rows=result.skipped_rows,
            prompt=prompt_model(result.prompt) if result.prompt else None,
        )


@router.post("/{session_id}/submit", response_model=SubmissionResponse, status_code=status.HTTP_200_OK)
def submit(session_id: str) -> SubmissionResponse:
    with service_errors("submit zone configuration"):
        payload = submit_session(load_session(session_id))
        return SubmissionResponse(**payload)
