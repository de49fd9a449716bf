"""
app/api/routers/export.py

CSV download endpoints.

GET /export/results.csv    validation_results.csv, whole record store
GET /export/failures.csv   failed_app_validations.csv, latest batch failures

Responses
---------
200 → text/csv; charset=utf-8 with Content-Disposition attachment filename
404 → nothing to export yet

All serialisation lives in ExportService; the router only handles HTTP plumbing.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from app.services.export_service import FAILURES_FILENAME, RESULTS_FILENAME
from app.services.validation_service import ValidationSession, get_validation_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export"])


def _csv_response(body: str, filename: str) -> Response:
    return Response(
        content=body.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/export/results.csv")
async def export_results(
    session: ValidationSession = Depends(get_validation_session),
) -> Response:
    if not session.has_records():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="There are no validation records to export.",
        )
    body = session.export_results_csv()
    logger.info("Exported %d validation records", len(session.records()))
    return _csv_response(body, RESULTS_FILENAME)


@router.get("/export/failures.csv")
async def export_failures(
    session: ValidationSession = Depends(get_validation_session),
) -> Response:
    if not session.has_failures():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="The latest batch has no failed rows to export.",
        )
    body = session.export_failures_csv()
    logger.info(
        "Exported %d parse failures and %d failed rows",
        len(session.parse_failures()),
        len(session.retry_queue()),
    )
    return _csv_response(body, FAILURES_FILENAME)
