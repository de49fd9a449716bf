"""
app/api/routers/validation.py

Category validation batch endpoints.

POST /validations          start a batch from an uploaded CSV
POST /validations/retry    re-run the failed rows of the latest batch
POST /validations/cancel   cooperative stop of the running batch
GET  /validations/status   progress of the latest batch
GET  /records              record store, newest first
GET  /failures             parse failures and failed rows of the latest batch
GET  /notifications        user-facing messages newer than ``since``

``wait=true`` on the two POST triggers holds the response until the batch
has settled, for scripted clients that do not poll.
"""

from __future__ import annotations

from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status

from app.api.dependencies import get_csv_upload
from app.config import get_display_settings
from app.domain.app_validation import (
    BatchAlreadyRunningError,
    FileInputError,
    HeaderError,
    RetryQueueEmptyError,
)
from app.schemas.validation import (
    BatchStatusResponse,
    CancelResponse,
    FailedRowResponse,
    FailureListResponse,
    NotificationListResponse,
    NotificationResponse,
    ParseFailureResponse,
    RecordListResponse,
    ValidationRecordResponse,
)
from app.services.validation_service import BatchProgress, ValidationSession, get_validation_session
from app.timestamps import format_timestamp

router = APIRouter(tags=["validation"])


def _status_response(progress: BatchProgress) -> BatchStatusResponse:
    return BatchStatusResponse(
        kind=progress.kind.value if progress.kind else None,
        state=progress.state.value,
        running=progress.running,
        total=progress.total,
        processed=progress.processed,
        succeeded=progress.succeeded,
        failed=progress.failed,
        parse_failures=progress.parse_failures,
        started_at=progress.started_at,
        finished_at=progress.finished_at,
        cancelled=progress.cancelled,
    )


@router.post(
    "/validations",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=BatchStatusResponse,
)
async def start_validation(
    file: UploadFile | None = Depends(get_csv_upload),
    wait: bool = Query(default=False, description="Respond only after the batch has settled"),
    session: ValidationSession = Depends(get_validation_session),
) -> BatchStatusResponse:
    """
    Parse one CSV upload and start validating its rows.
    """

    try:
        content = await file.read() if file is not None else None
        progress = await session.start_validation(content, filename=file.filename if file else None)
    except FileInputError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except HeaderError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(exc), "missing_columns": list(exc.missing_columns)},
        ) from exc
    except BatchAlreadyRunningError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    finally:
        if file is not None:
            await file.close()

    if wait:
        await session.wait()
        progress = session.progress()
    return _status_response(progress)


@router.post(
    "/validations/retry",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=BatchStatusResponse,
)
async def retry_failed(
    wait: bool = Query(default=False, description="Respond only after the batch has settled"),
    session: ValidationSession = Depends(get_validation_session),
) -> BatchStatusResponse:
    try:
        progress = await session.start_retry()
    except RetryQueueEmptyError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except BatchAlreadyRunningError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    if wait:
        await session.wait()
        progress = session.progress()
    return _status_response(progress)


@router.post("/validations/cancel", response_model=CancelResponse)
async def cancel_validation(
    session: ValidationSession = Depends(get_validation_session),
) -> CancelResponse:
    return CancelResponse(cancelled=session.cancel())


@router.get("/validations/status", response_model=BatchStatusResponse)
async def validation_status(
    session: ValidationSession = Depends(get_validation_session),
) -> BatchStatusResponse:
    return _status_response(session.progress())


@router.get("/records", response_model=RecordListResponse)
async def list_records(
    session: ValidationSession = Depends(get_validation_session),
) -> RecordListResponse:
    tz = ZoneInfo(get_display_settings().timezone)
    records = session.records()
    return RecordListResponse(
        count=len(records),
        records=[
            ValidationRecordResponse(
                id=record.id,
                app=record.app,
                description=record.description,
                original_category=record.original_category,
                is_valid_category=record.is_valid_category,
                validation_reason=record.validation_reason,
                checked_at=record.checked_at,
                checked_at_display=format_timestamp(record.checked_at, tz),
            )
            for record in records
        ],
    )


@router.get("/failures", response_model=FailureListResponse)
async def list_failures(
    session: ValidationSession = Depends(get_validation_session),
) -> FailureListResponse:
    return FailureListResponse(
        parse_failures=[
            ParseFailureResponse(
                row_number=failure.row_number,
                error_reason=failure.error_reason,
                app_name=failure.app_name,
                description=failure.description,
                category=failure.category,
            )
            for failure in session.parse_failures()
        ],
        failed_rows=[
            FailedRowResponse(
                app_name=row.app_name,
                description=row.description,
                category=row.category,
                error_reason=row.error_reason,
            )
            for row in session.retry_queue()
        ],
    )


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    since: int = Query(default=0, ge=0, description="Return notifications with a larger id"),
    session: ValidationSession = Depends(get_validation_session),
) -> NotificationListResponse:
    return NotificationListResponse(
        notifications=[
            NotificationResponse(
                id=item.id,
                level=item.level,
                title=item.title,
                message=item.message,
                created_at=item.created_at,
            )
            for item in session.notifications(since)
        ]
    )
