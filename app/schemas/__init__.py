"""
app/schemas package marker.
"""

from app.schemas.validation import (
    BatchStatusResponse,
    CancelResponse,
    DescriptionRequest,
    DescriptionResponse,
    FailedRowResponse,
    FailureListResponse,
    NotificationListResponse,
    NotificationResponse,
    ParseFailureResponse,
    RecordListResponse,
    ValidationRecordResponse,
)

__all__ = [
    "BatchStatusResponse",
    "CancelResponse",
    "DescriptionRequest",
    "DescriptionResponse",
    "FailedRowResponse",
    "FailureListResponse",
    "NotificationListResponse",
    "NotificationResponse",
    "ParseFailureResponse",
    "RecordListResponse",
    "ValidationRecordResponse",
]
