"""
app/services package marker.
"""

from app.services.batch_runner import BatchRunner, BatchState, CancellationToken, RecordIdFactory
from app.services.export_service import ExportService, serialize
from app.services.record_store import DuplicateRecordError, RecordStore
from app.services.validation_service import (
    BatchKind,
    BatchProgress,
    Notification,
    ValidationSession,
    build_validation_session,
    get_validation_session,
)

__all__ = [
    "BatchKind",
    "BatchProgress",
    "BatchRunner",
    "BatchState",
    "CancellationToken",
    "DuplicateRecordError",
    "ExportService",
    "Notification",
    "RecordIdFactory",
    "RecordStore",
    "ValidationSession",
    "build_validation_session",
    "get_validation_session",
    "serialize",
]
