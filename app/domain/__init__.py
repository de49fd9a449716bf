"""
app/domain package marker.
"""

from app.domain.app_validation import (
    MISSING_DATA_REASON,
    BatchAlreadyRunningError,
    BatchResult,
    CandidateRow,
    FailedRow,
    FileInputError,
    HeaderError,
    ParseFailure,
    ParseResult,
    RetryQueueEmptyError,
    ValidationRecord,
)

__all__ = [
    "MISSING_DATA_REASON",
    "BatchAlreadyRunningError",
    "BatchResult",
    "CandidateRow",
    "FailedRow",
    "FileInputError",
    "HeaderError",
    "ParseFailure",
    "ParseResult",
    "RetryQueueEmptyError",
    "ValidationRecord",
]
