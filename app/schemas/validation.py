"""
app/schemas/validation.py

Request and response schemas for category validation endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class BatchStatusResponse(BaseModel):
    """
    API response model for the latest batch's progress.
    """

    kind: str | None = None
    state: str
    running: bool
    total: int = Field(..., ge=0)
    processed: int = Field(..., ge=0)
    succeeded: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    parse_failures: int = Field(..., ge=0)
    started_at: float | None = None
    finished_at: float | None = None
    cancelled: bool = False


class CancelResponse(BaseModel):
    cancelled: bool


class ValidationRecordResponse(BaseModel):
    id: str
    app: str
    description: str
    original_category: str
    is_valid_category: bool
    validation_reason: str
    checked_at: float
    checked_at_display: str


class RecordListResponse(BaseModel):
    count: int = Field(..., ge=0)
    records: list[ValidationRecordResponse] = Field(default_factory=list)


class ParseFailureResponse(BaseModel):
    """
    API response model for one row the parser rejected.
    """

    row_number: int = Field(..., ge=1)
    error_reason: str
    app_name: str | None = None
    description: str | None = None
    category: str | None = None


class FailedRowResponse(BaseModel):
    """
    API response model for one row whose oracle call failed.
    """

    app_name: str
    description: str
    category: str
    error_reason: str


class FailureListResponse(BaseModel):
    parse_failures: list[ParseFailureResponse] = Field(default_factory=list)
    failed_rows: list[FailedRowResponse] = Field(default_factory=list)


class NotificationResponse(BaseModel):
    id: int = Field(..., ge=1)
    level: str
    title: str
    message: str
    created_at: float


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse] = Field(default_factory=list)


class DescriptionRequest(BaseModel):
    """
    Request body for app description generation.
    """

    app_name: str = Field(..., alias="appName", min_length=1)
    category: str = Field(..., min_length=1)


class DescriptionResponse(BaseModel):
    description: str
