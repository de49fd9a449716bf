"""
app/services/export_service.py

CSV export of validation results and failed rows.

Two datasets, each with fixed human-readable column titles:

    results   : validation_results.csv, one row per stored record, newest first
    failures  : failed_app_validations.csv, parse failures then oracle failures

Serialisation rules:
    - a field is quoted only when it contains a comma, a double quote, CR or LF;
      internal quotes are doubled;
    - booleans render as ``true`` / ``false``, None renders as an empty string;
    - every row, header included, ends with CRLF.

No transport logic lives here; routers only wrap the text in a response.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import Any, Generic, TypeVar

from app.domain.app_validation import FailedRow, ParseFailure, ValidationRecord
from app.timestamps import format_timestamp

RowT = TypeVar("RowT")

RESULTS_FILENAME = "validation_results.csv"
FAILURES_FILENAME = "failed_app_validations.csv"


# ---------------------------------------------------------------------------
# Column definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExportColumn(Generic[RowT]):
    """
    One output column: header title plus the accessor that reads a row.
    """

    title: str
    getter: Callable[[RowT], Any]


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def serialize(rows: Iterable[RowT], columns: Sequence[ExportColumn[RowT]]) -> str:
    """
    Render *rows* as CSV text with a header row of the column titles.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow([column.title for column in columns])
    for row in rows:
        writer.writerow([_stringify(column.getter(row)) for column in columns])
    return buffer.getvalue()


FAILURE_COLUMNS: tuple[ExportColumn[FailedRow | ParseFailure], ...] = (
    ExportColumn("App Name", lambda row: row.app_name),
    ExportColumn("Description", lambda row: row.description),
    ExportColumn("Category", lambda row: row.category),
    ExportColumn("Error Reason", lambda row: row.error_reason),
)


def result_columns(tz: tzinfo = timezone.utc) -> tuple[ExportColumn[ValidationRecord], ...]:
    """
    Columns of validation_results.csv; "Checked At" is rendered in *tz*.
    """

    return (
        ExportColumn("App Name", lambda record: record.app),
        ExportColumn("Description", lambda record: record.description),
        ExportColumn("Original Category", lambda record: record.original_category),
        ExportColumn("Is Valid Category", lambda record: record.is_valid_category),
        ExportColumn("Validation Reason", lambda record: record.validation_reason),
        ExportColumn("Checked At", lambda record: format_timestamp(record.checked_at, tz)),
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ExportService:
    """
    Builds the two downloadable CSV documents.
    """

    def __init__(self, *, display_timezone: tzinfo = timezone.utc) -> None:
        self._result_columns = result_columns(display_timezone)

    def results_csv(self, records: Iterable[ValidationRecord]) -> str:
        return serialize(records, self._result_columns)

    def failures_csv(
        self,
        parse_failures: Iterable[ParseFailure],
        failed_rows: Iterable[FailedRow],
    ) -> str:
        rows: list[FailedRow | ParseFailure] = [*parse_failures, *failed_rows]
        return serialize(rows, FAILURE_COLUMNS)
