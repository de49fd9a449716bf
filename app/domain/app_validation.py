"""
app/domain/app_validation.py

Domain models and errors used by the app category validation flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field

MISSING_DATA_REASON = "Missing data in row"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FileInputError(ValueError):
    """
    Raised when no usable file was provided; nothing is processed.
    """


class HeaderError(ValueError):
    """
    Raised when the CSV shape or header row is unusable; the whole parse aborts.
    """

    def __init__(self, message: str, *, missing_columns: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing_columns = missing_columns


class BatchAlreadyRunningError(RuntimeError):
    """
    Raised when a batch is started while another one is still running.
    """


class RetryQueueEmptyError(ValueError):
    """
    Raised when a retry is requested but the latest batch left no failed rows.
    """


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CandidateRow:
    """
    One structurally valid CSV row, eligible for classification.
    """

    app_name: str
    description: str
    category: str


@dataclass(frozen=True)
class ParseFailure:
    """
    A data row rejected by the parser, with whatever fields were readable.
    """

    row_number: int
    error_reason: str
    app_name: str | None = None
    description: str | None = None
    category: str | None = None


@dataclass(frozen=True)
class FailedRow:
    """
    A candidate row whose oracle call failed.
    """

    app_name: str
    description: str
    category: str
    error_reason: str

    @classmethod
    def from_candidate(cls, row: CandidateRow, error_reason: str) -> "FailedRow":
        return cls(
            app_name=row.app_name,
            description=row.description,
            category=row.category,
            error_reason=error_reason,
        )

    def to_candidate(self) -> CandidateRow:
        return CandidateRow(
            app_name=self.app_name,
            description=self.description,
            category=self.category,
        )


@dataclass(frozen=True)
class ParseResult:
    """
    Parser output: rows to classify and rows rejected up front.
    """

    candidates: list[CandidateRow] = field(default_factory=list)
    parse_failures: list[ParseFailure] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValidationRecord:
    """
    Immutable oracle verdict for one app listing.

    ``checked_at`` is float epoch seconds; other representations are
    normalized before a record is built.
    """

    id: str
    app: str
    description: str
    original_category: str
    is_valid_category: bool
    validation_reason: str
    checked_at: float


@dataclass(frozen=True)
class BatchResult:
    """
    End-of-batch partition of processed rows.
    """

    succeeded: list[ValidationRecord] = field(default_factory=list)
    failed: list[FailedRow] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return len(self.succeeded) + len(self.failed)
