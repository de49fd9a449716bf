"""
app/services/validation_service.py

Session-level orchestration of category validation batches.

A ValidationSession owns everything one user session sees:

    record store   : all successful records, newest first
    parse failures : rows the parser rejected in the latest upload
    retry queue    : FailedRows of the most recent batch, rebuilt per batch
    notifications  : human-readable messages for every failure and outcome

Batches run as a single asyncio task driven by the BatchRunner. Store and
queue mutations happen inside that task's callbacks, on the event loop that
also serves the HTTP requests, so no locking is needed.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from zoneinfo import ZoneInfo

from app.config import (
    get_batch_settings,
    get_display_settings,
    get_oracle_settings,
    get_seed_settings,
)
from app.domain.app_validation import (
    BatchAlreadyRunningError,
    BatchResult,
    CandidateRow,
    FailedRow,
    FileInputError,
    HeaderError,
    ParseFailure,
    RetryQueueEmptyError,
    ValidationRecord,
)
from app.logging_utils import log_event
from app.repositories.seed_record_repository import SeedRecordRepository
from app.services.batch_runner import BatchRunner, BatchState, CancellationToken
from app.services.export_service import ExportService
from app.services.record_store import RecordStore
from app.validators.csv_row_parser import CSVRowParser
from category_oracle.adapter import BaseLLMAdapter, build_llm_adapter
from category_oracle.describer import AppDescriptionGenerator
from category_oracle.oracle import ClassificationOracle, ClassifyFn, llm_classify_fn

logger = logging.getLogger(__name__)


class BatchKind(str, Enum):
    VALIDATION = "validation"
    RETRY = "retry"


@dataclass(frozen=True)
class Notification:
    """
    One user-facing message.
    """

    id: int
    level: str
    title: str
    message: str
    created_at: float


@dataclass(frozen=True)
class BatchProgress:
    """
    Snapshot of the latest batch for rendering.
    """

    kind: BatchKind | None
    state: BatchState
    total: int
    processed: int
    succeeded: int
    failed: int
    parse_failures: int
    started_at: float | None
    finished_at: float | None
    cancelled: bool

    @property
    def running(self) -> bool:
        return self.state is BatchState.RUNNING


class NotificationLog:
    """
    Bounded, monotonically numbered notification buffer.
    """

    def __init__(self, *, max_items: int = 200, clock: Callable[[], float] = time.time) -> None:
        self._items: deque[Notification] = deque(maxlen=max(1, max_items))
        self._ids = itertools.count(1)
        self._clock = clock

    def add(self, level: str, title: str, message: str) -> Notification:
        notification = Notification(
            id=next(self._ids),
            level=level,
            title=title,
            message=message,
            created_at=self._clock(),
        )
        self._items.append(notification)
        return notification

    def since(self, after_id: int = 0) -> list[Notification]:
        return [item for item in self._items if item.id > after_id]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class ValidationSession:
    """
    Coordinates parsing, batch execution, the record store and exports.
    """

    def __init__(
        self,
        *,
        runner: BatchRunner,
        store: RecordStore | None = None,
        parser: CSVRowParser | None = None,
        exporter: ExportService | None = None,
        notifications: NotificationLog | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._runner = runner
        self._store = store or RecordStore()
        self._parser = parser or CSVRowParser()
        self._exporter = exporter or ExportService()
        self._notifications = notifications or NotificationLog()
        self._clock = clock

        self._parse_failures: list[ParseFailure] = []
        self._failed_rows: list[FailedRow] = []
        self._task: asyncio.Task[BatchResult] | None = None
        self._token: CancellationToken | None = None

        self._kind: BatchKind | None = None
        self._total = 0
        self._total_rows = 0
        self._succeeded = 0
        self._failed = 0
        self._started_at: float | None = None
        self._finished_at: float | None = None
        self._cancelled = False

    # -- batch control ------------------------------------------------------

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start_validation(self, content: bytes | str | None, *, filename: str | None = None) -> BatchProgress:
        """
        Parse an uploaded CSV and start classifying its candidate rows.

        Raises:
            BatchAlreadyRunningError: a batch is still running.
            FileInputError: no file, or the bytes are not UTF-8 text.
            HeaderError: the CSV has no data rows or lacks a required column.
        """

        self._ensure_idle()
        text = self._decode(content, filename)
        try:
            parsed = self._parser.parse(text)
        except HeaderError as exc:
            logger.info("Rejected CSV upload %s: %s", filename or "<unnamed>", exc)
            self._notifications.add("error", "Invalid CSV", str(exc))
            raise

        self._parse_failures = list(parsed.parse_failures)
        for failure in self._parse_failures:
            self._notifications.add(
                "warning",
                "Skipped Row",
                f"Data line {failure.row_number} in CSV has missing data and was skipped.",
            )

        self._launch(
            BatchKind.VALIDATION,
            parsed.candidates,
            total_rows=len(parsed.candidates) + len(self._parse_failures),
        )
        return self.progress()

    async def start_retry(self) -> BatchProgress:
        """
        Re-run the failed rows of the most recent batch.

        Raises:
            BatchAlreadyRunningError: a batch is still running.
            RetryQueueEmptyError: the latest batch left nothing to retry.
        """

        self._ensure_idle()
        if not self._failed_rows:
            raise RetryQueueEmptyError("There are no failed rows to retry.")

        rows = list(self._failed_rows)
        self._parse_failures = []
        self._launch(BatchKind.RETRY, rows, total_rows=len(rows))
        return self.progress()

    def cancel(self) -> bool:
        """
        Ask the running batch to stop after its in-flight row; False if idle.
        """

        if not self.is_running() or self._token is None:
            return False
        if not self._token.cancelled:
            log_event(logger, logging.INFO, "batch_cancel_requested", kind=self._kind)
        self._token.cancel()
        return True

    async def wait(self) -> BatchResult | None:
        """
        Await the current batch; None when no batch was ever started.
        """

        if self._task is None:
            return None
        return await self._task

    async def shutdown(self) -> None:
        if self.is_running():
            self.cancel()
            await self.wait()

    # -- state --------------------------------------------------------------

    def progress(self) -> BatchProgress:
        if self.is_running():
            state = BatchState.RUNNING
        elif self._cancelled:
            state = BatchState.CANCELLED
        else:
            state = BatchState.IDLE
        return BatchProgress(
            kind=self._kind,
            state=state,
            total=self._total,
            processed=self._succeeded + self._failed,
            succeeded=self._succeeded,
            failed=self._failed,
            parse_failures=len(self._parse_failures),
            started_at=self._started_at,
            finished_at=self._finished_at,
            cancelled=self._cancelled,
        )

    def records(self) -> tuple[ValidationRecord, ...]:
        return self._store.all()

    def retry_queue(self) -> tuple[FailedRow, ...]:
        return tuple(self._failed_rows)

    def parse_failures(self) -> tuple[ParseFailure, ...]:
        return tuple(self._parse_failures)

    def notifications(self, since: int = 0) -> list[Notification]:
        return self._notifications.since(since)

    # -- exports ------------------------------------------------------------

    def has_records(self) -> bool:
        return not self._store.is_empty()

    def has_failures(self) -> bool:
        return bool(self._parse_failures or self._failed_rows)

    def export_results_csv(self) -> str:
        return self._exporter.results_csv(self._store.all())

    def export_failures_csv(self) -> str:
        return self._exporter.failures_csv(self._parse_failures, self._failed_rows)

    # -- internals ----------------------------------------------------------

    def _ensure_idle(self) -> None:
        if self.is_running():
            raise BatchAlreadyRunningError("A validation batch is already running.")

    def _decode(self, content: bytes | str | None, filename: str | None) -> str:
        if content is None:
            self._notifications.add("error", "No file selected", "Please select a CSV file to validate.")
            raise FileInputError("No file selected. Please select a CSV file to validate.")
        if isinstance(content, str):
            return content
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            self._notifications.add("error", "Error Processing CSV", "The file is not UTF-8 encoded text.")
            raise FileInputError(f"File {filename or '<unnamed>'} is not UTF-8 encoded text.") from exc

    def _launch(
        self,
        kind: BatchKind,
        rows: Sequence[CandidateRow] | Sequence[FailedRow],
        *,
        total_rows: int,
    ) -> None:
        self._failed_rows = []
        self._kind = kind
        self._total = len(rows)
        self._total_rows = total_rows
        self._succeeded = 0
        self._failed = 0
        self._started_at = self._clock()
        self._finished_at = None
        self._cancelled = False
        self._token = CancellationToken()

        self._task = asyncio.create_task(self._execute(kind, rows, self._token))
        self._task.add_done_callback(self._on_task_done)

    async def _execute(
        self,
        kind: BatchKind,
        rows: Sequence[CandidateRow] | Sequence[FailedRow],
        token: CancellationToken,
    ) -> BatchResult:
        if kind is BatchKind.RETRY:
            result = await self._runner.retry(
                rows,  # type: ignore[arg-type]
                on_record=self._on_record,
                on_failure=self._on_failure,
                token=token,
            )
        else:
            result = await self._runner.run(
                rows,  # type: ignore[arg-type]
                on_record=self._on_record,
                on_failure=self._on_failure,
                token=token,
            )

        self._cancelled = result.cancelled
        if result.cancelled:
            message = f"Stopped after {result.processed} of {self._total} rows; results so far were kept."
            if kind is BatchKind.RETRY:
                # rows the retry never reached stay queued with their earlier error
                unattempted = list(rows[result.processed:])
                self._failed_rows.extend(unattempted)  # type: ignore[arg-type]
                if unattempted:
                    message += f" {len(unattempted)} unattempted rows remain in the retry queue."
            self._notifications.add("info", "Validation Stopped", message)
        else:
            self._notifications.add(
                "info",
                "CSV Validation Complete" if kind is BatchKind.VALIDATION else "Retry Complete",
                f"{len(result.succeeded)} of {self._total_rows} records processed successfully.",
            )
        return result

    def _on_record(self, record: ValidationRecord) -> None:
        self._store.insert(record)
        self._succeeded += 1

    def _on_failure(self, failed_row: FailedRow) -> None:
        self._failed_rows.append(failed_row)
        self._failed += 1
        self._notifications.add(
            "error",
            f"Error validating {failed_row.app_name}",
            f"This app entry could not be validated: {failed_row.error_reason}",
        )

    def _on_task_done(self, task: asyncio.Task[BatchResult]) -> None:
        self._finished_at = self._clock()
        if task.cancelled():
            self._cancelled = True
            logger.warning("Validation batch task was cancelled by the event loop.")
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Validation batch aborted unexpectedly.", exc_info=exc)
            self._notifications.add("error", "Error Processing CSV", f"The batch stopped unexpectedly: {exc}")


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _load_seed_records() -> list[ValidationRecord]:
    settings = get_seed_settings()
    if settings.seed_records_path:
        return SeedRecordRepository.from_json_file(settings.seed_records_path).load()
    if settings.seed_demo_records:
        return SeedRecordRepository.demo().load()
    return []


@lru_cache(maxsize=1)
def get_llm_adapter() -> BaseLLMAdapter:
    settings = get_oracle_settings()
    return build_llm_adapter(
        settings.adapter,
        model=settings.model,
        max_tokens=settings.max_tokens,
        api_key=settings.api_key,
        base_url=settings.base_url,
    )


def build_validation_session(
    *,
    classify_fn: ClassifyFn | None = None,
    seed_records: Sequence[ValidationRecord] | None = None,
) -> ValidationSession:
    """
    Assemble a session from environment settings; arguments override the defaults.
    """

    batch_settings = get_batch_settings()
    oracle = ClassificationOracle(
        classify_fn or llm_classify_fn(get_llm_adapter()),
        timeout_seconds=batch_settings.oracle_timeout_seconds,
    )
    runner = BatchRunner(oracle, inter_request_delay_seconds=batch_settings.inter_request_delay_seconds)
    records = _load_seed_records() if seed_records is None else seed_records
    return ValidationSession(
        runner=runner,
        store=RecordStore(records),
        exporter=ExportService(display_timezone=ZoneInfo(get_display_settings().timezone)),
        notifications=NotificationLog(max_items=batch_settings.notification_buffer_size),
    )


@lru_cache(maxsize=1)
def get_validation_session() -> ValidationSession:
    """
    Return the process-wide validation session.
    """

    return build_validation_session()


@lru_cache(maxsize=1)
def get_description_generator() -> AppDescriptionGenerator:
    return AppDescriptionGenerator(get_llm_adapter())
