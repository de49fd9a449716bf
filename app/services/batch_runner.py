"""
app/services/batch_runner.py

Sequential, cancellable, rate-limited batch runner for category validation.

One batch walks its rows strictly in input order:

    for each row:
        (rows after the first) wait the inter-request delay
        stop if the cancellation token is set
        call the oracle
        success -> ValidationRecord, reported to ``on_record`` immediately
        failure -> FailedRow, reported to ``on_failure``; the batch continues

Cancellation is cooperative. The token is checked before each row and the
inter-request delay wakes up as soon as it is set; an oracle call already
in flight is allowed to finish and its outcome is kept.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
import uuid
from collections.abc import Callable, Sequence
from enum import Enum

from app.domain.app_validation import (
    BatchAlreadyRunningError,
    BatchResult,
    CandidateRow,
    FailedRow,
    ValidationRecord,
)
from app.logging_utils import log_event
from category_oracle.oracle import ClassificationOracle
from category_oracle.schema import CategoryVerdict

logger = logging.getLogger(__name__)

RecordObserver = Callable[[ValidationRecord], None]
FailureObserver = Callable[[FailedRow], None]


class BatchState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    CANCELLED = "cancelled"


class CancellationToken:
    """
    Shared stop flag for one batch task.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self, timeout_seconds: float) -> bool:
        """
        Sleep up to *timeout_seconds*; return True early if cancelled meanwhile.
        """

        if timeout_seconds <= 0:
            return self.cancelled
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            return False
        return True


class RecordIdFactory:
    """
    Generates record ids from time, a process-wide sequence and a random suffix.
    """

    def __init__(self, prefix: str = "csv") -> None:
        self._prefix = prefix
        self._sequence = itertools.count(1)

    def __call__(self, timestamp: float) -> str:
        return f"{self._prefix}-{int(timestamp * 1000)}-{next(self._sequence)}-{uuid.uuid4().hex[:8]}"


class BatchRunner:
    """
    Runs one batch at a time against the classification oracle.
    """

    def __init__(
        self,
        oracle: ClassificationOracle,
        *,
        inter_request_delay_seconds: float = 2.0,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[float], str] | None = None,
    ) -> None:
        self._oracle = oracle
        self._delay_seconds = max(0.0, inter_request_delay_seconds)
        self._clock = clock
        self._id_factory = id_factory or RecordIdFactory()
        self._state = BatchState.IDLE
        self._token: CancellationToken | None = None

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is BatchState.RUNNING

    async def run(
        self,
        rows: Sequence[CandidateRow],
        *,
        on_record: RecordObserver | None = None,
        on_failure: FailureObserver | None = None,
        token: CancellationToken | None = None,
    ) -> BatchResult:
        """
        Classify *rows* in order and partition them into succeeded and failed.

        Raises:
            BatchAlreadyRunningError: another batch is still running.
        """

        if self._state is BatchState.RUNNING:
            raise BatchAlreadyRunningError("A validation batch is already running.")

        token = token or CancellationToken()
        self._token = token
        self._state = BatchState.RUNNING

        succeeded: list[ValidationRecord] = []
        failed: list[FailedRow] = []
        total = len(rows)
        log_event(logger, logging.INFO, "batch_started", total=total)

        try:
            for index, row in enumerate(rows):
                if index > 0 and await token.wait(self._delay_seconds):
                    break
                if token.cancelled:
                    break

                result = await self._oracle.classify(row.app_name, row.description, row.category)
                if result.ok:
                    record = self._build_record(row, result.verdict)
                    succeeded.append(record)
                    log_event(
                        logger,
                        logging.INFO,
                        "row_validated",
                        position=index + 1,
                        total=total,
                        app=row.app_name,
                        is_valid_category=record.is_valid_category,
                    )
                    if on_record is not None:
                        on_record(record)
                else:
                    failed_row = FailedRow.from_candidate(row, result.error or "Unknown oracle error")
                    failed.append(failed_row)
                    log_event(
                        logger,
                        logging.WARNING,
                        "row_failed",
                        position=index + 1,
                        total=total,
                        app=row.app_name,
                        error=failed_row.error_reason,
                    )
                    if on_failure is not None:
                        on_failure(failed_row)
        finally:
            self._state = BatchState.CANCELLED if token.cancelled else BatchState.IDLE
            self._token = None

        log_event(
            logger,
            logging.INFO,
            "batch_finished",
            total=total,
            succeeded=len(succeeded),
            failed=len(failed),
            cancelled=token.cancelled,
        )
        return BatchResult(succeeded=succeeded, failed=failed, cancelled=token.cancelled)

    async def retry(
        self,
        failed_rows: Sequence[FailedRow],
        *,
        on_record: RecordObserver | None = None,
        on_failure: FailureObserver | None = None,
        token: CancellationToken | None = None,
    ) -> BatchResult:
        """
        Run a batch over previously failed rows, reinterpreted as candidates.
        """

        return await self.run(
            [failed_row.to_candidate() for failed_row in failed_rows],
            on_record=on_record,
            on_failure=on_failure,
            token=token,
        )

    def cancel(self) -> bool:
        """
        Signal the running batch to stop; return False when nothing is running.
        """

        if self._state is not BatchState.RUNNING or self._token is None:
            return False
        if not self._token.cancelled:
            log_event(logger, logging.INFO, "batch_cancel_requested")
        self._token.cancel()
        return True

    def _build_record(self, row: CandidateRow, verdict: CategoryVerdict) -> ValidationRecord:
        checked_at = self._clock()
        return ValidationRecord(
            id=self._id_factory(checked_at),
            app=row.app_name,
            description=row.description,
            original_category=row.category,
            is_valid_category=verdict.is_valid_category,
            validation_reason=verdict.validation_reason,
            checked_at=checked_at,
        )
