"""
tests/test_batch_runner.py

Pytest unit tests for BatchRunner.

The oracle is a scripted in-memory classifier, so every test is
deterministic and offline. Async code is driven with ``asyncio.run``.

Coverage
--------
- Strict input ordering and incremental emission
- Row isolation: one oracle failure never aborts the batch
- Cooperative cancellation between rows and during the delay
- Inter-request delay only between rows
- Single-batch state guard
- Retry of failed rows
- Negative verdicts are successes, not failures
"""

from __future__ import annotations

import asyncio
import itertools
import time

import pytest

from app.domain.app_validation import BatchAlreadyRunningError, CandidateRow, FailedRow
from app.services.batch_runner import BatchRunner, BatchState, CancellationToken, RecordIdFactory
from category_oracle.oracle import ClassificationOracle
from category_oracle.schema import CategoryVerdict


class ScriptedClassifier:
    """Async classify function answering per app name; exceptions are raised."""

    def __init__(self, outcomes: dict | None = None) -> None:
        self.outcomes = outcomes or {}
        self.calls: list[str] = []

    async def __call__(self, app: str, description: str, category: str) -> CategoryVerdict:
        self.calls.append(app)
        outcome = self.outcomes.get(app)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            return CategoryVerdict(is_valid_category=True, validation_reason=f"{app} fits {category}")
        return outcome


def _rows(*names: str) -> list[CandidateRow]:
    return [CandidateRow(app_name=name, description=f"{name} description", category="Games") for name in names]


def _runner(classifier: ScriptedClassifier, delay: float = 0.0) -> BatchRunner:
    ticks = itertools.count(1000)
    return BatchRunner(
        ClassificationOracle(classifier),
        inter_request_delay_seconds=delay,
        clock=lambda: float(next(ticks)),
    )


# ---------------------------------------------------------------------------
# Ordering and emission
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_rows_processed_in_input_order(self) -> None:
        classifier = ScriptedClassifier()
        runner = _runner(classifier)

        result = asyncio.run(runner.run(_rows("A", "B", "C", "D")))

        assert classifier.calls == ["A", "B", "C", "D"]
        assert [record.app for record in result.succeeded] == ["A", "B", "C", "D"]
        assert result.failed == []
        assert result.cancelled is False

    def test_records_emitted_as_each_row_settles(self) -> None:
        classifier = ScriptedClassifier({"B": RuntimeError("quota exceeded")})
        runner = _runner(classifier)
        events: list[tuple[str, str, int]] = []

        def on_record(record) -> None:
            events.append(("record", record.app, len(classifier.calls)))

        def on_failure(row) -> None:
            events.append(("failure", row.app_name, len(classifier.calls)))

        asyncio.run(runner.run(_rows("A", "B", "C"), on_record=on_record, on_failure=on_failure))

        assert events == [("record", "A", 1), ("failure", "B", 2), ("record", "C", 3)]

    def test_record_carries_row_fields_and_fresh_identity(self) -> None:
        runner = _runner(ScriptedClassifier())

        result = asyncio.run(runner.run(_rows("A", "B")))

        first, second = result.succeeded
        assert first.description == "A description"
        assert first.original_category == "Games"
        assert first.is_valid_category is True
        assert first.validation_reason == "A fits Games"
        assert first.checked_at == 1000.0
        assert second.checked_at == 1001.0
        assert first.id != second.id

    def test_empty_batch_returns_empty_result(self) -> None:
        classifier = ScriptedClassifier()

        result = asyncio.run(_runner(classifier).run([]))

        assert result.processed == 0
        assert classifier.calls == []


# ---------------------------------------------------------------------------
# Row isolation
# ---------------------------------------------------------------------------


class TestRowIsolation:
    def test_single_failure_does_not_abort_batch(self) -> None:
        classifier = ScriptedClassifier({"C": TimeoutError("model timed out")})

        result = asyncio.run(_runner(classifier).run(_rows("A", "B", "C", "D", "E")))

        assert len(result.succeeded) == 4
        assert len(result.failed) == 1
        assert result.failed[0] == FailedRow(
            app_name="C",
            description="C description",
            category="Games",
            error_reason="model timed out",
        )
        assert classifier.calls == ["A", "B", "C", "D", "E"]

    def test_negative_verdict_is_a_success(self) -> None:
        classifier = ScriptedClassifier(
            {
                "LoanFast": CategoryVerdict(
                    is_valid_category=True,
                    validation_reason="The app explicitly lets users borrow money.",
                ),
                "SecureNet": CategoryVerdict(
                    is_valid_category=False,
                    validation_reason="core function must be VPN",
                ),
            }
        )
        rows = [
            CandidateRow("LoanFast", "Borrow cash instantly, repay in 30 days", "Microlending"),
            CandidateRow("SecureNet", "A full VPN and privacy browser", "Proxy"),
        ]

        result = asyncio.run(_runner(classifier).run(rows))

        assert result.failed == []
        assert [(record.app, record.is_valid_category) for record in result.succeeded] == [
            ("LoanFast", True),
            ("SecureNet", False),
        ]


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancellation:
    def test_cancel_after_second_row_stops_before_third(self) -> None:
        classifier = ScriptedClassifier({"B": RuntimeError("bad gateway")})
        runner = _runner(classifier)
        settled: list[str] = []

        def settle(name: str) -> None:
            settled.append(name)
            if len(settled) == 2:
                assert runner.cancel() is True

        result = asyncio.run(
            runner.run(
                _rows("A", "B", "C", "D", "E"),
                on_record=lambda record: settle(record.app),
                on_failure=lambda row: settle(row.app_name),
            )
        )

        assert classifier.calls == ["A", "B"]
        assert result.processed == 2
        assert result.cancelled is True
        assert runner.state is BatchState.CANCELLED

    def test_cancel_wakes_the_inter_request_delay(self) -> None:
        classifier = ScriptedClassifier()
        runner = _runner(classifier, delay=30.0)

        async def scenario():
            token = CancellationToken()
            loop = asyncio.get_running_loop()

            def on_record(record) -> None:
                loop.call_later(0.05, token.cancel)

            started = time.monotonic()
            result = await runner.run(_rows("A", "B", "C"), on_record=on_record, token=token)
            return result, time.monotonic() - started

        result, elapsed = asyncio.run(scenario())

        assert elapsed < 5.0
        assert classifier.calls == ["A"]
        assert len(result.succeeded) == 1
        assert result.cancelled is True

    def test_cancel_before_start_processes_nothing(self) -> None:
        classifier = ScriptedClassifier()

        async def scenario():
            token = CancellationToken()
            token.cancel()
            return await _runner(classifier).run(_rows("A", "B"), token=token)

        result = asyncio.run(scenario())

        assert classifier.calls == []
        assert result.processed == 0
        assert result.cancelled is True

    def test_cancel_when_idle_is_a_no_op(self) -> None:
        runner = _runner(ScriptedClassifier())

        assert runner.cancel() is False
        assert runner.state is BatchState.IDLE

    def test_in_flight_call_completes_and_is_kept(self) -> None:
        class SlowClassifier(ScriptedClassifier):
            gate: asyncio.Event

            async def __call__(self, app, description, category):
                if app == "B":
                    await self.gate.wait()
                return await super().__call__(app, description, category)

        classifier = SlowClassifier()
        runner = _runner(classifier)

        async def scenario():
            classifier.gate = asyncio.Event()
            task = asyncio.create_task(runner.run(_rows("A", "B", "C")))
            await asyncio.sleep(0.01)
            assert classifier.calls == ["A"]
            runner.cancel()
            classifier.gate.set()
            return await task

        result = asyncio.run(scenario())

        assert [record.app for record in result.succeeded] == ["A", "B"]
        assert classifier.calls == ["A", "B"]


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------


class TestDelay:
    def test_delay_applies_between_rows_only(self) -> None:
        runner = _runner(ScriptedClassifier(), delay=0.05)

        async def scenario() -> float:
            started = time.monotonic()
            await runner.run(_rows("A", "B", "C"))
            return time.monotonic() - started

        elapsed = asyncio.run(scenario())

        assert elapsed >= 0.09
        assert elapsed < 2.0

    def test_single_row_batch_does_not_wait(self) -> None:
        runner = _runner(ScriptedClassifier(), delay=30.0)

        async def scenario() -> float:
            started = time.monotonic()
            await runner.run(_rows("A"))
            return time.monotonic() - started

        assert asyncio.run(scenario()) < 5.0


# ---------------------------------------------------------------------------
# State guard
# ---------------------------------------------------------------------------


class TestStateGuard:
    def test_second_run_rejected_while_running(self) -> None:
        class GatedClassifier(ScriptedClassifier):
            gate: asyncio.Event

            async def __call__(self, app, description, category):
                await self.gate.wait()
                return await super().__call__(app, description, category)

        classifier = GatedClassifier()
        runner = _runner(classifier)

        async def scenario():
            classifier.gate = asyncio.Event()
            task = asyncio.create_task(runner.run(_rows("A")))
            await asyncio.sleep(0.01)
            assert runner.is_running
            with pytest.raises(BatchAlreadyRunningError):
                await runner.run(_rows("B"))
            with pytest.raises(BatchAlreadyRunningError):
                await runner.retry([FailedRow("B", "d", "Games", "err")])
            classifier.gate.set()
            return await task

        result = asyncio.run(scenario())

        assert [record.app for record in result.succeeded] == ["A"]
        assert runner.state is BatchState.IDLE

    def test_runner_accepts_new_batch_after_cancelled_one(self) -> None:
        classifier = ScriptedClassifier()
        runner = _runner(classifier)

        async def scenario():
            token = CancellationToken()
            token.cancel()
            await runner.run(_rows("A"), token=token)
            assert runner.state is BatchState.CANCELLED
            return await runner.run(_rows("B"))

        result = asyncio.run(scenario())

        assert [record.app for record in result.succeeded] == ["B"]
        assert runner.state is BatchState.IDLE


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetry:
    def test_retry_clears_failures_when_oracle_recovers(self) -> None:
        classifier = ScriptedClassifier({"B": RuntimeError("503"), "D": RuntimeError("503")})
        runner = _runner(classifier)

        first = asyncio.run(runner.run(_rows("A", "B", "C", "D")))
        assert [row.app_name for row in first.failed] == ["B", "D"]

        classifier.outcomes.clear()
        retried = asyncio.run(runner.retry(first.failed))

        assert retried.failed == []
        assert [record.app for record in retried.succeeded] == ["B", "D"]
        assert retried.succeeded[0].description == "B description"

    def test_retry_reports_rows_that_fail_again(self) -> None:
        classifier = ScriptedClassifier({"B": RuntimeError("still down")})
        failed = [FailedRow("B", "B description", "Games", "first error")]

        result = asyncio.run(_runner(classifier).retry(failed))

        assert result.failed == [FailedRow("B", "B description", "Games", "still down")]


def test_record_id_factory_generates_unique_ids() -> None:
    factory = RecordIdFactory(prefix="csv")

    ids = {factory(1_700_000_000.5) for _ in range(100)}

    assert len(ids) == 100
    assert all(record_id.startswith("csv-1700000000500-") for record_id in ids)
