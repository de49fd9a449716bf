"""Classification oracle adapter.

Wraps an injected async classify function so every call settles into an
``OracleResult``: either a verdict or a human-readable failure message.
There are no retries here; retry policy belongs to the caller.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from category_oracle.adapter import BaseLLMAdapter
from category_oracle.prompt_builder import CategoryPromptBuilder
from category_oracle.schema import CategoryVerdict
from category_oracle.validator import validate_llm_output

logger = logging.getLogger(__name__)

ClassifyFn = Callable[[str, str, str], Awaitable[CategoryVerdict]]


@dataclass(frozen=True)
class OracleResult:
    """Outcome of one oracle call. Exactly one of ``verdict`` / ``error`` is set."""

    verdict: Optional[CategoryVerdict] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.verdict is not None

    @classmethod
    def success(cls, verdict: CategoryVerdict) -> "OracleResult":
        return cls(verdict=verdict)

    @classmethod
    def failure(cls, error: str) -> "OracleResult":
        return cls(error=error)


def describe_error(exc: BaseException) -> str:
    """Return a human-readable message for *exc*, never an empty string."""
    message = str(exc).strip()
    return message or exc.__class__.__name__


class ClassificationOracle:
    """Uniform success/failure facade over the external classify function."""

    def __init__(
        self,
        classify_fn: ClassifyFn,
        *,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        """Initialise the oracle.

        Args:
            classify_fn: Async callable ``(app, description, category) -> CategoryVerdict``.
            timeout_seconds: Optional per-call limit; ``None`` waits indefinitely.
        """
        self._classify_fn = classify_fn
        self._timeout_seconds = timeout_seconds

    async def classify(self, app: str, description: str, category: str) -> OracleResult:
        """Classify one listing; any exception becomes a failure result."""
        try:
            call = self._classify_fn(app, description, category)
            if self._timeout_seconds is None:
                verdict = await call
            else:
                verdict = await asyncio.wait_for(call, timeout=self._timeout_seconds)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError as exc:
            if self._timeout_seconds is None:
                message = describe_error(exc)
            else:
                message = f"Oracle call timed out after {self._timeout_seconds:g}s"
            logger.warning("Classification of '%s' failed: %s", app, message)
            return OracleResult.failure(message)
        except Exception as exc:  # noqa: BLE001
            message = describe_error(exc)
            logger.warning("Classification of '%s' failed: %s", app, message)
            return OracleResult.failure(message)

        if not isinstance(verdict, CategoryVerdict):
            return OracleResult.failure(
                f"Oracle returned {type(verdict).__name__} instead of a category verdict"
            )
        return OracleResult.success(verdict)


def llm_classify_fn(
    adapter: BaseLLMAdapter,
    prompt_builder: Optional[CategoryPromptBuilder] = None,
) -> ClassifyFn:
    """Build a classify function backed by a synchronous LLM adapter.

    The blocking adapter call runs in a worker thread so the batch task's
    event loop stays responsive to cancellation and status requests.
    """
    builder = prompt_builder or CategoryPromptBuilder()

    async def _classify(app: str, description: str, category: str) -> CategoryVerdict:
        prompt = builder.build_prompt(app=app, description=description, category=category)
        raw = await asyncio.to_thread(adapter.generate, prompt)
        return validate_llm_output(raw, CategoryVerdict)

    return _classify
