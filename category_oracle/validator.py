"""Validation layer for raw LLM oracle output.

Parses and validates JSON strings against a pydantic output schema.
"""

import json
import re
from typing import Any, Dict, List, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class LLMOutputValidationError(Exception):
    """Raised when LLM output fails parsing or schema validation.

    Attributes:
        stage: Which validation step failed ("json_parse" or "schema").
        errors: List of human-readable error descriptions.
        raw_response: The original string that failed validation.
    """

    def __init__(
        self,
        stage: str,
        errors: List[str],
        raw_response: str,
    ) -> None:
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        message = (
            f"LLM output validation failed at stage '{stage}': "
            + "; ".join(errors)
        )
        super().__init__(message)


def _strip_markdown_fences(text: str) -> str:
    """Remove optional markdown code fences wrapping JSON.

    Models sometimes wrap output in ```json ... ``` despite instructions.
    """
    stripped = text.strip()
    match = re.match(
        r"^```(?:json)?\s*\n?(.*?)\n?\s*```$",
        stripped,
        re.DOTALL,
    )
    if match:
        return match.group(1).strip()
    return stripped


def _output_keys(schema: Type[BaseModel]) -> Tuple[str, ...]:
    return tuple(info.alias or name for name, info in schema.model_fields.items())


def _project(data: Dict[str, Any], keys: Tuple[str, ...]) -> Dict[str, Any]:
    """Project payloads onto the schema keys only."""
    return {key: data.get(key) for key in keys}


def validate_llm_output(raw_response: str, schema: Type[SchemaT]) -> SchemaT:
    """Parse and validate a raw LLM response string.

    Steps:
        1. Strip optional markdown fences.
        2. Parse as JSON.
        3. Project payload onto the schema's keys.
        4. Validate against the pydantic schema.

    Args:
        raw_response: The raw string returned by the LLM adapter.
        schema: Output model the response must satisfy.

    Returns:
        A validated schema instance.

    Raises:
        LLMOutputValidationError: If JSON parsing or schema validation fails.
    """
    cleaned = _strip_markdown_fences(raw_response)

    try:
        data = json.loads(cleaned)
    except (json.JSONDecodeError, TypeError) as exc:
        raise LLMOutputValidationError(
            stage="json_parse",
            errors=[str(exc)],
            raw_response=raw_response,
        ) from exc

    if not isinstance(data, dict):
        raise LLMOutputValidationError(
            stage="schema",
            errors=["top-level JSON must be an object"],
            raw_response=raw_response,
        )

    try:
        return schema.model_validate(_project(data, _output_keys(schema)))
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}"
            for e in exc.errors()
        ]
        raise LLMOutputValidationError(
            stage="schema",
            errors=errors,
            raw_response=raw_response,
        ) from exc
