"""Classification oracle: LLM adapters, prompts, output validation."""

from category_oracle.adapter import BaseLLMAdapter, MockLLMAdapter, OpenAILLMAdapter, build_llm_adapter
from category_oracle.describer import AppDescriptionGenerator
from category_oracle.oracle import ClassificationOracle, ClassifyFn, OracleResult, llm_classify_fn
from category_oracle.schema import AppDescription, CategoryVerdict
from category_oracle.validator import LLMOutputValidationError, validate_llm_output

__all__ = [
    "AppDescription",
    "AppDescriptionGenerator",
    "BaseLLMAdapter",
    "CategoryVerdict",
    "ClassificationOracle",
    "ClassifyFn",
    "LLMOutputValidationError",
    "MockLLMAdapter",
    "OpenAILLMAdapter",
    "OracleResult",
    "build_llm_adapter",
    "llm_classify_fn",
    "validate_llm_output",
]
