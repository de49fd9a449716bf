"""App description generation backed by an LLM adapter."""

import logging
from typing import Optional

from category_oracle.adapter import BaseLLMAdapter
from category_oracle.prompt_builder import DescriptionPromptBuilder
from category_oracle.schema import AppDescription
from category_oracle.validator import validate_llm_output

logger = logging.getLogger(__name__)


class AppDescriptionGenerator:
    """Generates a product description from an app name and category."""

    def __init__(
        self,
        adapter: BaseLLMAdapter,
        prompt_builder: Optional[DescriptionPromptBuilder] = None,
    ) -> None:
        self._adapter = adapter
        self._prompt_builder = prompt_builder or DescriptionPromptBuilder()

    def generate(self, app_name: str, category: str) -> AppDescription:
        """Return a validated description.

        Raises:
            LLMOutputValidationError: The model output was not a valid description.
        """
        prompt = self._prompt_builder.build_prompt(app_name=app_name, category=category)
        raw = self._adapter.generate(prompt)
        description = validate_llm_output(raw, AppDescription)
        logger.info("Generated description for '%s' (%d chars)", app_name, len(description.description))
        return description
