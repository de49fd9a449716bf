"""Structured output schemas for the category oracle."""

from pydantic import BaseModel, ConfigDict, Field


class CategoryVerdict(BaseModel):
    """Oracle verdict on whether a description fits its assigned category."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    is_valid_category: bool = Field(alias="isValidCategory", strict=True)
    validation_reason: str = Field(alias="validationReason", min_length=1)


class AppDescription(BaseModel):
    """Generated marketing description for an app."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        str_strip_whitespace=True,
    )

    description: str = Field(min_length=1)
