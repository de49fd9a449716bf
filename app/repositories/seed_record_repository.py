"""
app/repositories/seed_record_repository.py

Initial validation records for the in-memory store.

Seed payloads use the external field names and may carry ``checkedAt`` as a
``{seconds, nanoseconds}`` pair or as an ISO-8601 string; both become float
epoch seconds here, before any record reaches the store.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.domain.app_validation import ValidationRecord
from app.timestamps import to_epoch_seconds

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 3600


class SeedRecordError(ValueError):
    """
    Raised when seed payloads cannot be turned into validation records.
    """


class SeedRecordPayload(BaseModel):
    """
    One externally supplied validation record.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, str_strip_whitespace=True)

    id: str = Field(min_length=1)
    app: str = Field(min_length=1)
    description: str = Field(min_length=1)
    original_category: str = Field(alias="originalCategory", min_length=1)
    is_valid_category: bool = Field(alias="isValidCategory")
    validation_reason: str = Field(alias="validationReason")
    checked_at: float = Field(alias="checkedAt")

    @field_validator("checked_at", mode="before")
    @classmethod
    def _normalize_checked_at(cls, value: Any) -> float:
        try:
            return to_epoch_seconds(value)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    def to_record(self) -> ValidationRecord:
        return ValidationRecord(
            id=self.id,
            app=self.app,
            description=self.description,
            original_category=self.original_category,
            is_valid_category=self.is_valid_category,
            validation_reason=self.validation_reason,
            checked_at=self.checked_at,
        )


class SeedRecordRepository:
    """
    Supplies the records a fresh session starts with.
    """

    def __init__(self, payloads: Iterable[dict[str, Any]] = ()) -> None:
        self._payloads = list(payloads)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "SeedRecordRepository":
        """
        Load a JSON list of record payloads.

        Raises:
            SeedRecordError: unreadable file or top-level value is not a list.
        """

        try:
            loaded = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise SeedRecordError(f"Cannot read seed records from '{path}': {exc}") from exc
        if not isinstance(loaded, list):
            raise SeedRecordError(f"Seed file '{path}' must contain a JSON list.")
        return cls(loaded)

    @classmethod
    def demo(cls, now: float | None = None) -> "SeedRecordRepository":
        return cls(demo_payloads(time.time() if now is None else now))

    def load(self) -> list[ValidationRecord]:
        """
        Validate every payload and return the records.

        Raises:
            SeedRecordError: any payload is invalid; the message names its index.
        """

        records: list[ValidationRecord] = []
        for index, payload in enumerate(self._payloads):
            try:
                records.append(SeedRecordPayload.model_validate(payload).to_record())
            except ValidationError as exc:
                raise SeedRecordError(f"Seed record #{index} is invalid: {exc}") from exc
        logger.info("Loaded %d seed validation records", len(records))
        return records


def _iso_days_ago(now: float, days: int) -> str:
    return datetime.fromtimestamp(now - days * _SECONDS_PER_DAY, timezone.utc).isoformat()


def demo_payloads(now: float) -> list[dict[str, Any]]:
    """
    Seven demo records, one to seven days old, mixing both checkedAt forms.
    """

    return [
        {
            "id": "1",
            "app": "PhotoMaestro Pro",
            "description": (
                "An advanced photo editing suite for professionals, offering RAW processing, "
                "layer management, and intricate retouching tools."
            ),
            "originalCategory": "Photography",
            "isValidCategory": True,
            "validationReason": (
                "The description clearly indicates features typical of a professional photography application."
            ),
            "checkedAt": {"seconds": now - 1 * _SECONDS_PER_DAY, "nanoseconds": 0},
        },
        {
            "id": "2",
            "app": "FitPal Journey",
            "description": (
                "Track your daily workouts, monitor calorie intake, log water consumption, "
                "and join community fitness challenges."
            ),
            "originalCategory": "Gaming",
            "isValidCategory": False,
            "validationReason": (
                "Description aligns with Health & Fitness category, not Gaming. "
                "It focuses on physical activity and diet tracking."
            ),
            "checkedAt": _iso_days_ago(now, 2),
        },
        {
            "id": "3",
            "app": "CodeNinja IDE",
            "description": (
                "A powerful Integrated Development Environment for Python, JavaScript, and Java, "
                "featuring smart autocompletion and debugging."
            ),
            "originalCategory": "Productivity",
            "isValidCategory": True,
            "validationReason": (
                "The app is described as an IDE, which is a standard tool for productivity in software development."
            ),
            "checkedAt": {"seconds": now - 3 * _SECONDS_PER_DAY, "nanoseconds": 0},
        },
        {
            "id": "4",
            "app": "Chef's Recipe Book",
            "description": (
                "Discover thousands of recipes, create meal plans, and generate shopping lists. "
                "Learn new cooking techniques with video tutorials."
            ),
            "originalCategory": "Social Networking",
            "isValidCategory": False,
            "validationReason": (
                "This app is focused on cooking and recipes, fitting a Food & Drink or Lifestyle category, "
                "not Social Networking."
            ),
            "checkedAt": _iso_days_ago(now, 4),
        },
        {
            "id": "5",
            "app": "Starship Odyssey",
            "description": (
                "Embark on an epic space adventure! Explore galaxies, battle alien fleets, "
                "and customize your starship in this immersive RPG."
            ),
            "originalCategory": "Games",
            "isValidCategory": True,
            "validationReason": "The description perfectly matches a space-themed role-playing game (RPG).",
            "checkedAt": {"seconds": now - 5 * _SECONDS_PER_DAY, "nanoseconds": 0},
        },
        {
            "id": "6",
            "app": "Mindful Moments",
            "description": (
                "Guided meditations, breathing exercises, and calming soundscapes to help you relax and de-stress."
            ),
            "originalCategory": "Health & Fitness",
            "isValidCategory": True,
            "validationReason": (
                "The features described are characteristic of a meditation and mindfulness app "
                "within the Health & Fitness category."
            ),
            "checkedAt": _iso_days_ago(now, 6),
        },
        {
            "id": "7",
            "app": "Global News Hub",
            "description": (
                "Stay updated with the latest breaking news from around the world, "
                "covering politics, technology, and entertainment."
            ),
            "originalCategory": "Travel",
            "isValidCategory": False,
            "validationReason": (
                "This app provides news updates, placing it in the News & Magazines category, not Travel."
            ),
            "checkedAt": {"seconds": now - 7 * _SECONDS_PER_DAY, "nanoseconds": 0},
        },
    ]
