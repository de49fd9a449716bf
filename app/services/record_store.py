"""
app/services/record_store.py

In-memory, recency-ordered store of validation records.
"""

from __future__ import annotations

from collections.abc import Iterable

from app.domain.app_validation import ValidationRecord


class DuplicateRecordError(ValueError):
    """
    Raised when a record id is already present in the store.
    """


class RecordStore:
    """
    Ordered collection of ValidationRecord, newest ``checked_at`` first.

    Every insert re-sorts the whole collection; the expected scale is tens
    to low thousands of records. Records are unique by id only, so the same
    app may appear several times.
    """

    def __init__(self, records: Iterable[ValidationRecord] = ()) -> None:
        self._records: list[ValidationRecord] = []
        self._ids: set[str] = set()
        for record in records:
            self.insert(record)

    def insert(self, record: ValidationRecord) -> None:
        if record.id in self._ids:
            raise DuplicateRecordError(f"Record id '{record.id}' is already stored.")
        self._ids.add(record.id)
        self._records.append(record)
        self._records.sort(key=lambda item: item.checked_at, reverse=True)

    def all(self) -> tuple[ValidationRecord, ...]:
        return tuple(self._records)

    def is_empty(self) -> bool:
        return not self._records

    def __len__(self) -> int:
        return len(self._records)
