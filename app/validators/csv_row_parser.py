"""
app/validators/csv_row_parser.py

Row parsing and structural validation for uploaded app listing CSVs.

Quoting rules:
- a field opened with ``"`` may contain commas, CR and LF;
- ``""`` inside a quoted field decodes to one literal quote;
- whitespace around a field is trimmed only outside the quotes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.domain.app_validation import (
    MISSING_DATA_REASON,
    CandidateRow,
    HeaderError,
    ParseFailure,
    ParseResult,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: tuple[str, ...] = ("appname", "description", "category")

_BOM = "\ufeff"


@dataclass(frozen=True)
class _Cell:
    value: str
    quoted: bool


class _RecordTokenizer:
    """
    Splits CSV text into records of cells, honouring quoted fields.

    ``csv.reader`` is not used here: it does not report whether a cell was
    quoted, so it cannot keep whitespace inside quotes while trimming it
    outside, and with ``skipinitialspace`` off it keeps the text after a
    closing quote in the field. Blank-line detection also needs the
    quoted flag, to keep a lone ``""`` field.
    """

    def __init__(self) -> None:
        self._records: list[list[_Cell]] = []
        self._record: list[_Cell] = []
        self._buffer: list[str] = []
        self._quoted = False

    def tokenize(self, text: str) -> list[list[_Cell]]:
        in_quotes = False
        index = 0
        length = len(text)

        while index < length:
            char = text[index]
            if in_quotes:
                if char == '"':
                    if index + 1 < length and text[index + 1] == '"':
                        self._buffer.append('"')
                        index += 2
                        continue
                    in_quotes = False
                else:
                    self._buffer.append(char)
            elif char == '"' and self._can_open_quote():
                self._buffer = []
                self._quoted = True
                in_quotes = True
            elif char == ",":
                self._end_field()
            elif char in "\r\n":
                self._end_record()
                if char == "\r" and index + 1 < length and text[index + 1] == "\n":
                    index += 1
            elif self._quoted and char.isspace():
                # whitespace after the closing quote
                pass
            else:
                self._buffer.append(char)
            index += 1

        if self._record or self._buffer or self._quoted:
            self._end_record()
        return self._records

    def _can_open_quote(self) -> bool:
        return not self._quoted and not "".join(self._buffer).strip()

    def _end_field(self) -> None:
        raw = "".join(self._buffer)
        self._record.append(_Cell(value=raw if self._quoted else raw.strip(), quoted=self._quoted))
        self._buffer = []
        self._quoted = False

    def _end_record(self) -> None:
        self._end_field()
        self._records.append(self._record)
        self._record = []


def _is_blank(record: list[_Cell]) -> bool:
    return len(record) == 1 and not record[0].quoted and record[0].value == ""


def _cell(record: list[_Cell], index: int) -> str | None:
    if index >= len(record):
        return None
    value = record[index].value
    return value if value.strip() else None


class CSVRowParser:
    """
    Turns raw CSV text into candidate rows plus per-row parse failures.
    """

    def parse(self, csv_text: str) -> ParseResult:
        """
        Parse one uploaded CSV document.

        Raises:
            HeaderError: fewer than two non-blank lines, or a required
                column is missing from the header row.
        """

        if csv_text.startswith(_BOM):
            csv_text = csv_text[len(_BOM):]

        records = [record for record in _RecordTokenizer().tokenize(csv_text) if not _is_blank(record)]
        if len(records) < 2:
            raise HeaderError("CSV must have a header row and at least one data row.")

        column_index = self._resolve_columns(records[0])

        candidates: list[CandidateRow] = []
        failures: list[ParseFailure] = []
        for row_number, record in enumerate(records[1:], start=1):
            app_name = _cell(record, column_index["appname"])
            description = _cell(record, column_index["description"])
            category = _cell(record, column_index["category"])

            if app_name is None or description is None or category is None:
                logger.warning("Skipping data row %d due to missing data.", row_number)
                failures.append(
                    ParseFailure(
                        row_number=row_number,
                        error_reason=MISSING_DATA_REASON,
                        app_name=app_name,
                        description=description,
                        category=category,
                    )
                )
                continue

            candidates.append(CandidateRow(app_name=app_name, description=description, category=category))

        return ParseResult(candidates=candidates, parse_failures=failures)

    def _resolve_columns(self, header: list[_Cell]) -> dict[str, int]:
        names = [cell.value.strip().lower() for cell in header]
        missing = tuple(column for column in REQUIRED_COLUMNS if column not in names)
        if missing:
            raise HeaderError(
                "CSV must contain 'appName', 'description', and 'category' columns "
                f"(case-insensitive). Missing: {', '.join(missing)}.",
                missing_columns=missing,
            )
        return {column: names.index(column) for column in REQUIRED_COLUMNS}
