"""
tests/test_row_parser.py

Pytest unit tests for CSVRowParser.

Coverage
--------
- Header detection: case-insensitive, any order, extra columns ignored
- HeaderError for missing columns and for too few non-blank lines
- Quoted fields with commas, newlines and doubled quotes
- CR, LF and CRLF line endings; blank lines discarded
- Missing data becomes a ParseFailure without stopping the parse
- 1-based data row numbering
"""

from __future__ import annotations

import pytest

from app.domain.app_validation import MISSING_DATA_REASON, CandidateRow, HeaderError
from app.validators.csv_row_parser import CSVRowParser


@pytest.fixture()
def parser() -> CSVRowParser:
    return CSVRowParser()


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------


class TestHeader:
    def test_columns_match_case_insensitively_in_any_order(self, parser: CSVRowParser) -> None:
        result = parser.parse("CATEGORY,AppName,Description\nGames,Star Quest,Space shooter\n")

        assert result.candidates == [
            CandidateRow(app_name="Star Quest", description="Space shooter", category="Games")
        ]

    def test_extra_columns_are_ignored(self, parser: CSVRowParser) -> None:
        result = parser.parse("id,appName,rating,description,category\n7,Chess,4.5,Board game,Games\n")

        assert result.candidates == [CandidateRow(app_name="Chess", description="Board game", category="Games")]

    @pytest.mark.parametrize(
        "header, missing",
        [
            ("appName,description", ("category",)),
            ("name,description,category", ("appname",)),
            ("appName,summary,genre,extra", ("description", "category")),
        ],
    )
    def test_missing_column_raises_header_error(
        self, parser: CSVRowParser, header: str, missing: tuple[str, ...]
    ) -> None:
        with pytest.raises(HeaderError) as excinfo:
            parser.parse(f"{header}\na,b,c,d\n")

        assert excinfo.value.missing_columns == missing

    def test_header_only_raises_header_error(self, parser: CSVRowParser) -> None:
        with pytest.raises(HeaderError):
            parser.parse("appName,description,category\n")

    def test_blank_lines_do_not_count_as_data_rows(self, parser: CSVRowParser) -> None:
        with pytest.raises(HeaderError):
            parser.parse("\n\nappName,description,category\n\n   \n")

    def test_empty_text_raises_header_error(self, parser: CSVRowParser) -> None:
        with pytest.raises(HeaderError):
            parser.parse("")

    def test_leading_bom_is_ignored(self, parser: CSVRowParser) -> None:
        result = parser.parse("\ufeffappName,description,category\nChess,Board game,Games\n")

        assert len(result.candidates) == 1


# ---------------------------------------------------------------------------
# Field quoting
# ---------------------------------------------------------------------------


class TestQuoting:
    def test_quoted_field_may_contain_commas(self, parser: CSVRowParser) -> None:
        result = parser.parse(
            'appName,description,category\nLoanFast,"Borrow cash instantly, repay in 30 days",Microlending\n'
        )

        assert result.candidates[0].description == "Borrow cash instantly, repay in 30 days"

    def test_quoted_field_may_contain_line_breaks(self, parser: CSVRowParser) -> None:
        result = parser.parse('appName,description,category\nNotes,"Line one\r\nLine two\nLine three",Productivity\n')

        assert result.candidates[0].description == "Line one\r\nLine two\nLine three"
        assert result.candidates[0].category == "Productivity"

    def test_doubled_quote_decodes_to_one_quote(self, parser: CSVRowParser) -> None:
        result = parser.parse('appName,description,category\n"The ""Best"" App","Says ""hi""",Social\n')

        assert result.candidates[0].app_name == 'The "Best" App'
        assert result.candidates[0].description == 'Says "hi"'

    def test_whitespace_trimmed_outside_quotes_only(self, parser: CSVRowParser) -> None:
        result = parser.parse('appName,description,category\n  Chess  ,  " padded "  , Games \n')

        row = result.candidates[0]
        assert row.app_name == "Chess"
        assert row.description == " padded "
        assert row.category == "Games"


# ---------------------------------------------------------------------------
# Line endings and blank lines
# ---------------------------------------------------------------------------


class TestLineEndings:
    @pytest.mark.parametrize("newline", ["\n", "\r\n", "\r"])
    def test_any_line_ending_splits_records(self, parser: CSVRowParser, newline: str) -> None:
        text = newline.join(
            ["appName,description,category", "A,Desc A,Games", "B,Desc B,Tools"]
        )

        result = parser.parse(text)

        assert [row.app_name for row in result.candidates] == ["A", "B"]

    def test_blank_lines_between_rows_are_discarded(self, parser: CSVRowParser) -> None:
        result = parser.parse("appName,description,category\n\nA,Desc A,Games\n   \n\nB,Desc B,Tools\n\n")

        assert [row.app_name for row in result.candidates] == ["A", "B"]
        assert result.parse_failures == []


# ---------------------------------------------------------------------------
# Missing data
# ---------------------------------------------------------------------------


class TestMissingData:
    def test_row_with_empty_field_becomes_parse_failure(self, parser: CSVRowParser) -> None:
        result = parser.parse("appName,description,category\nA,Desc A,Games\nB,,Tools\nC,Desc C,Games\n")

        assert [row.app_name for row in result.candidates] == ["A", "C"]
        assert len(result.parse_failures) == 1
        failure = result.parse_failures[0]
        assert failure.row_number == 2
        assert failure.error_reason == MISSING_DATA_REASON
        assert failure.app_name == "B"
        assert failure.description is None
        assert failure.category == "Tools"

    def test_short_row_captures_readable_fields(self, parser: CSVRowParser) -> None:
        result = parser.parse("appName,description,category\nOnlyName\n")

        assert result.candidates == []
        failure = result.parse_failures[0]
        assert failure.row_number == 1
        assert failure.app_name == "OnlyName"
        assert failure.description is None
        assert failure.category is None

    def test_whitespace_only_field_counts_as_missing(self, parser: CSVRowParser) -> None:
        result = parser.parse('appName,description,category\nA,"   ",Games\n')

        assert result.candidates == []
        assert result.parse_failures[0].app_name == "A"

    def test_row_numbers_skip_blank_lines_and_header(self, parser: CSVRowParser) -> None:
        result = parser.parse("appName,description,category\n\nA,Desc,Games\n\n,Desc,Games\nC,Desc,\n")

        assert [failure.row_number for failure in result.parse_failures] == [2, 3]

    def test_lone_quoted_empty_field_is_a_row_not_a_blank_line(self, parser: CSVRowParser) -> None:
        result = parser.parse('appName,description,category\nA,Desc,Games\n""\n')

        assert len(result.candidates) == 1
        assert [failure.row_number for failure in result.parse_failures] == [2]
        assert result.parse_failures[0].app_name is None
