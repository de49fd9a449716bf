from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from app.timestamps import format_timestamp, to_epoch_seconds


# ---------------------------------------------------------------------------
# to_epoch_seconds
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value",
    [
        1_700_000_000.5,
        {"seconds": 1_700_000_000, "nanoseconds": 500_000_000},
        "2023-11-14T22:13:20.500Z",
        "2023-11-14T23:13:20.500+01:00",
        datetime(2023, 11, 14, 22, 13, 20, 500_000, tzinfo=timezone.utc),
        datetime(2023, 11, 14, 22, 13, 20, 500_000),
    ],
)
def test_every_representation_normalizes_to_epoch(value) -> None:
    assert to_epoch_seconds(value) == pytest.approx(1_700_000_000.5)


def test_pair_without_nanoseconds_is_whole_seconds() -> None:
    assert to_epoch_seconds({"seconds": 42}) == 42.0


@pytest.mark.parametrize("value", ["", "last tuesday", {"nanoseconds": 5}, {"seconds": "10"}])
def test_unreadable_content_raises_value_error(value) -> None:
    with pytest.raises(ValueError):
        to_epoch_seconds(value)


@pytest.mark.parametrize("value", [True, None, [1, 2]])
def test_unsupported_type_raises_type_error(value) -> None:
    with pytest.raises(TypeError):
        to_epoch_seconds(value)


# ---------------------------------------------------------------------------
# format_timestamp
# ---------------------------------------------------------------------------


def test_format_timestamp_afternoon() -> None:
    moment = datetime(2026, 10, 19, 15, 4, tzinfo=timezone.utc)

    assert format_timestamp(moment.timestamp()) == "Oct 19, 2026, 3:04 PM"


def test_format_timestamp_midnight_is_twelve_am() -> None:
    moment = datetime(2026, 1, 5, 0, 30, tzinfo=timezone.utc)

    assert format_timestamp(moment.timestamp()) == "Jan 5, 2026, 12:30 AM"


def test_format_timestamp_uses_given_zone() -> None:
    moment = datetime(2026, 10, 19, 15, 4, tzinfo=timezone.utc)

    assert format_timestamp(moment.timestamp(), timezone(timedelta(hours=-4))) == "Oct 19, 2026, 11:04 AM"
    assert format_timestamp(moment.timestamp(), ZoneInfo("UTC")) == "Oct 19, 2026, 3:04 PM"


def test_format_timestamp_missing_value() -> None:
    assert format_timestamp(None) == "N/A"
