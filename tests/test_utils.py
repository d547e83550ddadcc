from datetime import UTC, datetime

import pytest

from reservoir_sync.core.errors import ValidationFailure
from reservoir_sync.core.models import SubWindow
from reservoir_sync.orchestration.utils import (
    create_query,
    format_timestamp,
    increment_date,
    is_current_month,
    is_same_month,
    is_valid_date,
    month_start,
    month_window,
    next_month,
    parse_date,
    parse_timestamp,
    split_window,
    to_epoch_seconds,
)

NOW = datetime(2023, 3, 1, 12, 0, tzinfo=UTC)


def _ts(*args: int) -> int:
    return int(datetime(*args, tzinfo=UTC).timestamp())


def test_increment_date_months_clamps_day() -> None:
    step = increment_date("2023-01-31", months=1)
    assert step.date == "2023-02-28"
    assert step.timestamp == _ts(2023, 2, 28)


def test_increment_date_days_and_year_rollover() -> None:
    assert increment_date("2023-12-31", days=1).date == "2024-01-01"
    assert increment_date("2023-11-15", months=2).date == "2024-01-15"


def test_increment_date_from_timestamp() -> None:
    assert increment_date(_ts(2023, 1, 1), hours=24).date == "2023-01-02"


def test_month_start_and_next_month() -> None:
    assert month_start("2023-01-15") == "2023-01-01"
    assert next_month("2023-01-15") == "2023-02-01"
    assert next_month("2023-12-10") == "2024-01-01"


def test_parse_date_rejects_malformed() -> None:
    with pytest.raises(ValidationFailure):
        parse_date("2023-13-01")
    with pytest.raises(ValidationFailure):
        parse_date("not-a-date")


def test_is_valid_date() -> None:
    assert is_valid_date("2023-02-01", NOW)
    assert is_valid_date("2023-03-01", NOW)  # today counts
    assert not is_valid_date("2023-03-02", NOW)
    assert not is_valid_date("2023-04-01", NOW)
    assert not is_valid_date("garbage", NOW)


def test_month_checks() -> None:
    assert is_same_month("2023-01-15", "2023-01-31")
    assert not is_same_month("2023-01-15", "2023-02-01")
    assert is_current_month("2023-03-01", NOW)
    assert not is_current_month("2023-02-01", NOW)


def test_month_window_starts_at_given_day() -> None:
    assert month_window("2023-01-15") == (_ts(2023, 1, 15), _ts(2023, 2, 1))
    assert month_window("2023-02-01") == (_ts(2023, 2, 1), _ts(2023, 3, 1))


def test_split_window_is_contiguous_and_covers_range() -> None:
    parts = split_window(0, 10, 3)
    assert parts == [SubWindow(0, 3), SubWindow(3, 6), SubWindow(6, 10)]

    start, end = month_window("2023-01-01")
    parts = split_window(start, end, 4)
    assert parts[0].start == start
    assert parts[-1].end == end
    for a, b in zip(parts, parts[1:]):
        assert a.end == b.start


def test_split_window_rejects_bad_input() -> None:
    with pytest.raises(ValidationFailure):
        split_window(0, 10, 0)
    with pytest.raises(ValidationFailure):
        split_window(10, 0, 2)


def test_timestamp_helpers() -> None:
    ts = _ts(2023, 1, 8, 12)
    assert format_timestamp(ts) == "2023-01-08T12:00:00Z"
    assert parse_timestamp("2023-01-08T12:00:00Z") == ts
    assert parse_timestamp("2023-01-08") == _ts(2023, 1, 8)
    assert to_epoch_seconds("2023-01-08T12:00:00.000Z") == ts
    assert to_epoch_seconds(ts) == ts
    assert to_epoch_seconds(None) is None
    assert to_epoch_seconds("nope") is None


def test_create_query_defaults() -> None:
    assert create_query() == "orderBy=updated_at&sortDirection=asc&includeDeleted=true&limit=1000"


def test_create_query_full_parameter_order() -> None:
    q = create_query("abc", ["0x1", "0x2"], 100, 200)
    assert q == (
        "orderBy=updated_at&sortDirection=asc&includeDeleted=true&limit=1000"
        "&startTimestamp=100&endTimestamp=200&continuation=abc&contract=0x1&contract=0x2"
    )


def test_create_query_open_ended_window() -> None:
    q = create_query(start_timestamp=100, limit=50)
    assert "limit=50" in q
    assert q.endswith("startTimestamp=100")
    assert "endTimestamp" not in q
