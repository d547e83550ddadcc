"""Time-window utilities and upstream query construction.

Functions
---------
- increment_date / month_start / next_month: calendar arithmetic on `YYYY-MM-DD` strings.
- is_valid_date / is_current_month: checks against an injected "now".
- month_window / split_window: unit and sub-window partitioning.
- create_query: query string for the paginated upstream endpoints.

All timestamps are epoch seconds in UTC. Windows are half-open: [start, end).
"""

from __future__ import annotations

import calendar
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from reservoir_sync.constants import PAGE_SIZE
from reservoir_sync.core.errors import ValidationFailure
from reservoir_sync.core.models import SubWindow

DATE_FORMAT = "%Y-%m-%d"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class DateStep:
    """Result of a date increment: calendar day plus its midnight timestamp."""

    date: str
    timestamp: int


def parse_date(value: str) -> date:
    """Parse a `YYYY-MM-DD` string, raising ValidationFailure when malformed."""
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError) as e:
        raise ValidationFailure(f"invalid date {value!r}, expected YYYY-MM-DD") from e


def _midnight(d: date) -> datetime:
    return datetime(d.year, d.month, d.day, tzinfo=UTC)


def _add_months(d: date, months: int) -> date:
    # Clamp the day to the target month length (Jan 31 + 1 month -> Feb 28/29).
    idx = d.year * 12 + (d.month - 1) + months
    year, month = divmod(idx, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def increment_date(
    value: str | int,
    *,
    days: int = 0,
    months: int = 0,
    hours: int = 0,
) -> DateStep:
    """Shift a `YYYY-MM-DD` string (or epoch seconds) by months, days and hours."""
    if isinstance(value, int):
        dt = datetime.fromtimestamp(value, UTC)
    else:
        dt = _midnight(parse_date(value))
    shifted = _add_months(dt.date(), months)
    dt = datetime.combine(shifted, dt.timetz()) + timedelta(days=days, hours=hours)
    return DateStep(date=dt.strftime(DATE_FORMAT), timestamp=int(dt.timestamp()))


def month_start(value: str) -> str:
    """Return the first day of the month of `value`."""
    return parse_date(value).replace(day=1).strftime(DATE_FORMAT)


def next_month(value: str) -> str:
    """Return the first day of the month following `value`."""
    return increment_date(month_start(value), months=1).date


def is_valid_date(value: str | date, now: datetime) -> bool:
    """True when `value` is a well-formed day that has already started."""
    if isinstance(value, date):
        d = value
    else:
        try:
            d = parse_date(value)
        except ValidationFailure:
            return False
    return d <= now.astimezone(UTC).date()


def is_same_month(a: str, b: str) -> bool:
    return month_start(a) == month_start(b)


def is_current_month(value: str, now: datetime) -> bool:
    return month_start(value) == now.astimezone(UTC).date().replace(day=1).strftime(DATE_FORMAT)


def month_window(value: str) -> tuple[int, int]:
    """Return [start, end) covering `value`'s day up to the first day of the next month."""
    start = _midnight(parse_date(value))
    end = _midnight(parse_date(next_month(value)))
    return int(start.timestamp()), int(end.timestamp())


def split_window(start: int, end: int, parts: int) -> list[SubWindow]:
    """Split [start, end) into `parts` contiguous, disjoint, equal-length sub-windows.

    The integer remainder is absorbed by the last sub-window.
    """
    if parts < 1:
        raise ValidationFailure("parts must be >= 1")
    if end < start:
        raise ValidationFailure("window end must be >= start")
    span = (end - start) // parts
    out: list[SubWindow] = []
    for i in range(parts):
        a = start + span * i
        b = end if i == parts - 1 else a + span
        out.append(SubWindow(start=a, end=b))
    return out


def format_timestamp(ts: int) -> str:
    """ISO-8601 UTC rendering of epoch seconds (used as worker dates)."""
    return datetime.fromtimestamp(ts, UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: str) -> int:
    """Parse a worker date (ISO-8601) or a plain `YYYY-MM-DD` into epoch seconds."""
    try:
        dt = datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationFailure(f"invalid timestamp {value!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp())


def to_epoch_seconds(value: str | int | float | None) -> int | None:
    """Normalize a server-reported time (ISO string or epoch) to epoch seconds."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return parse_timestamp(value)
    except ValidationFailure:
        return None


def create_query(
    continuation: str = "",
    contracts: Iterable[str] = (),
    start_timestamp: int | None = None,
    end_timestamp: int | None = None,
    *,
    limit: int = PAGE_SIZE,
) -> str:
    """Build the query string for one page request.

    Results are ordered by `updated_at` ascending and include soft-deleted items.
    """
    queries: list[str] = [
        "orderBy=updated_at",
        "sortDirection=asc",
        "includeDeleted=true",
        f"limit={limit}",
    ]
    if start_timestamp is not None:
        queries.append(f"startTimestamp={start_timestamp}")
    if end_timestamp is not None:
        queries.append(f"endTimestamp={end_timestamp}")
    if continuation:
        queries.append(f"continuation={continuation}")
    for contract in contracts:
        queries.append(f"contract={contract}")
    return "&".join(queries)
