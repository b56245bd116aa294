"""Half-open date ranges and reporting periods."""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from adspace.core.exceptions import InvalidDateRange


def days_between(start: date, end: date) -> int:
    """Whole days from `start` to `end` (negative if end is earlier)."""
    return (end - start).days


def local_today(timezone: str, now: datetime | None = None) -> date:
    """Calendar day in `timezone` at `now` (default: the current instant)."""
    return (now or datetime.now(ZoneInfo(timezone))).astimezone(ZoneInfo(timezone)).date()


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """True if [start_a, end_a) and [start_b, end_b) share at least one day."""
    return start_a < end_b and start_b < end_a


def overlap_days(start_a: date, end_a: date, start_b: date, end_b: date) -> int:
    """Number of days shared by two half-open ranges."""
    return max(0, (min(end_a, end_b) - max(start_a, start_b)).days)


@dataclass(frozen=True)
class ReportingPeriod:
    """Reporting window [start, end)."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidDateRange("Reporting period end must be after its start")

    @classmethod
    def for_month(cls, year: int, month: int) -> "ReportingPeriod":
        _, last_day = monthrange(year, month)
        start = date(year, month, 1)
        return cls(start=start, end=start + timedelta(days=last_day))

    @classmethod
    def previous_month(cls, today: date) -> "ReportingPeriod":
        last_of_previous = today.replace(day=1) - timedelta(days=1)
        return cls.for_month(last_of_previous.year, last_of_previous.month)

    @property
    def days(self) -> int:
        return days_between(self.start, self.end)

    def intersects(self, start: date, end: date) -> bool:
        return ranges_overlap(self.start, self.end, start, end)

    def days_within(self, start: date, end: date) -> int:
        return overlap_days(self.start, self.end, start, end)
