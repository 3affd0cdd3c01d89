"""
Half-open calendar intervals.

An Interval covers the days [start, end): the start day is occupied, the end
day is not. Checkout on day X and checkin on day X therefore never conflict.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator, Union

from apartment_booking.domain.errors import InvalidRangeError

DayLike = Union[date, datetime, str]

ONE_DAY = timedelta(days=1)


def parse_day(value: DayLike) -> date:
    """
    Normalize a bound to a calendar day.

    Accepts date, datetime (time-of-day dropped) and ISO strings,
    either "YYYY-MM-DD" or a full timestamp such as "2024-06-01T00:00:00Z".
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            # fromisoformat() only understands the "Z" suffix from 3.11 on
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise InvalidRangeError(f"Invalid date: {value!r}") from None
    raise InvalidRangeError(f"Invalid date: {value!r}")


def validate(start: date, end: date) -> None:
    if start >= end:
        raise InvalidRangeError("End date must be after start date")


def overlaps(a: "Interval", b: "Interval") -> bool:
    return a.start < b.end and b.start < a.end


def days_between(start: date, end: date) -> Iterator[date]:
    """Every day in [start, end)."""
    current = start
    while current < end:
        yield current
        current += ONE_DAY


@dataclass(frozen=True, order=True)
class Interval:
    start: date
    end: date

    def __post_init__(self) -> None:
        validate(self.start, self.end)

    @classmethod
    def parse(cls, start: DayLike, end: DayLike) -> "Interval":
        return cls(parse_day(start), parse_day(end))

    @classmethod
    def single_day(cls, day: date) -> "Interval":
        return cls(day, day + ONE_DAY)

    @property
    def nights(self) -> int:
        return (self.end - self.start).days

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self, other)

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def days(self) -> Iterator[date]:
        return days_between(self.start, self.end)

    def clip(self, window: "Interval") -> "Interval | None":
        """Intersection with window, or None when they do not overlap."""
        if not self.overlaps(window):
            return None
        return Interval(max(self.start, window.start), min(self.end, window.end))
