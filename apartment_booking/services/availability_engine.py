"""
Availability engine: merges bookings, availability blocks and blocked dates
into one view of an apartment's calendar.

All conflict and calendar questions go through here, so the half-open
overlap rule lives in exactly one place. The engine only reads a snapshot
from its sources at call time; it keeps no state between calls.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from apartment_booking.domain.calendar import get_month_dates
from apartment_booking.domain.errors import ConflictError
from apartment_booking.domain.interval import ONE_DAY, Interval
from apartment_booking.services.occupancy import (
    AvailabilityBlockSource,
    BlockedDateSource,
    BookingSource,
    Occupancy,
    OccupancyKind,
    OccupancySource,
)

logger = logging.getLogger(__name__)

# (kind, record id) of a record that must not conflict with itself
Exclusion = tuple[OccupancyKind, int]


@dataclass
class CalendarDay:
    day: date
    available: bool
    kinds: list[OccupancyKind] = field(default_factory=list)


def first_conflict(
    candidate: Interval, occupancies: Iterable[Occupancy]
) -> Optional[Occupancy]:
    for occupancy in occupancies:
        if occupancy.interval.overlaps(candidate):
            return occupancy
    return None


def occupied_days(
    occupancies: Iterable[Occupancy], window: Optional[Interval] = None
) -> list[date]:
    """Sorted, de-duplicated days covered by any occupancy (inside window)."""
    days: set[date] = set()
    for occupancy in occupancies:
        interval = occupancy.interval
        if window is not None:
            interval = interval.clip(window)
            if interval is None:
                continue
        days.update(interval.days())
    return sorted(days)


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """Union of intervals; touching intervals are joined."""
    merged: list[Interval] = []
    for interval in sorted(intervals):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            if interval.end > last.end:
                merged[-1] = Interval(last.start, interval.end)
        else:
            merged.append(interval)
    return merged


class AvailabilityEngine:
    def __init__(
        self,
        bookings: OccupancySource,
        availability_blocks: OccupancySource,
        blocked_dates: OccupancySource,
    ) -> None:
        # Scan order is part of the contract: conflicts are reported from the
        # first source that has one.
        self.sources: Sequence[OccupancySource] = (
            bookings,
            availability_blocks,
            blocked_dates,
        )

    @classmethod
    def for_session(cls, session: AsyncSession) -> "AvailabilityEngine":
        return cls(
            BookingSource(session),
            AvailabilityBlockSource(session),
            BlockedDateSource(session),
        )

    async def snapshot(
        self,
        apartment_id: Optional[int],
        window: Optional[Interval] = None,
        exclude: Optional[Exclusion] = None,
    ) -> list[Occupancy]:
        occupancies: list[Occupancy] = []
        for source in self.sources:
            occupancies.extend(
                await source.occupied(
                    apartment_id, window=window, exclude_id=self._excluded_id(source, exclude)
                )
            )
        return occupancies

    async def find_conflict(
        self,
        apartment_id: Optional[int],
        candidate: Interval,
        exclude: Optional[Exclusion] = None,
    ) -> Optional[Occupancy]:
        """First occupancy overlapping candidate, in source scan order."""
        for source in self.sources:
            occupancies = await source.occupied(
                apartment_id,
                window=candidate,
                exclude_id=self._excluded_id(source, exclude),
            )
            conflict = first_conflict(candidate, occupancies)
            if conflict is not None:
                return conflict
        return None

    async def is_available(self, apartment_id: Optional[int], candidate: Interval) -> bool:
        return await self.find_conflict(apartment_id, candidate) is None

    async def ensure_available(
        self,
        apartment_id: Optional[int],
        candidate: Interval,
        exclude: Optional[Exclusion] = None,
    ) -> None:
        conflict = await self.find_conflict(apartment_id, candidate, exclude=exclude)
        if conflict is not None:
            logger.info(
                "Conflict for apartment %s on %s - %s: %s #%s",
                apartment_id if apartment_id is not None else "*",
                candidate.start,
                candidate.end,
                conflict.kind.value,
                conflict.record_id,
            )
            raise ConflictError(conflict)

    async def unavailable_days(
        self, apartment_id: int, window: Optional[Interval] = None
    ) -> list[date]:
        return occupied_days(await self.snapshot(apartment_id, window=window), window)

    async def month_calendar(self, apartment_id: int, year: int, month: int) -> list[CalendarDay]:
        dates = get_month_dates(year, month)
        window = Interval(dates[0], dates[-1] + ONE_DAY)
        occupancies = await self.snapshot(apartment_id, window=window)

        calendar: list[CalendarDay] = []
        for day in dates:
            kinds: list[OccupancyKind] = []
            for occupancy in occupancies:
                if occupancy.interval.contains(day) and occupancy.kind not in kinds:
                    kinds.append(occupancy.kind)
            calendar.append(CalendarDay(day=day, available=not kinds, kinds=kinds))
        return calendar

    async def free_intervals(self, apartment_id: int, window: Interval) -> list[Interval]:
        """Maximal free gaps inside window."""
        occupancies = await self.snapshot(apartment_id, window=window)
        busy = merge_intervals(
            clipped
            for clipped in (o.interval.clip(window) for o in occupancies)
            if clipped is not None
        )

        free: list[Interval] = []
        cursor = window.start
        for interval in busy:
            if cursor < interval.start:
                free.append(Interval(cursor, interval.start))
            cursor = max(cursor, interval.end)
        if cursor < window.end:
            free.append(Interval(cursor, window.end))
        return free

    @staticmethod
    def _excluded_id(source: OccupancySource, exclude: Optional[Exclusion]) -> Optional[int]:
        if exclude is None:
            return None
        kind, record_id = exclude
        return record_id if source.kind == kind else None
