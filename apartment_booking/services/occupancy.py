"""
Occupancy sources: the three kinds of records that make calendar days
unavailable for an apartment.

Each source answers the same question, "which intervals are occupied for
this apartment?", so the availability engine can scan them uniformly.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from apartment_booking.domain.interval import Interval
from apartment_booking.models import (
    OCCUPYING_STATUSES,
    AvailabilityBlock,
    BlockedDate,
    Booking,
)


class OccupancyKind(str, Enum):
    BOOKING = "booking"
    AVAILABILITY_BLOCK = "availability_block"
    BLOCKED_DATE = "blocked_date"


@dataclass(frozen=True)
class Occupancy:
    kind: OccupancyKind
    record_id: int
    # None for a global blocked date
    apartment_id: Optional[int]
    interval: Interval


class OccupancySource(Protocol):
    kind: OccupancyKind

    async def occupied(
        self,
        apartment_id: Optional[int],
        window: Optional[Interval] = None,
        exclude_id: Optional[int] = None,
    ) -> list[Occupancy]:
        """
        Occupied intervals for apartment_id, ordered by (start, id).

        apartment_id=None returns the fleet-wide view. window keeps only
        records overlapping it; exclude_id skips one record of this kind.
        """
        ...


class _SqlSource:
    """Shared query shape for the SQLAlchemy-backed sources."""

    kind: OccupancyKind
    model: type

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _scope(self, stmt, apartment_id: Optional[int]):
        if apartment_id is None:
            return stmt
        return stmt.where(self.model.apartment_id == apartment_id)

    async def occupied(
        self,
        apartment_id: Optional[int],
        window: Optional[Interval] = None,
        exclude_id: Optional[int] = None,
    ) -> list[Occupancy]:
        model = self.model
        stmt = self._scope(select(model), apartment_id)
        if window is not None:
            # Half-open overlap, same predicate as Interval.overlaps
            stmt = stmt.where(model.start_date < window.end, model.end_date > window.start)
        if exclude_id is not None:
            stmt = stmt.where(model.id != exclude_id)
        stmt = stmt.order_by(model.start_date, model.id)

        result = await self.session.execute(stmt)
        return [
            Occupancy(
                kind=self.kind,
                record_id=row.id,
                apartment_id=row.apartment_id,
                interval=Interval(row.start_date, row.end_date),
            )
            for row in result.scalars().all()
        ]


class BookingSource(_SqlSource):
    """Bookings whose status reserves days; cancelled ones never occupy."""

    kind = OccupancyKind.BOOKING
    model = Booking

    def _scope(self, stmt, apartment_id: Optional[int]):
        stmt = super()._scope(stmt, apartment_id)
        return stmt.where(Booking.status.in_(OCCUPYING_STATUSES))


class AvailabilityBlockSource(_SqlSource):
    kind = OccupancyKind.AVAILABILITY_BLOCK
    model = AvailabilityBlock

    def _scope(self, stmt, apartment_id: Optional[int]):
        stmt = super()._scope(stmt, apartment_id)
        return stmt.where(AvailabilityBlock.is_available.is_(False))


class BlockedDateSource(_SqlSource):
    """Blocked dates scoped to the apartment plus global ones."""

    kind = OccupancyKind.BLOCKED_DATE
    model = BlockedDate

    def _scope(self, stmt, apartment_id: Optional[int]):
        if apartment_id is None:
            return stmt
        return stmt.where(
            or_(BlockedDate.apartment_id == apartment_id, BlockedDate.apartment_id.is_(None))
        )
