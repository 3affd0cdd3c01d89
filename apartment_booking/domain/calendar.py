import calendar
import datetime

from apartment_booking.domain.errors import InvalidRangeError


def get_month_dates(year: int, month: int) -> list[datetime.date]:
    # December 9999 has no day after its last one to close the month window
    if (
        not 1 <= month <= 12
        or not datetime.MINYEAR <= year <= datetime.MAXYEAR
        or (year, month) == (datetime.MAXYEAR, 12)
    ):
        raise InvalidRangeError(f"Invalid month: {year}-{month}")
    _, days_in_month = calendar.monthrange(year, month)
    return [
        datetime.date(year, month, day)
        for day in range(1, days_in_month + 1)
    ]
