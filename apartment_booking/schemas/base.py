from datetime import date
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from apartment_booking.domain.interval import parse_day


class CamelModel(BaseModel):
    """Reads and writes camelCase JSON (startDate, apartmentId, ...)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Accepts "YYYY-MM-DD" or a full ISO timestamp; time-of-day is dropped
Day = Annotated[date, BeforeValidator(parse_day)]
