from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from apartment_booking.core.security import decode_access_token
from apartment_booking.database import get_db
from apartment_booking.domain.errors import InvalidRangeError
from apartment_booking.domain.interval import Interval
from apartment_booking.models import User, UserRole

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the user from a Bearer JWT.
    Payload: {"sub": "<user id>", "role": "USER" | "ADMIN"}.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid token"
        )

    payload = decode_access_token(credentials.credentials)
    if not payload or payload.get("sub") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired or invalid"
        )

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired or invalid"
        ) from None

    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


def query_interval(start_date: Optional[str], end_date: Optional[str]) -> Interval:
    """Build an Interval from raw query parameters; both are required."""
    if not start_date or not end_date:
        raise InvalidRangeError("Start date and end date are required")
    return Interval.parse(start_date, end_date)
