import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from apartment_booking.domain.errors import NotFoundError, PermissionDeniedError
from apartment_booking.models import (
    Apartment,
    AvailabilityBlock,
    BlockedDate,
    Booking,
    User,
    UserRole,
)
from apartment_booking.schemas.apartment import ApartmentCreate, ApartmentUpdate

logger = logging.getLogger(__name__)


def can_manage(apartment: Apartment, user: User) -> bool:
    return apartment.owner_id == user.id or user.role == UserRole.ADMIN


class ApartmentService:
    @staticmethod
    async def get_all_apartments(db: AsyncSession) -> List[Apartment]:
        result = await db.execute(select(Apartment).order_by(Apartment.id))
        return list(result.scalars().all())

    @staticmethod
    async def get_apartment_by_id(db: AsyncSession, apartment_id: int) -> Optional[Apartment]:
        return await db.get(Apartment, apartment_id)

    @staticmethod
    async def require_apartment(db: AsyncSession, apartment_id: int) -> Apartment:
        apartment = await db.get(Apartment, apartment_id)
        if apartment is None:
            raise NotFoundError("Apartment not found")
        return apartment

    @staticmethod
    async def create_apartment(
        db: AsyncSession, owner: User, apartment_in: ApartmentCreate
    ) -> Apartment:
        db_apartment = Apartment(owner_id=owner.id, **apartment_in.model_dump())
        db.add(db_apartment)
        await db.commit()
        await db.refresh(db_apartment)
        logger.info("Apartment #%s created by user %s", db_apartment.id, owner.id)
        return db_apartment

    @staticmethod
    async def update_apartment(
        db: AsyncSession, apartment_id: int, user: User, apartment_in: ApartmentUpdate
    ) -> Apartment:
        db_apartment = await ApartmentService.require_apartment(db, apartment_id)
        if not can_manage(db_apartment, user):
            raise PermissionDeniedError("Not allowed")

        # model_dump(exclude_unset=True) keeps partial updates partial
        for key, value in apartment_in.model_dump(exclude_unset=True).items():
            setattr(db_apartment, key, value)

        await db.commit()
        await db.refresh(db_apartment)
        return db_apartment

    @staticmethod
    async def delete_apartment(db: AsyncSession, apartment_id: int, user: User) -> None:
        db_apartment = await ApartmentService.require_apartment(db, apartment_id)
        if not can_manage(db_apartment, user):
            raise PermissionDeniedError("Not allowed")

        # SQLite does not enforce ON DELETE CASCADE unless foreign keys are enabled
        for model in (Booking, AvailabilityBlock, BlockedDate):
            await db.execute(delete(model).where(model.apartment_id == apartment_id))
        await db.delete(db_apartment)
        await db.commit()
        logger.info("Apartment #%s deleted by user %s", apartment_id, user.id)
