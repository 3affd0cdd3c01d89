"""
Idempotent admin bootstrap.

Creates the tables and the admin user if they are missing, then prints a
fresh access token for that user. Running it again only issues a new token.

    python scripts/seed_admin.py admin@example.com --name "Site Admin"
"""
import argparse
import asyncio

from sqlalchemy import select

from apartment_booking.core.security import create_access_token
from apartment_booking.database import AsyncSessionLocal, init_db
from apartment_booking.models import User, UserRole


async def seed_admin(email: str, name: str) -> str:
    await init_db()

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None:
            user = User(email=email, name=name, role=UserRole.ADMIN)
            session.add(user)
            await session.commit()
            await session.refresh(user)
            print(f"✅ Created admin #{user.id}: {email}")
        elif user.role != UserRole.ADMIN:
            user.role = UserRole.ADMIN
            await session.commit()
            print(f"✅ Promoted existing user #{user.id} to admin")
        else:
            print(f"Admin #{user.id} already exists")

        return create_access_token(data={"sub": str(user.id), "role": user.role.value})


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("email", help="Admin email")
    parser.add_argument("--name", default="Admin", help="Display name")
    args = parser.parse_args()

    token = asyncio.run(seed_admin(args.email, args.name))
    print(f"Access token:\n{token}")
