"""Create a local administrator account."""

from __future__ import annotations

import argparse
import asyncio

from sheltersync.core.config import get_settings
from sheltersync.core.security import get_password_hash
from sheltersync.db.session import get_sessionmaker
from sheltersync.models import User, UserRole
from sheltersync.services.user_service import get_user_by_email

EMAIL = "admin@sheltersync.local"
PASSWORD = "Admin123!"


async def main(email: str, password: str) -> None:
    settings = get_settings()
    sessionmaker = get_sessionmaker(settings.database_url)
    async with sessionmaker() as session:
        if await get_user_by_email(session, email) is not None:
            print(f"User {email} already exists")
            return

        session.add(
            User(
                name="Dev Admin",
                email=email.lower(),
                hashed_password=get_password_hash(password),
                role=UserRole.ADMIN,
                email_verified=True,
            )
        )
        await session.commit()
        print(f"Created admin {email} / {password}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", default=EMAIL)
    parser.add_argument("--password", default=PASSWORD)
    args = parser.parse_args()
    asyncio.run(main(args.email, args.password))
