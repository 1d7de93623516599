"""Seed a shelter, two adopters and a handful of pets for local development."""

from __future__ import annotations

import asyncio

from sheltersync.core.config import get_settings
from sheltersync.core.security import get_password_hash
from sheltersync.db.session import get_sessionmaker
from sheltersync.models import Pet, PetEnergy, PetSize, User, UserRole
from sheltersync.services.user_service import get_user_by_email

PASSWORD = "Password123!"

USERS = [
    ("Happy Tails Shelter", "shelter@sheltersync.local", UserRole.SHELTER, "Portland, OR"),
    ("Alex Adopter", "alex@sheltersync.local", UserRole.ADOPTER, "Portland, OR"),
    ("Sam Adopter", "sam@sheltersync.local", UserRole.ADOPTER, "Salem, OR"),
]

PETS = [
    {
        "name": "Biscuit",
        "breed": "Labrador Retriever",
        "age": 2,
        "size": PetSize.LARGE,
        "energy": PetEnergy.HIGH,
        "vaccinated": True,
        "good_with_kids": True,
        "featured": True,
    },
    {
        "name": "Mochi",
        "breed": "Domestic Shorthair",
        "age": 0,
        "size": PetSize.SMALL,
        "energy": PetEnergy.MEDIUM,
        "vaccinated": True,
        "house_trained": True,
    },
    {
        "name": "Duke",
        "breed": "German Shepherd",
        "age": 8,
        "size": PetSize.EXTRA_LARGE,
        "energy": PetEnergy.LOW,
        "spayed_neutered": True,
        "good_with_pets": True,
        "health_notes": "Mild arthritis, on joint supplements.",
    },
]


async def main() -> None:
    settings = get_settings()
    sessionmaker = get_sessionmaker(settings.database_url)
    async with sessionmaker() as session:
        accounts: dict[str, User] = {}
        for name, email, role, location in USERS:
            user = await get_user_by_email(session, email)
            if user is None:
                user = User(
                    name=name,
                    email=email,
                    hashed_password=get_password_hash(PASSWORD),
                    role=role,
                    location=location,
                    email_verified=True,
                )
                session.add(user)
            accounts[email] = user
        await session.flush()

        shelter = accounts["shelter@sheltersync.local"]
        for data in PETS:
            session.add(Pet(shelter_id=shelter.id, location=shelter.location, **data))
        await session.commit()
        print(f"Seeded {len(USERS)} users and {len(PETS)} pets (password {PASSWORD})")


if __name__ == "__main__":
    asyncio.run(main())
