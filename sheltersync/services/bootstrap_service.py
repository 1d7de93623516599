"""Bootstrap helpers for default data."""

from __future__ import annotations

import logging

from sheltersync.core.config import get_settings
from sheltersync.core.security import get_password_hash
from sheltersync.db.session import get_sessionmaker
from sheltersync.models import User, UserRole
from sheltersync.services.user_service import get_user_by_email

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NAME = "Platform Admin"


async def ensure_default_admin() -> User | None:
    """Create the configured admin account if it does not yet exist."""

    settings = get_settings()
    if not settings.default_admin_email or not settings.default_admin_password:
        return None

    sessionmaker = get_sessionmaker(settings.database_url)
    async with sessionmaker() as session:
        existing = await get_user_by_email(session, settings.default_admin_email)
        if existing is not None:
            return existing

        admin = User(
            name=DEFAULT_ADMIN_NAME,
            email=settings.default_admin_email.lower(),
            hashed_password=get_password_hash(settings.default_admin_password),
            role=UserRole.ADMIN,
            email_verified=True,
        )
        session.add(admin)
        await session.commit()
        await session.refresh(admin)
        logger.info("Created default admin %s", admin.email)
        return admin
