"""Service layer exports."""

from sheltersync.services import (
    admin_service,
    adoption_service,
    auth_service,
    bootstrap_service,
    notification_service,
    pet_service,
    user_service,
)

__all__ = [
    "admin_service",
    "adoption_service",
    "auth_service",
    "bootstrap_service",
    "notification_service",
    "pet_service",
    "user_service",
]
