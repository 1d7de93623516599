"""Schema exports."""

from sheltersync.schemas.admin import PlatformStats, RequestCounts, UserCounts
from sheltersync.schemas.adoption import (
    AdopterInfo,
    AdoptionDecision,
    AdoptionNoteCreate,
    AdoptionNoteRead,
    AdoptionRequestCreate,
    AdoptionRequestPage,
    AdoptionRequestRead,
    AdoptionStatistics,
    BulkRespondRequest,
    BulkRespondResult,
)
from sheltersync.schemas.auth import (
    LoginRequest,
    LoginResponse,
    PasswordChange,
    PasswordResetConfirm,
    PasswordResetRequest,
    Token,
)
from sheltersync.schemas.common import MessageResponse, Pagination, UserSummary
from sheltersync.schemas.pet import (
    MarkAdoptedRequest,
    PetCreate,
    PetFilters,
    PetPage,
    PetRead,
    PetStatistics,
    PetUpdate,
)
from sheltersync.schemas.user import (
    RoleUpdate,
    UserCreate,
    UserPage,
    UserRead,
    UserUpdate,
)

__all__ = [
    "AdopterInfo",
    "AdoptionDecision",
    "AdoptionNoteCreate",
    "AdoptionNoteRead",
    "AdoptionRequestCreate",
    "AdoptionRequestPage",
    "AdoptionRequestRead",
    "AdoptionStatistics",
    "BulkRespondRequest",
    "BulkRespondResult",
    "LoginRequest",
    "LoginResponse",
    "MarkAdoptedRequest",
    "MessageResponse",
    "Pagination",
    "PasswordChange",
    "PasswordResetConfirm",
    "PasswordResetRequest",
    "PetCreate",
    "PetFilters",
    "PetPage",
    "PetRead",
    "PetStatistics",
    "PetUpdate",
    "PlatformStats",
    "RequestCounts",
    "RoleUpdate",
    "Token",
    "UserCounts",
    "UserCreate",
    "UserPage",
    "UserRead",
    "UserSummary",
    "UserUpdate",
]
