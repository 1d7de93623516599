"""Schemas for the admin console."""

from __future__ import annotations

from pydantic import BaseModel


class UserCounts(BaseModel):
    total: int = 0
    adopter: int = 0
    shelter: int = 0
    admin: int = 0


class RequestCounts(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    withdrawn: int = 0


class PlatformStats(BaseModel):
    """Platform-wide totals shown on the admin dashboard."""

    users: UserCounts
    total_pets: int
    adoption_requests: RequestCounts
