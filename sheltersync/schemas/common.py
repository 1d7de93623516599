"""Shared schema fragments."""

from __future__ import annotations

import math
import uuid

from pydantic import BaseModel, ConfigDict


class Pagination(BaseModel):
    """Page metadata returned alongside list results."""

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class UserSummary(BaseModel):
    """Public view of an account embedded in other resources."""

    id: uuid.UUID
    name: str
    email: str | None = None
    location: str | None = None

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str
