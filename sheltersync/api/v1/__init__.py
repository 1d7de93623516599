"""Versioned API router."""

from fastapi import APIRouter

from . import adoptions, admin, auth, health, pets

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(pets.router, prefix="/pets", tags=["pets"])
router.include_router(adoptions.router, prefix="/adoptions", tags=["adoptions"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])

__all__ = ["router"]
