"""Scorecard - API Routers"""
from .auth import router as auth_router
from .upload import router as evidence_router
from .assignments import router as assignments_router
from .indicators import router as indicators_router
from .notifications import router as notifications_router

__all__ = [
    "auth_router",
    "evidence_router",
    "assignments_router",
    "indicators_router",
    "notifications_router",
]
