"""Models package - centralized entry point for all database models.

Usage:
    from app.models import db, User, Wine, Review, TastingNote
"""
from __future__ import annotations

from .base import db
from .user import User, TIER_FREE, TIER_PRO, SUBSCRIPTION_TIERS
from .wine import Wine, Review, TastingNote, DEFAULT_BOTTLE_SIZE

__all__ = [
    "db",
    "User", "TIER_FREE", "TIER_PRO", "SUBSCRIPTION_TIERS",
    "Wine", "Review", "TastingNote", "DEFAULT_BOTTLE_SIZE",
]
