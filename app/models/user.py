"""User account model.

This module contains the user account together with the
subscription state mirrored from the billing provider.
"""
from __future__ import annotations

from datetime import datetime

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from .base import db

TIER_FREE = "free"
TIER_PRO = "pro"
SUBSCRIPTION_TIERS = (TIER_FREE, TIER_PRO)

DEFAULT_HASH_METHOD = "scrypt"


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)
    currency = db.Column(db.String(3), default="USD", nullable=False)
    subscription_tier = db.Column(db.String(20), default=TIER_FREE, nullable=False)
    subscription_status = db.Column(db.String(30))
    stripe_customer_id = db.Column(db.String(255), index=True)
    subscription_id = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    wines = db.relationship(
        "Wine",
        back_populates="owner",
        cascade="all, delete-orphan",
    )

    @property
    def is_pro(self) -> bool:
        return self.subscription_tier == TIER_PRO

    @property
    def is_free_tier(self) -> bool:
        return not self.is_pro

    def set_password(self, password: str, method: str = DEFAULT_HASH_METHOD) -> None:
        self.password = generate_password_hash(password, method=method)

    def check_password(self, password: str) -> bool:
        if not self.password:
            return False
        return check_password_hash(self.password, password)

    def needs_rehash(self, method: str = DEFAULT_HASH_METHOD) -> bool:
        """Return True when the stored hash was produced by another algorithm."""

        stored_method = (self.password or "").split("$", 1)[0].split(":", 1)[0]
        return stored_method != method.split(":", 1)[0]

    def __repr__(self) -> str:
        return f"<User {self.email}>"
