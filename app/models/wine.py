"""Wine, review and tasting note models.

This module contains the user-owned wine records and
their child entries.
"""
from __future__ import annotations

from datetime import datetime

from .base import db

DEFAULT_BOTTLE_SIZE = "75cl"


class Wine(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    producer = db.Column(db.String(200))
    vintage = db.Column(db.Integer, default=0, nullable=False)
    is_non_vintage = db.Column(db.Boolean, default=False, nullable=False)
    grape = db.Column(db.String(200))
    country = db.Column(db.String(120))
    region = db.Column(db.String(120))
    quantity = db.Column(db.Integer, default=0, nullable=False)
    price = db.Column(db.Float, default=0.0, nullable=False)
    abv = db.Column(db.Float, default=0.0, nullable=False)
    location = db.Column(db.String(120))
    rating = db.Column(db.String(20))
    drinking_window = db.Column(db.String(50))
    notes = db.Column(db.Text)
    image_url = db.Column(db.Text)
    type = db.Column(db.String(50))
    category = db.Column(db.String(80))
    sub_category = db.Column(db.String(80))
    bottle_size = db.Column(db.String(20), default=DEFAULT_BOTTLE_SIZE, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    owner = db.relationship("User", back_populates="wines")
    reviews = db.relationship(
        "Review",
        back_populates="wine",
        cascade="all, delete-orphan",
        order_by="desc(Review.created_at), desc(Review.id)",
    )
    tasting_notes = db.relationship(
        "TastingNote",
        back_populates="wine",
        cascade="all, delete-orphan",
        order_by="desc(TastingNote.date), desc(TastingNote.id)",
    )

    @property
    def vintage_label(self) -> str:
        if self.is_non_vintage or not self.vintage:
            return "NV"
        return str(self.vintage)

    def is_owned_by(self, user) -> bool:
        return user is not None and self.user_id == user.id


class Review(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    wine_id = db.Column(db.Integer, db.ForeignKey("wine.id"), nullable=False, index=True)
    reviewer = db.Column(db.String(120), nullable=False)
    date = db.Column(db.String(20))
    rating = db.Column(db.String(20))
    content = db.Column(db.Text, nullable=False)
    link = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    wine = db.relationship("Wine", back_populates="reviews")


class TastingNote(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    wine_id = db.Column(db.Integer, db.ForeignKey("wine.id"), nullable=False, index=True)
    date = db.Column(db.String(10), nullable=False)
    note = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    wine = db.relationship("Wine", back_populates="tasting_notes")
