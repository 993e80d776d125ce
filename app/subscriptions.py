"""Mise à jour de l'offre des utilisateurs à partir des événements Stripe."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from app.models import TIER_FREE, TIER_PRO, User, db

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = {"active", "trialing"}
LAPSED_STATUSES = {"canceled", "unpaid"}


def _object_id(value: Any) -> Optional[str]:
    """Les références Stripe sont soit un identifiant, soit un objet développé."""
    if isinstance(value, dict):
        return value.get("id")
    return value or None


def _user_for_customer(customer_id: Optional[str]) -> Optional[User]:
    if not customer_id:
        return None
    return User.query.filter_by(stripe_customer_id=customer_id).first()


def handle_checkout_session_completed(session: dict) -> Optional[User]:
    """Passe l'utilisateur référencé par la session de paiement en offre pro."""
    reference = session.get("client_reference_id")
    try:
        user_id = int(reference)
    except (TypeError, ValueError):
        logger.warning("Checkout session without a valid client reference: %r", reference)
        return None

    user = db.session.get(User, user_id)
    if user is None:
        logger.warning("User not found for ID %s", user_id)
        return None

    # Une session sans client ni abonnement conserve les références connues
    user.stripe_customer_id = _object_id(session.get("customer")) or user.stripe_customer_id
    user.subscription_id = _object_id(session.get("subscription")) or user.subscription_id
    user.subscription_tier = TIER_PRO
    user.subscription_status = "active"
    db.session.commit()
    logger.info("User %s upgraded to Pro", user.id)
    return user


def handle_subscription_updated(subscription: dict) -> Optional[User]:
    """Recopie le statut de l'abonnement et ajuste l'offre en conséquence.

    Les statuts intermédiaires (``past_due``, ``incomplete``...) conservent
    l'offre courante.
    """
    customer_id = _object_id(subscription.get("customer"))
    user = _user_for_customer(customer_id)
    if user is None:
        logger.warning("User not found for customer ID %s", customer_id)
        return None

    status = subscription.get("status") or ""
    user.subscription_status = status
    if status in ACTIVE_STATUSES:
        user.subscription_tier = TIER_PRO
    elif status in LAPSED_STATUSES:
        user.subscription_tier = TIER_FREE
    db.session.commit()
    logger.info("Subscription of user %s is now %s (%s)", user.id, status, user.subscription_tier)
    return user


def handle_subscription_deleted(subscription: dict) -> Optional[User]:
    """Repasse l'utilisateur en offre gratuite."""
    customer_id = _object_id(subscription.get("customer"))
    user = _user_for_customer(customer_id)
    if user is None:
        logger.warning("User not found for customer ID %s", customer_id)
        return None

    user.subscription_tier = TIER_FREE
    user.subscription_status = "canceled"
    user.subscription_id = None
    db.session.commit()
    logger.info("User %s downgraded to Free", user.id)
    return user


EVENT_HANDLERS: dict[str, Callable[[dict], Optional[User]]] = {
    "checkout.session.completed": handle_checkout_session_completed,
    "customer.subscription.updated": handle_subscription_updated,
    "customer.subscription.deleted": handle_subscription_deleted,
}


def dispatch_event(event: dict) -> Optional[User]:
    """Applique un événement Stripe vérifié. Les types inconnus sont ignorés."""
    event_type = event.get("type")
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info("Ignoring Stripe event %s", event_type)
        return None

    data_object = (event.get("data") or {}).get("object") or {}
    return handler(data_object)
