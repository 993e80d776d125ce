"""Blueprint pour l'abonnement Connoisseur (Stripe Checkout, portail, webhook)."""

from flask import Blueprint, current_app, redirect, request
from flask_login import current_user, login_required

from app.exceptions import BillingError, ValidationError
from app.subscriptions import dispatch_event
from config import Config
from services.stripe_client import SignatureVerificationError, StripeError, construct_event


subscription_bp = Blueprint('subscription', __name__)

MAX_WEBHOOK_BODY = 64 * 1024


def _stripe_client():
    return current_app.extensions['stripe_client']


def _domain():
    return Config.normalized_domain(current_app.config.get('DOMAIN'))


@subscription_bp.route('/create-checkout-session', methods=['GET', 'POST'])
@login_required
def create_checkout_session():
    """Crée une session Stripe Checkout et redirige l'utilisateur vers le paiement."""
    domain = _domain()
    try:
        checkout = _stripe_client().create_checkout_session(
            price_id=current_app.config.get('STRIPE_PRICE_ID'),
            customer_email=current_user.email,
            client_reference_id=str(current_user.id),
            success_url=f"{domain}/settings?success=true",
            cancel_url=f"{domain}/settings?canceled=true",
        )
    except StripeError as exc:
        current_app.logger.error("Création de la session Checkout impossible: %s", exc)
        raise BillingError("Le service de paiement est indisponible. Réessayez plus tard.") from exc

    return redirect(checkout['url'], code=303)


@subscription_bp.route('/create-portal-session', methods=['GET', 'POST'])
@login_required
def create_portal_session():
    """Redirige vers le portail de facturation Stripe."""
    if not current_user.stripe_customer_id:
        raise ValidationError("Aucun abonnement associé à ce compte.")

    try:
        portal = _stripe_client().create_portal_session(
            customer_id=current_user.stripe_customer_id,
            return_url=f"{_domain()}/settings",
        )
    except StripeError as exc:
        current_app.logger.error("Création de la session portail impossible: %s", exc)
        raise BillingError("Le service de paiement est indisponible. Réessayez plus tard.") from exc

    return redirect(portal['url'], code=303)


@subscription_bp.route('/webhook', methods=['POST'])
def webhook():
    """Reçoit les événements Stripe et met à jour l'offre des utilisateurs."""
    if request.content_length is not None and request.content_length > MAX_WEBHOOK_BODY:
        return 'Payload too large', 413

    payload = request.get_data(cache=False)
    if len(payload) > MAX_WEBHOOK_BODY:
        return 'Payload too large', 413

    try:
        event = construct_event(
            payload,
            request.headers.get('Stripe-Signature', ''),
            current_app.config.get('STRIPE_WEBHOOK_SECRET'),
            tolerance=current_app.config.get('STRIPE_WEBHOOK_TOLERANCE', 300),
        )
    except SignatureVerificationError as exc:
        current_app.logger.warning("Webhook Stripe rejeté: %s", exc)
        return 'Invalid signature', 400

    current_app.logger.info("Webhook Stripe reçu: %s", event.get('type'))
    dispatch_event(event)
    return '', 200
