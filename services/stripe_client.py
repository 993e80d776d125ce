"""Utility for interacting with the Stripe billing API."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from typing import Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class StripeError(Exception):
    """Raised when the Stripe API rejects a request or cannot be reached."""


class SignatureVerificationError(StripeError):
    """Raised when a webhook payload does not carry a valid signature."""


class StripeClient:
    """Thin wrapper around the Stripe REST API.

    Like the other HTTP clients of the project the client relies on ``requests``
    instead of the official SDK. Only the two endpoints used by the subscription
    flow are covered: Checkout sessions and billing-portal sessions.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 15,
    ) -> None:
        self.api_key = (api_key or "").strip() or None
        self.api_base = (api_base or "https://api.stripe.com").rstrip("/")
        self.timeout = timeout

        self._session = session or requests.Session()

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_config(cls, config: Dict[str, Optional[str]]) -> "StripeClient":
        """Instantiate a client from a Flask app configuration mapping."""

        return cls(
            api_key=config.get("STRIPE_SECRET_KEY"),
            api_base=config.get("STRIPE_API_BASE"),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def create_checkout_session(
        self,
        *,
        price_id: str,
        customer_email: str,
        client_reference_id: str,
        success_url: str,
        cancel_url: str,
    ) -> dict:
        """Create a subscription-mode Checkout session and return it."""

        return self._post(
            "/v1/checkout/sessions",
            {
                "mode": "subscription",
                "customer_email": customer_email,
                "client_reference_id": client_reference_id,
                "success_url": success_url,
                "cancel_url": cancel_url,
                "line_items[0][price]": price_id,
                "line_items[0][quantity]": 1,
            },
        )

    def create_portal_session(self, *, customer_id: str, return_url: str) -> dict:
        """Create a billing-portal session for an existing customer."""

        return self._post(
            "/v1/billing_portal/sessions",
            {"customer": customer_id, "return_url": return_url},
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _post(self, path: str, data: dict) -> dict:
        if not self.is_configured:
            raise StripeError("Stripe is not configured")

        try:
            response = self._session.post(
                self._url(path),
                headers=self._headers(),
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Stripe request to %s failed: %s", path, exc)
            raise StripeError(str(exc)) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code != 200:
            message = (payload.get("error") or {}).get("message") or response.text
            logger.warning(
                "Stripe request to %s failed with status %s: %s",
                path,
                response.status_code,
                message,
            )
            raise StripeError(message)

        return payload

    def _headers(self) -> dict:
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _url(self, path: str) -> str:
        return f"{self.api_base}/{path.lstrip('/')}"


# ----------------------------------------------------------------------
# Webhook signatures
# ----------------------------------------------------------------------
def compute_signature(payload: bytes, secret: str, timestamp: int) -> str:
    """Return the hex HMAC-SHA256 Stripe computes over ``timestamp.payload``."""

    signed_payload = f"{timestamp}.".encode("utf-8") + payload
    return hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()


def _parse_signature_header(header: str) -> tuple[Optional[int], List[str]]:
    timestamp: Optional[int] = None
    signatures: List[str] = []
    for item in (header or "").split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                return None, []
        elif key == "v1" and value:
            signatures.append(value)
    return timestamp, signatures


def construct_event(
    payload: bytes,
    signature_header: str,
    secret: str,
    *,
    tolerance: int = 300,
    now: Optional[float] = None,
) -> dict:
    """Verify a webhook payload and return the decoded event.

    API versions are not compared: the event is accepted whatever version the
    account emits, only its signature and age are checked.
    """

    if not secret:
        raise SignatureVerificationError("No webhook secret configured")

    timestamp, signatures = _parse_signature_header(signature_header)
    if timestamp is None or not signatures:
        raise SignatureVerificationError("Unable to extract timestamp and signatures from header")

    expected = compute_signature(payload, secret, timestamp)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise SignatureVerificationError("No signatures found matching the expected signature")

    current_time = time.time() if now is None else now
    if tolerance and timestamp < current_time - tolerance:
        raise SignatureVerificationError("Timestamp outside the tolerance zone")

    try:
        event = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SignatureVerificationError("Invalid payload") from exc

    if not isinstance(event, dict) or "type" not in event:
        raise SignatureVerificationError("Invalid payload")

    return event


__all__ = [
    "StripeClient",
    "StripeError",
    "SignatureVerificationError",
    "compute_signature",
    "construct_event",
]
