# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Stripe webhook intake.

Every delivery must carry a valid ``Stripe-Signature`` for the configured
webhook secret; without a secret the endpoint refuses all events. Checkout
session events are routed to the dues ledger. Deliveries are at-least-once;
everything downstream is safe to repeat.
"""

from typing import Any, Dict, Optional

import stripe

from app.core.config import settings
from app.core.errors import UnauthorizedError, ValidationError, WebhookNotConfiguredError
from app.core.logging import get_logger
from app.metrics import WEBHOOK_EVENTS
from app.services.dues_ledger import DuesLedger

logger = get_logger(__name__)

COMPLETED_EVENT = "checkout.session.completed"
SETTLED_EVENTS = frozenset({
    COMPLETED_EVENT,
    "checkout.session.async_payment_succeeded",
})
FAILED_EVENTS = frozenset({
    "checkout.session.expired",
    "checkout.session.async_payment_failed",
})
# Checkout sessions completed with any other payment_status are still
# waiting on an asynchronous payment method.
PAID_SESSION_STATUSES = frozenset({"paid", "no_payment_required"})


class StripeWebhookService:
    def __init__(self, ledger: DuesLedger, secret: Optional[str] = None):
        self._ledger = ledger
        self._secret = settings.STRIPE_WEBHOOK_SECRET if secret is None else secret

    def parse_event(self, payload: bytes, signature: Optional[str]) -> stripe.Event:
        if not self._secret:
            logger.error("Stripe webhook received but STRIPE_WEBHOOK_SECRET is not set")
            raise WebhookNotConfiguredError("Stripe webhook secret is not configured")
        if not signature:
            raise UnauthorizedError("Missing Stripe-Signature header")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self._secret)
        except ValueError as exc:
            raise ValidationError("Invalid webhook payload") from exc
        except stripe.SignatureVerificationError as exc:
            logger.warning("Invalid Stripe webhook signature: %s", exc)
            raise UnauthorizedError("Invalid webhook signature") from exc
        if "type" not in event:
            raise ValidationError("Webhook payload is not an event")
        return event

    def handle(self, event: stripe.Event) -> Dict[str, Any]:
        event_type = event.type
        data = event.get("data") or {}
        session = data.get("object") or {}
        session_id = session.get("id")

        if event_type in SETTLED_EVENTS and session_id:
            outcome = self._settle(event_type, session)
        elif event_type in FAILED_EVENTS and session_id:
            result = self._ledger.mark_payment_failed(session_id)
            outcome = result.outcome if result is not None else "unknown"
        else:
            outcome = "ignored"

        WEBHOOK_EVENTS.labels(event_type=event_type or "none", outcome=outcome).inc()
        logger.info("Stripe webhook id=%s type=%s session=%s outcome=%s",
                    event.get("id"), event_type, session_id, outcome)
        return {"received": True, "event_type": event_type, "outcome": outcome}

    def _settle(self, event_type: str, session) -> str:
        payment_status = session.get("payment_status")
        if event_type == COMPLETED_EVENT and payment_status not in PAID_SESSION_STATUSES:
            logger.info("Checkout session=%s completed with payment_status=%s; awaiting async payment",
                        session.get("id"), payment_status)
            return "awaiting_payment"
        result = self._ledger.reconcile(session.get("id"), session.get("payment_intent"))
        return result.outcome if result is not None else "unknown"
