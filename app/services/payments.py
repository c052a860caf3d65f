import time
from typing import Any, List

import stripe

from app.core.config import settings
from app.core.exceptions import ExternalServiceException, ValidationException
from app.core.logging import get_logger
from app.domain.models.credit import Plan

logger = get_logger("payments")

# Stripe rejects checkout sessions expiring sooner than 30 minutes
CHECKOUT_EXPIRY_SECONDS = 30 * 60


def _configure():
    stripe.api_key = settings.STRIPE_SECRET_KEY


def create_checkout_session(transaction_id: str, plan: Plan, origin: str) -> str:
    """
    Open a Stripe Checkout session for `plan` and return its payment page URL.
    The transaction id travels in the metadata so the webhook can settle it.
    """
    _configure()
    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            success_url=f"{origin}/loading",
            cancel_url=f"{origin}",
            line_items=[{
                "price_data": {
                    "currency": settings.STRIPE_CURRENCY,
                    "product_data": {"name": plan.name},
                    "unit_amount": plan.price * 100,
                },
                "quantity": 1,
            }],
            metadata={"transactionId": transaction_id, "appId": settings.APP_ID},
            expires_at=int(time.time()) + CHECKOUT_EXPIRY_SECONDS,
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe checkout creation failed for transaction {transaction_id}: {e}")
        raise ExternalServiceException("stripe", message="Could not start checkout", details={"error": str(e)})
    return session.url


def construct_webhook_event(payload: bytes, signature: str) -> Any:
    """Verify the `Stripe-Signature` header and parse the event."""
    try:
        return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except stripe.SignatureVerificationError as e:
        raise ValidationException("Invalid Stripe signature", details={"error": str(e)})
    except ValueError as e:
        raise ValidationException("Invalid Stripe payload", details={"error": str(e)})


def list_sessions_for_payment_intent(payment_intent_id: str) -> List[Any]:
    _configure()
    try:
        return list(stripe.checkout.Session.list(payment_intent=payment_intent_id).data)
    except stripe.StripeError as e:
        raise ExternalServiceException("stripe", message="Could not look up checkout session", details={"error": str(e)})
