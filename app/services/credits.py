from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import ValidationException
from app.core.logging import get_logger
from app.core.metrics import CREDITS_GRANTED
from app.domain.models.credit import Plan, Transaction
from app.domain.models.user import User

logger = get_logger("credits")

PLANS: List[Plan] = [
    Plan(
        id="basic",
        name="Basic",
        price=10,
        credits=100,
        features=['100 text generations', '50 image generations', 'Standard support', 'Access to basic models'],
    ),
    Plan(
        id="pro",
        name="Pro",
        price=20,
        credits=500,
        features=['500 text generations', '200 image generations', 'Priority support', 'Access to pro models',
                  'Faster response time'],
    ),
    Plan(
        id="premium",
        name="Premium",
        price=30,
        credits=1000,
        features=['1000 text generations', '500 image generations', '24/7 VIP support',
                  'Access to premium models', 'Dedicated account manager'],
    ),
]


def get_plans() -> List[Plan]:
    return PLANS


def find_plan(plan_id: str) -> Plan:
    for plan in PLANS:
        if plan.id == plan_id:
            return plan
    raise ValidationException("Invalid plan", details={"planId": plan_id})


async def purchase_plan(user: User, plan_id: str, origin: str, transactions,
                        create_checkout_session: Callable[[str, Plan, str], str]):
    """
    Record an unpaid transaction and open a checkout for it.
    Returns `(checkout_url, transaction_id)`; credits are granted by the webhook.
    """
    plan = find_plan(plan_id)
    transaction_id = await transactions.create({
        "userId": user.id,
        "planId": plan.id,
        "amount": plan.price,
        "credits": plan.credits,
        "isPaid": False,
        "createdAt": datetime.now(timezone.utc),
    })
    url = await run_in_threadpool(create_checkout_session, transaction_id, plan, origin)
    logger.info(f"Checkout opened for transaction {transaction_id} (plan {plan.id}, user {user.id})")
    return url, transaction_id


async def list_transactions(user: User, transactions) -> List[Transaction]:
    return [Transaction(**doc) for doc in await transactions.list_for_user(user.id)]


async def fulfil_transaction(transaction_id: str, app_id: Optional[str], transactions, users) -> bool:
    """
    Mark a transaction paid and grant its credits.
    Safe against duplicate webhook deliveries: only the call that flips
    `isPaid` grants credits.
    """
    if app_id != settings.APP_ID:
        logger.info(f"Ignoring payment for foreign app '{app_id}'")
        return False
    if not transaction_id:
        logger.warning("Payment event without transactionId metadata")
        return False

    doc = await transactions.mark_paid(transaction_id)
    if not doc:
        logger.info(f"Transaction {transaction_id} already paid or unknown")
        return False

    transaction = Transaction(**doc)
    await users.add_credits(transaction.user_id, transaction.credits)
    CREDITS_GRANTED.labels(plan=transaction.plan_id).inc(transaction.credits)
    logger.info(f"Granted {transaction.credits} credits to user {transaction.user_id} for transaction {transaction.id}")
    return True


def _metadata_value(obj: Any, key: str) -> Optional[str]:
    try:
        metadata = obj["metadata"]
        return metadata[key] if metadata else None
    except KeyError:
        return None


async def handle_payment_event(event: Any, transactions, users,
                               list_sessions_for_payment_intent: Callable[[str], List[Any]]) -> bool:
    """
    Settle the transaction referenced by a Stripe event.
    Handles `checkout.session.completed` directly and `payment_intent.succeeded`
    by looking up the checkout session that created the intent.
    """
    event_type = event["type"]
    payload = event["data"]["object"]

    if event_type == "checkout.session.completed":
        if payload["payment_status"] != "paid":
            logger.info(f"Checkout session {payload['id']} completed without payment yet")
            return False
        session = payload
    elif event_type == "payment_intent.succeeded":
        sessions = await run_in_threadpool(list_sessions_for_payment_intent, payload["id"])
        if not sessions:
            logger.warning(f"No checkout session found for payment intent {payload['id']}")
            return False
        session = sessions[0]
    else:
        logger.info(f"Unhandled event type: {event_type}")
        return False

    return await fulfil_transaction(
        _metadata_value(session, "transactionId"),
        _metadata_value(session, "appId"),
        transactions,
        users,
    )
