from fastapi import APIRouter, Depends, Header, Request
from typing import Optional

from app.auth.router import get_current_user
from app.core.config import settings
from app.domain.models.credit import (
    PlanListResponse,
    PurchaseRequest,
    PurchaseResponse,
    TransactionListResponse,
    WebhookResponse
)
from app.domain.models.user import User
from app.infrastructure.database.providers import get_transaction_repository, get_user_repository
from app.services.credits import get_plans, handle_payment_event, list_transactions, purchase_plan
from app.services.providers import get_checkout_service, get_session_lookup_service, get_webhook_event_service

router = APIRouter()
webhook_router = APIRouter()


def checkout_origin(request: Request) -> str:
    """Stripe redirects back here; only origins the API already trusts are accepted."""
    origin = request.headers.get("origin")
    if origin and origin in settings.cors_origins:
        return origin
    return settings.CLIENT_URL


@router.get("/plan", response_model=PlanListResponse)
async def plans():
    return PlanListResponse(plans=get_plans())


@router.post("/purchase", response_model=PurchaseResponse)
async def purchase(
    payload: PurchaseRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    transactions=Depends(get_transaction_repository),
    create_checkout_session=Depends(get_checkout_service)
):
    """
    Create a pending transaction for the plan and return the Stripe Checkout URL.
    """
    url, transaction_id = await purchase_plan(
        current_user, payload.plan_id, checkout_origin(request), transactions, create_checkout_session
    )
    return PurchaseResponse(url=url, transaction_id=transaction_id)


@router.get("/history", response_model=TransactionListResponse)
async def history(
    current_user: User = Depends(get_current_user),
    transactions=Depends(get_transaction_repository)
):
    return TransactionListResponse(transactions=await list_transactions(current_user, transactions))


@webhook_router.post("/stripe", response_model=WebhookResponse)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    transactions=Depends(get_transaction_repository),
    users=Depends(get_user_repository),
    construct_event=Depends(get_webhook_event_service),
    list_sessions=Depends(get_session_lookup_service)
):
    """
    Stripe webhook. The raw body is needed for signature verification.
    """
    payload = await request.body()
    event = construct_event(payload, stripe_signature or "")
    await handle_payment_event(event, transactions, users, list_sessions)
    return WebhookResponse()
