"""
Payments Router - Checkout.
Endpoints: /v1/payments/*

La confirmation passe par le webhook du fournisseur (/v1/webhooks/stripe).
"""
from fastapi import APIRouter, Depends

from ollacart.core.exceptions import NotFoundError
from ollacart.core.security import Caller, get_current_caller
from ollacart.routers.deps import get_provider, get_store
from ollacart.schemas import PaymentIntentRequest
from ollacart.services import cart_service, payment_service
from ollacart.services.payment_provider import MockPaymentProvider
from ollacart.store import Store

router = APIRouter(prefix="/v1/payments", tags=["payments"])


@router.post("/intents", status_code=201)
async def create_intent(
    payload: PaymentIntentRequest,
    store: Store = Depends(get_store),
    provider: MockPaymentProvider = Depends(get_provider),
    caller: Caller = Depends(get_current_caller),
):
    """Crée un paiement pending pour la voie (ou un sous-ensemble de ses items)."""
    listing = await cart_service.get_cart_items(store, caller, payload.cart_type, fallback_to_demo=False)
    items = listing.items
    if payload.cart_item_ids is not None:
        wanted = set(payload.cart_item_ids)
        items = [item for item in items if item.id in wanted]

    payment = await payment_service.create_payment_intent(store, caller, provider, items, payload.retailer_id)
    return payment.to_api()


@router.get("/{payment_id}")
async def get_payment(
    payment_id: str,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    payment = await payment_service.get_payment(store, payment_id)
    if payment is None or payment.user_id != caller.user_id:
        raise NotFoundError("Payment not found", entity="stripe_payments", entity_id=payment_id)
    return payment.to_api()
