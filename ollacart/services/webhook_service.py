"""
Webhooks du fournisseur de paiement.

Événements traités:
- account.updated                -> handle_account_updated
- payment_intent.succeeded       -> confirm_payment (metadata.paymentId)
- payment_intent.payment_failed  -> fail_payment (metadata.paymentId)
Tout autre type, un payload mal formé ou un paiement inconnu est ignoré
(le fournisseur ne doit pas rejouer indéfiniment l'événement).
"""
from typing import Any, Mapping

from ollacart.core.exceptions import NotFoundError
from ollacart.core.logging import get_logger
from ollacart.services.payment_service import confirm_payment, fail_payment, handle_account_updated
from ollacart.store import Store

logger = get_logger(__name__)

HANDLED = "handled"
IGNORED = "ignored"


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _payment_id(intent: Mapping[str, Any]):
    payment_id = _mapping(intent.get("metadata")).get("paymentId")
    return payment_id if isinstance(payment_id, str) else None


async def _on_account_updated(store: Store, account: Mapping[str, Any]) -> bool:
    return await handle_account_updated(store, account) is not None


async def _on_payment_succeeded(store: Store, intent: Mapping[str, Any]) -> bool:
    payment_id = _payment_id(intent)
    if not payment_id:
        return False
    try:
        await confirm_payment(store, payment_id)
    except NotFoundError:
        logger.warning("Webhook for unknown payment", entity="stripe_payments", entity_id=payment_id)
        return False
    return True


async def _on_payment_failed(store: Store, intent: Mapping[str, Any]) -> bool:
    payment_id = _payment_id(intent)
    if not payment_id:
        return False
    try:
        await fail_payment(store, payment_id)
    except NotFoundError:
        logger.warning("Webhook for unknown payment", entity="stripe_payments", entity_id=payment_id)
        return False
    return True


_HANDLERS = {
    "account.updated": _on_account_updated,
    "payment_intent.succeeded": _on_payment_succeeded,
    "payment_intent.payment_failed": _on_payment_failed,
}


async def handle_webhook(store: Store, event: Any) -> str:
    """Dispatch d'un événement. Retourne "handled" ou "ignored"."""
    event = _mapping(event)
    event_type = event.get("type")
    if not isinstance(event_type, str) or not event_type:
        event_type = "unknown"
    handler = _HANDLERS.get(event_type)
    if handler is None:
        logger.webhook_received(event_type, handled=False)
        return IGNORED

    obj = _mapping(_mapping(event.get("data")).get("object"))
    handled = await handler(store, obj)
    logger.webhook_received(event_type, handled=handled)
    return HANDLED if handled else IGNORED
