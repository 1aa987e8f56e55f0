"""
Webhooks Router - Événements du fournisseur de paiement.
Endpoints: /v1/webhooks/*

Pas de vérification de signature (fournisseur simulé).
"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ollacart.routers.deps import get_store
from ollacart.services.webhook_service import handle_webhook
from ollacart.store import Store

router = APIRouter(prefix="/v1/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    event: Dict[str, Any] = Body(...),
    store: Store = Depends(get_store),
):
    result = await handle_webhook(store, event)
    return {"received": True, "result": result}
