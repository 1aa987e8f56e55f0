"""
Dépendances FastAPI partagées par les routers.

Le store et le fournisseur de paiement sont posés sur app.state au
démarrage (lifespan); les tests les remplacent via dependency_overrides.
"""
from fastapi import Depends, Request

from ollacart.core.exceptions import NotFoundError
from ollacart.core.security import Caller, get_current_caller
from ollacart.schemas import Retailer
from ollacart.services.payment_provider import MockPaymentProvider
from ollacart.services.payment_service import get_retailer
from ollacart.store import Store


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_provider(request: Request) -> MockPaymentProvider:
    return request.app.state.provider


async def get_own_retailer(
    retailer_id: str,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
) -> Retailer:
    """Retailer du path, visible uniquement par son propriétaire."""
    retailer = await get_retailer(store, retailer_id)
    if retailer is None or retailer.user_id != caller.user_id:
        raise NotFoundError("Retailer not found", entity="retailers", entity_id=retailer_id)
    return retailer
