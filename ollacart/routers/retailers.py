"""
Retailers Router - Comptes retailers, onboarding et dashboard.
Endpoints: /v1/retailers/*
"""
from fastapi import APIRouter, Depends, Query

from ollacart.core.config import ANALYTICS_DEFAULT_DAYS
from ollacart.core.security import Caller, get_current_caller
from ollacart.routers.deps import get_own_retailer, get_provider, get_store
from ollacart.schemas import Retailer, RetailerCreate
from ollacart.services import payment_service
from ollacart.services.payment_provider import MockPaymentProvider
from ollacart.store import Store

router = APIRouter(prefix="/v1/retailers", tags=["retailers"])


@router.post("", status_code=201)
async def create_retailer(
    payload: RetailerCreate,
    store: Store = Depends(get_store),
    provider: MockPaymentProvider = Depends(get_provider),
    caller: Caller = Depends(get_current_caller),
):
    """Crée le retailer et son compte chez le fournisseur de paiement."""
    retailer = await payment_service.create_retailer(
        store,
        caller,
        provider,
        name=payload.name,
        email=str(payload.email),
        domain=payload.domain,
        commission_rate=payload.commission_rate,
    )
    return retailer.to_api()


@router.get("/{retailer_id}")
async def get_retailer(retailer: Retailer = Depends(get_own_retailer)):
    return retailer.to_api()


@router.post("/{retailer_id}/provision")
async def provision_account(
    retailer: Retailer = Depends(get_own_retailer),
    store: Store = Depends(get_store),
    provider: MockPaymentProvider = Depends(get_provider),
):
    """Relance la création du compte fournisseur après un échec."""
    updated = await payment_service.provision_provider_account(store, provider, retailer.id)
    return updated.to_api()


@router.get("/{retailer_id}/onboarding-link")
async def onboarding_link(
    retailer: Retailer = Depends(get_own_retailer),
    store: Store = Depends(get_store),
    provider: MockPaymentProvider = Depends(get_provider),
):
    url = await payment_service.get_onboarding_link(store, provider, retailer.id)
    return {"url": url, "onboardingState": retailer.onboarding_state}


@router.get("/{retailer_id}/payments")
async def list_payments(
    retailer: Retailer = Depends(get_own_retailer),
    store: Store = Depends(get_store),
):
    payments = await payment_service.get_retailer_payments(store, retailer.id)
    return {"data": [payment.to_api() for payment in payments], "size": len(payments)}


@router.get("/{retailer_id}/analytics")
async def analytics(
    days: int = Query(ANALYTICS_DEFAULT_DAYS, ge=1, le=365),
    retailer: Retailer = Depends(get_own_retailer),
    store: Store = Depends(get_store),
):
    summary = await payment_service.get_retailer_analytics(store, retailer.id, days)
    return summary.to_api()
