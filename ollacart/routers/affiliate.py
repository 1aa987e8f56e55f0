"""
Affiliate Router - Liens affiliés et tracking.
Endpoints: /v1/affiliate/*

Les endpoints de tracking sont publics (appelés depuis la page produit).
"""
from typing import Any

from fastapi import APIRouter, Body, Depends

from ollacart.core.security import Caller, get_current_caller
from ollacart.routers.deps import get_store
from ollacart.schemas import ConversionRequest, CreateAffiliateLinkRequest
from ollacart.services import affiliate_service
from ollacart.store import Store

router = APIRouter(prefix="/v1/affiliate", tags=["affiliate"])


@router.post("/links", status_code=201)
async def create_link(
    payload: CreateAffiliateLinkRequest,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    link = await affiliate_service.create_affiliate_link(
        store, caller, payload.product_id, payload.retailer_id, payload.commission_rate
    )
    return link.to_api()


@router.get("/links")
async def list_links(
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    """Liens de l'appelant + totaux (clicks, conversions, commissions)."""
    links = await affiliate_service.get_affiliate_links(store, caller)
    return {
        "data": [link.to_api() for link in links],
        "summary": affiliate_service.summarize_links(links).to_api(),
    }


@router.post("/track/{code}/click")
async def track_click(
    code: str,
    context: Any = Body(None),
    store: Store = Depends(get_store),
):
    """Le contexte est facultatif; un contexte invalide n'empêche pas le comptage."""
    link = await affiliate_service.track_click(store, code, context)
    return {"tracked": link is not None}


@router.post("/track/{code}/conversion")
async def track_conversion(
    code: str,
    payload: ConversionRequest,
    store: Store = Depends(get_store),
):
    link = await affiliate_service.track_conversion(store, code, payload.gross_revenue)
    return {"tracked": link is not None}
