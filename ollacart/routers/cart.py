"""
Cart Router - Panier multi-voies (shopping / share / sale).
Endpoints: /v1/cart/*
"""
from fastapi import APIRouter, Depends, Query

from ollacart.core.security import Caller, get_current_caller
from ollacart.routers.deps import get_store
from ollacart.schemas import AddToCartRequest, UpdateCartItemRequest
from ollacart.services import cart_service
from ollacart.store import Store

router = APIRouter(prefix="/v1/cart", tags=["cart"])


@router.get("")
async def get_cart(
    cart_type: str = Query("shopping", alias="cartType"),
    with_products: bool = Query(False, alias="withProducts"),
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    """Items d'une voie, plus récents d'abord (avec leurs produits si withProducts=true)."""
    if with_products:
        items = await cart_service.get_cart_with_products(store, caller, cart_type)
        return {"data": [item.to_api() for item in items], "size": len(items), "degraded": False}

    listing = await cart_service.get_cart_items(store, caller, cart_type)
    return listing.to_api()


@router.post("", status_code=201)
async def add_to_cart(
    payload: AddToCartRequest,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    item = await cart_service.add_to_cart(
        store,
        caller,
        payload.product_id,
        quantity=payload.quantity,
        cart_type=payload.cart_type,
        affiliate_link_id=payload.affiliate_link_id,
    )
    return item.to_api()


@router.patch("/items/{item_id}")
async def update_cart_item(
    item_id: str,
    payload: UpdateCartItemRequest,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    item = await cart_service.update_cart_item(store, caller, item_id, payload.quantity)
    return item.to_api()


@router.delete("/items/{item_id}")
async def remove_from_cart(
    item_id: str,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    await cart_service.remove_from_cart(store, caller, item_id)
    return {"success": True}


@router.delete("")
async def clear_cart(
    cart_type: str = Query("shopping", alias="cartType"),
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    removed = await cart_service.clear_cart(store, caller, cart_type)
    return {"success": True, "removed": removed}
