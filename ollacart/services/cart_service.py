"""
Service panier multi-voies (shopping / share / sale).

Clé logique d'un item: (user_id, product_id, cart_type).
Un second ajout sur la même voie incrémente la quantité.
"""
from typing import Any, List, Optional

from ollacart.core.config import CART_TYPES, DEMO_FALLBACK_ENABLED
from ollacart.core.exceptions import DuplicateRecordError, NotFoundError, ValidationError
from ollacart.core.logging import get_logger
from ollacart.core.security import Caller
from ollacart.schemas import CartItem, CartItemWithProduct, Listing
from ollacart.services.affiliate_service import record_retailer_event
from ollacart.services.demo_data import demo_cart_items
from ollacart.store import Store
from ollacart.utils.ids import new_id, utcnow

logger = get_logger(__name__)

ENTITY = "cart_items"


def _check_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer", field="quantity")
    return quantity


def _check_cart_type(cart_type: str) -> str:
    if cart_type not in CART_TYPES:
        raise ValidationError(
            f"Unknown cart type {cart_type!r} (expected one of {', '.join(CART_TYPES)})",
            field="cartType",
        )
    return cart_type


async def _bump_quantity(store: Store, item: CartItem, quantity: int) -> CartItem:
    await store.cart_items.increment(item.id, {"quantity": quantity})
    updated = await store.cart_items.update(item.id, {"updated_at": utcnow()})
    if updated is None:
        raise NotFoundError("Cart item not found", entity=ENTITY, entity_id=item.id)
    return updated


async def add_to_cart(
    store: Store,
    caller: Caller,
    product_id: str,
    quantity: int = 1,
    cart_type: str = "shopping",
    affiliate_link_id: Optional[str] = None,
) -> CartItem:
    """
    Ajoute un produit à une voie du panier.

    - Si l'item n'existe pas: insert
    - Si l'item existe: quantité += quantity
    """
    _check_quantity(quantity)
    _check_cart_type(cart_type)
    key = {"user_id": caller.user_id, "product_id": product_id, "cart_type": cart_type}

    existing = await store.cart_items.first(key)
    if existing is not None:
        item = await _bump_quantity(store, existing, quantity)
    else:
        now = utcnow()
        try:
            item = await store.cart_items.create(CartItem(
                id=new_id("cart"),
                user_id=caller.user_id,
                product_id=product_id,
                cart_type=cart_type,
                quantity=quantity,
                affiliate_link_id=affiliate_link_id or None,
                created_at=now,
                updated_at=now,
            ))
            logger.entity_created(ENTITY, item.id, user_id=caller.user_id, cart_type=cart_type)
        except DuplicateRecordError:
            # Ajout concurrent: la ligne existe désormais, on incrémente
            existing = await store.cart_items.first(key)
            if existing is None:
                raise
            item = await _bump_quantity(store, existing, quantity)

    if affiliate_link_id:
        link = await store.affiliate_links.get(affiliate_link_id)
        if link is not None:
            await record_retailer_event(store, link.retailer_id, "cart_add")

    return item


async def get_cart_items(
    store: Store,
    caller: Caller,
    cart_type: str = "shopping",
    fallback_to_demo: bool = DEMO_FALLBACK_ENABLED,
) -> Listing[CartItem]:
    """Items de la voie, plus récents d'abord. Données de démo si le store est injoignable."""
    _check_cart_type(cart_type)
    result = await store.cart_items.try_list(
        {"user_id": caller.user_id, "cart_type": cart_type},
        order_by=[("created_at", "desc")],
    )
    if result.ok:
        return Listing(items=result.value)

    if not fallback_to_demo:
        raise result.error
    logger.degraded_fallback(ENTITY, result.error, user_id=caller.user_id)
    return Listing(items=demo_cart_items(cart_type), degraded=True)


async def get_cart_with_products(store: Store, caller: Caller, cart_type: str = "shopping") -> List[CartItemWithProduct]:
    """Items de la voie avec leur produit. Les items dont le produit a disparu sont ignorés."""
    listing = await get_cart_items(store, caller, cart_type, fallback_to_demo=False)
    result = []
    for item in listing.items:
        product = await store.products.get(item.product_id)
        if product is None:
            logger.debug("Orphan cart item skipped", entity=ENTITY, entity_id=item.id, product_id=item.product_id)
            continue
        result.append(CartItemWithProduct(**item.model_dump(), product=product))
    return result


async def _require_own_item(store: Store, caller: Caller, item_id: str) -> CartItem:
    item = await store.cart_items.get(item_id)
    if item is None or item.user_id != caller.user_id:
        raise NotFoundError("Cart item not found", entity=ENTITY, entity_id=item_id)
    return item


async def update_cart_item(store: Store, caller: Caller, item_id: str, quantity: int) -> CartItem:
    _check_quantity(quantity)
    await _require_own_item(store, caller, item_id)
    updated = await store.cart_items.update(item_id, {"quantity": quantity, "updated_at": utcnow()})
    if updated is None:
        raise NotFoundError("Cart item not found", entity=ENTITY, entity_id=item_id)
    return updated


async def remove_from_cart(store: Store, caller: Caller, item_id: str) -> None:
    await _require_own_item(store, caller, item_id)
    await store.cart_items.delete(item_id)


async def clear_cart(store: Store, caller: Caller, cart_type: str = "shopping") -> int:
    """Vide la voie en une seule suppression. Retourne le nombre d'items retirés."""
    _check_cart_type(cart_type)
    removed = await store.cart_items.delete_where({"user_id": caller.user_id, "cart_type": cart_type})
    logger.info("Cart cleared", entity=ENTITY, user_id=caller.user_id, cart_type=cart_type, removed=removed)
    return removed
