"""
Service catalogue produits.
Création, mise à jour partielle, recherche, fork et likes.

Toutes les fonctions reçoivent le Store et l'appelant (Caller) injectés.
En lecture (search_products), un store injoignable bascule sur les
données de démo si l'appelant le demande (fallback_to_demo).
"""
from typing import Any, List, Optional
from urllib.parse import urlparse

from ollacart.core.config import DEMO_FALLBACK_ENABLED
from ollacart.core.exceptions import (
    AlreadyForkedError,
    NotFoundError,
    SelfForkError,
    ValidationError,
)
from ollacart.core.logging import get_logger, timed
from ollacart.core.security import Caller
from ollacart.schemas import (
    Listing,
    Photo,
    Product,
    ProductCreate,
    ProductSearch,
    ProductUpdate,
    parse_payload,
)
from ollacart.services.demo_data import demo_products
from ollacart.store import Store
from ollacart.utils.ids import new_id, next_sequence, utcnow

logger = get_logger(__name__)

ENTITY = "products"

# Ordre du feed: le plus récent d'abord
SEARCH_ORDER = [("sequence", "desc"), ("created_at", "desc")]

# Champs qui ne peuvent pas être remis à null par une mise à jour
_NOT_NULLABLE = ("name", "price", "keywords", "purchased", "shared", "purchased_status", "photos")


def derive_domain(url: str) -> str:
    """Origine de l'URL (scheme://host)."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError(f"Invalid product URL: {url}", field="url")
    return f"{parsed.scheme}://{parsed.netloc}"


def _photo(url: str) -> Photo:
    # Pas de miniatures: small/normal pointent sur l'image d'origine
    return Photo(url=url, small=url, normal=url)


async def create_product(store: Store, caller: Caller, data: Any) -> Product:
    payload = parse_payload(ProductCreate, data)
    original_url = payload.original_url or payload.url
    now = utcnow()

    product = Product(
        id=new_id("prod"),
        user_id=caller.user_id,
        name=payload.name,
        description=payload.description,
        keywords=list(payload.keywords),
        color=payload.color,
        size=payload.size,
        price=payload.price,
        url=payload.url,
        original_url=original_url,
        domain=derive_domain(original_url),
        photo=_photo(payload.photo) if payload.photo else None,
        photos=[_photo(url) for url in payload.photos],
        ce_id=payload.ce_id,
        sequence=next_sequence(),
        created_at=now,
        updated_at=now,
    )
    stored = await store.products.create(product)
    logger.entity_created(ENTITY, stored.id, user_id=caller.user_id, domain=stored.domain)
    return stored


async def get_product(store: Store, product_id: str) -> Optional[Product]:
    return await store.products.get(product_id)


async def require_product(store: Store, product_id: str) -> Product:
    product = await store.products.get(product_id)
    if product is None:
        raise NotFoundError("Product not found", entity=ENTITY, entity_id=product_id)
    return product


async def update_product(store: Store, caller: Caller, product_id: str, data: Any) -> Product:
    """
    Mise à jour partielle: un champ absent n'est pas effacé.
    updated_at est toujours rafraîchi.
    """
    payload = parse_payload(ProductUpdate, data)
    changes = payload.model_dump(exclude_unset=True)
    for name in _NOT_NULLABLE:
        if name in changes and changes[name] is None:
            raise ValidationError(f"{name} cannot be null", field=name)

    existing = await store.products.get(product_id)
    if existing is None or existing.user_id != caller.user_id:
        raise NotFoundError("Product not found", entity=ENTITY, entity_id=product_id)

    changes["updated_at"] = utcnow()
    updated = await store.products.update(product_id, changes)
    if updated is None:
        raise NotFoundError("Product not found", entity=ENTITY, entity_id=product_id)
    logger.info("Product updated", entity=ENTITY, entity_id=product_id, fields=sorted(changes))
    return updated


@timed(logger)
async def search_products(
    store: Store,
    caller: Caller,
    filters: Any = None,
    fallback_to_demo: bool = DEMO_FALLBACK_ENABLED,
) -> Listing[Product]:
    """
    Recherche produits.

    Filtres:
    - par défaut: les produits de l'appelant
    - purchased: uniquement achetés
    - shared (+ _id): produits partagés d'un propriétaire (l'appelant par défaut)
    - social (+ _ids): feed des produits partagés d'un ensemble de propriétaires
    """
    params = parse_payload(ProductSearch, filters or {})

    where = {}
    if params.purchased:
        where["purchased"] = True
    if params.shared:
        where["user_id"] = params.owner_id or caller.user_id
        where["shared"] = True
    elif params.social and params.owner_ids:
        where["user_id"] = {"in": list(params.owner_ids)}
        where["shared"] = True
    else:
        where["user_id"] = caller.user_id

    result = await store.products.try_list(
        where, order_by=SEARCH_ORDER, limit=params.limit, offset=params.skip
    )
    if result.ok:
        return Listing(items=result.value)

    if not fallback_to_demo:
        raise result.error
    logger.degraded_fallback(ENTITY, result.error, user_id=caller.user_id)
    return Listing(items=demo_products(), degraded=True)


async def delete_product(store: Store, caller: Caller, product_id: str) -> None:
    """Suppression par le propriétaire. Pas de cascade vers les paniers."""
    existing = await store.products.get(product_id)
    if existing is None or existing.user_id != caller.user_id:
        raise NotFoundError("Product not found", entity=ENTITY, entity_id=product_id)
    await store.products.delete(product_id)
    logger.info("Product deleted", entity=ENTITY, entity_id=product_id, user_id=caller.user_id)


async def fork_product(store: Store, caller: Caller, product_id: str) -> Product:
    """
    Copie le produit d'un autre utilisateur dans le catalogue de l'appelant.

    forked_ids = forked_ids de la source + id de la source.
    """
    source = await require_product(store, product_id)

    if source.user_id == caller.user_id:
        raise SelfForkError(entity=ENTITY, entity_id=product_id)

    existing = await store.products.first({"user_id": caller.user_id, "fork_id": product_id})
    if existing is not None:
        raise AlreadyForkedError(entity=ENTITY, entity_id=product_id)

    now = utcnow()
    forked_ids: List[str] = [*source.forked_ids, source.id]
    fork = Product(
        id=new_id("prod"),
        user_id=caller.user_id,
        name=source.name,
        description=source.description,
        keywords=list(source.keywords),
        color=source.color,
        size=source.size,
        price=source.price,
        url=source.url,
        original_url=source.original_url,
        domain=source.domain,
        photo=source.photo,
        photos=list(source.photos),
        fork_id=source.id,
        forked_ids=forked_ids,
        sequence=next_sequence(),
        created_at=now,
        updated_at=now,
    )
    stored = await store.products.create(fork)
    logger.entity_created(ENTITY, stored.id, user_id=caller.user_id, fork_id=source.id)
    return stored


async def toggle_like(store: Store, caller: Caller, product_id: str) -> Product:
    """Like/unlike. Liker retire l'appelant des dislikes."""
    product = await require_product(store, product_id)
    likes = set(product.likes)
    dislikes = set(product.dislikes)

    if caller.user_id in likes:
        likes.discard(caller.user_id)
    else:
        likes.add(caller.user_id)
        dislikes.discard(caller.user_id)

    updated = await store.products.update(product_id, {"likes": likes, "dislikes": dislikes})
    if updated is None:
        raise NotFoundError("Product not found", entity=ENTITY, entity_id=product_id)
    return updated
