"""
Products Router - Catalogue produits.
Endpoints: /v1/products/*
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ollacart.core.exceptions import NotFoundError
from ollacart.core.security import Caller, get_current_caller
from ollacart.routers.deps import get_store
from ollacart.schemas import ProductCreate, ProductSearch, ProductUpdate
from ollacart.services import catalog_service
from ollacart.store import Store

router = APIRouter(prefix="/v1/products", tags=["products"])


@router.get("")
async def search_products(
    purchased: bool = Query(False),
    shared: bool = Query(False),
    social: bool = Query(False),
    owner_id: Optional[str] = Query(None, alias="_id"),
    owner_ids: Optional[List[str]] = Query(None, alias="_ids"),
    limit: int = Query(100, ge=1, le=500),
    skip: int = Query(0, ge=0),
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    """
    Liste les produits.

    - défaut: les produits de l'appelant
    - ?purchased=true: uniquement les achetés
    - ?shared=true&_id=...: produits partagés d'un utilisateur
    - ?social=true&_ids=a&_ids=b: feed des produits partagés
    """
    filters = ProductSearch(
        purchased=purchased,
        shared=shared,
        social=social,
        owner_id=owner_id,
        owner_ids=owner_ids,
        limit=limit,
        skip=skip,
    )
    listing = await catalog_service.search_products(store, caller, filters)
    return listing.to_api()


@router.post("", status_code=201)
async def create_product(
    payload: ProductCreate,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    product = await catalog_service.create_product(store, caller, payload)
    return product.to_api()


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    product = await catalog_service.get_product(store, product_id)
    if product is None:
        raise NotFoundError("Product not found", entity="products", entity_id=product_id)
    return product.to_api()


@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    """Mise à jour partielle: seuls les champs envoyés sont modifiés."""
    product = await catalog_service.update_product(store, caller, product_id, payload)
    return product.to_api()


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    await catalog_service.delete_product(store, caller, product_id)
    return {"success": True}


@router.post("/{product_id}/fork", status_code=201)
async def fork_product(
    product_id: str,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    """Ajoute le produit d'un autre utilisateur à son propre catalogue."""
    product = await catalog_service.fork_product(store, caller, product_id)
    return product.to_api()


@router.post("/{product_id}/like")
async def toggle_like(
    product_id: str,
    store: Store = Depends(get_store),
    caller: Caller = Depends(get_current_caller),
):
    product = await catalog_service.toggle_like(store, caller, product_id)
    return product.to_api()
