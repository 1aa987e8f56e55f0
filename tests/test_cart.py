"""Panier multi-voies."""
import pytest

from ollacart.core.exceptions import NotFoundError, StorageUnavailable, ValidationError
from ollacart.services import affiliate_service, cart_service, catalog_service
from ollacart.utils.ids import today


async def test_add_then_add_again_sums_quantities(store, alice, make_product):
    product = await make_product(alice)

    first = await cart_service.add_to_cart(store, alice, product.id, quantity=2)
    second = await cart_service.add_to_cart(store, alice, product.id, quantity=3)

    assert second.id == first.id
    assert second.quantity == 5
    listing = await cart_service.get_cart_items(store, alice)
    assert listing.size == 1


async def test_cart_types_are_separate_lanes(store, alice, make_product):
    product = await make_product(alice)

    shopping = await cart_service.add_to_cart(store, alice, product.id)
    share = await cart_service.add_to_cart(store, alice, product.id, cart_type="share")

    assert shopping.id != share.id
    assert (await cart_service.get_cart_items(store, alice, "share")).size == 1
    assert (await cart_service.get_cart_items(store, alice, "sale")).size == 0


async def test_add_rejects_bad_quantity_and_type(store, alice, make_product):
    product = await make_product(alice)

    with pytest.raises(ValidationError):
        await cart_service.add_to_cart(store, alice, product.id, quantity=0)
    with pytest.raises(ValidationError):
        await cart_service.add_to_cart(store, alice, product.id, quantity=-2)
    with pytest.raises(ValidationError):
        await cart_service.add_to_cart(store, alice, product.id, cart_type="wishlist")


async def test_cart_is_scoped_to_caller(store, alice, bob, make_product):
    product = await make_product(alice)
    await cart_service.add_to_cart(store, alice, product.id)

    assert (await cart_service.get_cart_items(store, bob)).size == 0


async def test_update_cart_item(store, alice, bob, make_product):
    product = await make_product(alice)
    item = await cart_service.add_to_cart(store, alice, product.id)

    updated = await cart_service.update_cart_item(store, alice, item.id, 4)
    assert updated.quantity == 4

    with pytest.raises(ValidationError):
        await cart_service.update_cart_item(store, alice, item.id, 0)
    with pytest.raises(NotFoundError):
        await cart_service.update_cart_item(store, bob, item.id, 2)


async def test_remove_from_cart(store, alice, bob, make_product):
    product = await make_product(alice)
    item = await cart_service.add_to_cart(store, alice, product.id)

    with pytest.raises(NotFoundError):
        await cart_service.remove_from_cart(store, bob, item.id)

    await cart_service.remove_from_cart(store, alice, item.id)
    assert (await cart_service.get_cart_items(store, alice)).size == 0
    with pytest.raises(NotFoundError):
        await cart_service.remove_from_cart(store, alice, item.id)


async def test_clear_cart_only_touches_one_lane(store, alice, bob, make_product):
    first = await make_product(alice)
    second = await make_product(alice)
    await cart_service.add_to_cart(store, alice, first.id)
    await cart_service.add_to_cart(store, alice, second.id)
    await cart_service.add_to_cart(store, alice, first.id, cart_type="sale")
    await cart_service.add_to_cart(store, bob, first.id)

    removed = await cart_service.clear_cart(store, alice, "shopping")

    assert removed == 2
    assert (await cart_service.get_cart_items(store, alice)).size == 0
    assert (await cart_service.get_cart_items(store, alice, "sale")).size == 1
    assert (await cart_service.get_cart_items(store, bob)).size == 1


async def test_cart_with_products_skips_orphans(store, alice, make_product):
    kept = await make_product(alice, name="Kept")
    gone = await make_product(alice, name="Gone")
    await cart_service.add_to_cart(store, alice, kept.id)
    await cart_service.add_to_cart(store, alice, gone.id)
    await catalog_service.delete_product(store, alice, gone.id)

    items = await cart_service.get_cart_with_products(store, alice)

    assert [item.product.name for item in items] == ["Kept"]


async def test_cart_serves_demo_items_when_store_down(store, alice):
    store.set_available(False)

    listing = await cart_service.get_cart_items(store, alice, "share")

    assert listing.degraded is True
    assert [item.id for item in listing.items] == ["cart_demo_1", "cart_demo_2"]
    assert all(item.cart_type == "share" for item in listing.items)


async def test_cart_without_fallback_raises(store, alice):
    store.set_available(False)
    with pytest.raises(StorageUnavailable):
        await cart_service.get_cart_items(store, alice, fallback_to_demo=False)


async def test_affiliated_add_counts_retailer_cart_add(store, alice, bob, make_product):
    product = await make_product(alice)
    link = await affiliate_service.create_affiliate_link(store, alice, product.id, "retailer_1")

    item = await cart_service.add_to_cart(store, bob, product.id, affiliate_link_id=link.id)
    await cart_service.add_to_cart(store, bob, product.id, affiliate_link_id=link.id)

    assert item.affiliate_link_id == link.id
    rollup = await store.analytics.first({"retailer_id": "retailer_1", "date": today()})
    assert rollup.cart_adds == 2
    assert rollup.product_views == 0


async def test_cart_on_sql_backend(sql_store, alice):
    # Le produit n'a pas besoin d'exister pour être mis au panier
    await cart_service.add_to_cart(sql_store, alice, "prod_x", quantity=1)
    item = await cart_service.add_to_cart(sql_store, alice, "prod_x", quantity=2)

    assert item.quantity == 3
    assert await cart_service.clear_cart(sql_store, alice) == 1
