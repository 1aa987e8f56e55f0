"""Catalogue: création, mise à jour partielle, recherche, fork, likes."""
import pytest

from ollacart.core.exceptions import (
    AlreadyForkedError,
    NotFoundError,
    SelfForkError,
    StorageUnavailable,
    ValidationError,
)
from ollacart.core.security import Caller
from ollacart.services import catalog_service
from ollacart.services.demo_data import DEMO_USER_ID


async def test_create_product_derives_domain_and_photo(store, alice, make_product):
    product = await make_product(alice)

    assert product.id.startswith("prod_")
    assert product.user_id == "alice"
    assert product.domain == "https://shop.example.com"
    assert product.original_url == product.url
    assert product.photo.url == "https://cdn.example.com/linen.jpg"
    assert product.photo.small == product.photo.url
    assert product.keywords == ["linen", "shirt"]
    assert product.shared is False and product.purchased is False
    assert product.likes == set() and product.forked_ids == []

    assert await catalog_service.get_product(store, product.id) == product


async def test_create_product_domain_from_original_url(alice, make_product):
    product = await make_product(
        alice,
        url="https://short.link/abc",
        originalUrl="https://www.brand.example.org/item/42",
    )
    assert product.domain == "https://www.brand.example.org"


async def test_create_product_validation(alice, make_product):
    with pytest.raises(ValidationError):
        await make_product(alice, name="")
    with pytest.raises(ValidationError):
        await make_product(alice, price=-1)
    with pytest.raises(ValidationError):
        await make_product(alice, url="not a url")


async def test_sequence_is_monotonic(alice, make_product):
    first = await make_product(alice)
    second = await make_product(alice)
    assert second.sequence > first.sequence


async def test_update_is_partial(store, alice, make_product):
    product = await make_product(alice, description="Summer shirt", color="white")

    updated = await catalog_service.update_product(store, alice, product.id, {"price": 35.0})

    assert updated.price == 35.0
    assert updated.description == "Summer shirt"
    assert updated.color == "white"
    assert updated.keywords == ["linen", "shirt"]
    assert updated.updated_at >= product.updated_at


async def test_update_accepts_camel_case_and_flags(store, alice, make_product):
    product = await make_product(alice)

    updated = await catalog_service.update_product(
        store, alice, product.id, {"shared": True, "purchasedStatus": 2}
    )

    assert updated.shared is True
    assert updated.purchased_status == 2


async def test_update_rejects_null_required_field(store, alice, make_product):
    product = await make_product(alice)
    with pytest.raises(ValidationError):
        await catalog_service.update_product(store, alice, product.id, {"name": None})


async def test_update_other_users_product_is_not_found(store, alice, bob, make_product):
    product = await make_product(alice)
    with pytest.raises(NotFoundError):
        await catalog_service.update_product(store, bob, product.id, {"price": 1.0})
    with pytest.raises(NotFoundError):
        await catalog_service.update_product(store, alice, "prod_missing", {"price": 1.0})


async def test_search_defaults_to_callers_products_newest_first(store, alice, bob, make_product):
    older = await make_product(alice, name="Older")
    newer = await make_product(alice, name="Newer")
    await make_product(bob, name="Bob's")

    listing = await catalog_service.search_products(store, alice)

    assert [p.id for p in listing.items] == [newer.id, older.id]
    assert listing.size == 2
    assert listing.degraded is False


async def test_search_purchased(store, alice, make_product):
    bought = await make_product(alice)
    await make_product(alice)
    await catalog_service.update_product(store, alice, bought.id, {"purchased": True})

    listing = await catalog_service.search_products(store, alice, {"purchased": True})

    assert [p.id for p in listing.items] == [bought.id]


async def test_search_shared_by_owner(store, alice, bob, make_product):
    shared = await make_product(bob)
    await make_product(bob)
    await catalog_service.update_product(store, bob, shared.id, {"shared": True})

    listing = await catalog_service.search_products(store, alice, {"shared": True, "_id": "bob"})
    assert [p.id for p in listing.items] == [shared.id]

    own = await catalog_service.search_products(store, bob, {"shared": True})
    assert [p.id for p in own.items] == [shared.id]


async def test_search_social_feed(store, alice, bob, make_product):
    carol = Caller(user_id="carol")
    from_bob = await make_product(bob)
    from_carol = await make_product(carol)
    hidden = await make_product(carol)
    for caller, product in ((bob, from_bob), (carol, from_carol)):
        await catalog_service.update_product(store, caller, product.id, {"shared": True})

    listing = await catalog_service.search_products(
        store, alice, {"social": True, "_ids": ["bob", "carol"]}
    )

    ids = [p.id for p in listing.items]
    assert ids == [from_carol.id, from_bob.id]
    assert hidden.id not in ids


async def test_search_limit_and_skip(store, alice, make_product):
    products = [await make_product(alice, name=f"P{i}") for i in range(5)]

    listing = await catalog_service.search_products(store, alice, {"limit": 2, "skip": 1})

    assert [p.id for p in listing.items] == [products[3].id, products[2].id]


async def test_search_serves_demo_data_when_store_down(store, alice):
    store.set_available(False)

    listing = await catalog_service.search_products(store, alice)

    assert listing.degraded is True
    assert [p.id for p in listing.items] == ["demo_1", "demo_2", "demo_3"]
    assert all(p.user_id == DEMO_USER_ID for p in listing.items)


async def test_search_without_fallback_raises(store, alice):
    store.set_available(False)
    with pytest.raises(StorageUnavailable):
        await catalog_service.search_products(store, alice, fallback_to_demo=False)


async def test_delete_product(store, alice, bob, make_product):
    product = await make_product(alice)

    with pytest.raises(NotFoundError):
        await catalog_service.delete_product(store, bob, product.id)

    await catalog_service.delete_product(store, alice, product.id)
    assert await catalog_service.get_product(store, product.id) is None


async def test_fork_copies_into_callers_catalog(store, alice, bob, make_product):
    source = await make_product(alice, description="Loose fit", color="white")

    fork = await catalog_service.fork_product(store, bob, source.id)

    assert fork.id != source.id
    assert fork.user_id == "bob"
    assert fork.fork_id == source.id
    assert fork.forked_ids == [source.id]
    assert fork.name == source.name and fork.price == source.price
    assert fork.photo == source.photo
    assert fork.likes == set()
    assert fork.shared is False


async def test_fork_chain_accumulates_ancestry(store, alice, bob, make_product):
    carol = Caller(user_id="carol")
    source = await make_product(alice)
    first = await catalog_service.fork_product(store, bob, source.id)
    second = await catalog_service.fork_product(store, carol, first.id)

    assert second.fork_id == first.id
    assert second.forked_ids == [source.id, first.id]


async def test_fork_own_product_rejected(store, alice, make_product):
    product = await make_product(alice)
    with pytest.raises(SelfForkError) as exc:
        await catalog_service.fork_product(store, alice, product.id)
    assert exc.value.message == "You cannot add from your own cart"


async def test_fork_twice_rejected(store, alice, bob, make_product):
    product = await make_product(alice)
    await catalog_service.fork_product(store, bob, product.id)

    with pytest.raises(AlreadyForkedError) as exc:
        await catalog_service.fork_product(store, bob, product.id)
    assert exc.value.message == "Already added"


async def test_fork_unknown_product(store, bob):
    with pytest.raises(NotFoundError):
        await catalog_service.fork_product(store, bob, "prod_missing")


async def test_toggle_like_twice_restores_state(store, alice, bob, make_product):
    product = await make_product(alice)

    liked = await catalog_service.toggle_like(store, bob, product.id)
    assert liked.likes == {"bob"}

    unliked = await catalog_service.toggle_like(store, bob, product.id)
    assert unliked.likes == set()


async def test_like_removes_dislike(store, alice, bob, make_product):
    product = await make_product(alice)
    await store.products.update(product.id, {"dislikes": {"bob", "carol"}})

    liked = await catalog_service.toggle_like(store, bob, product.id)

    assert liked.likes == {"bob"}
    assert liked.dislikes == {"carol"}


async def test_create_get_roundtrip_preserves_all_inputs(store, alice):
    data = {
        "name": "Wool Scarf",
        "price": 55.5,
        "url": "https://knit.example.com/scarf",
        "originalUrl": "https://knit.example.com/scarf?src=share",
        "description": "Merino wool",
        "photo": "https://cdn.example.com/scarf.jpg",
        "photos": ["https://cdn.example.com/scarf-2.jpg"],
        "color": "Grey",
        "size": "One Size",
        "ceId": "ce_123",
        "keywords": ["wool", "scarf", "winter"],
    }

    created = await catalog_service.create_product(store, alice, data)
    loaded = await catalog_service.get_product(store, created.id)

    assert loaded.name == "Wool Scarf"
    assert loaded.price == 55.5
    assert loaded.url == data["url"]
    assert loaded.original_url == data["originalUrl"]
    assert loaded.description == "Merino wool"
    assert loaded.photo.url == data["photo"]
    assert [p.url for p in loaded.photos] == data["photos"]
    assert loaded.color == "Grey"
    assert loaded.size == "One Size"
    assert loaded.ce_id == "ce_123"
    assert loaded.keywords == ["wool", "scarf", "winter"]
