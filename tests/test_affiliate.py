"""Liens affiliés, tracking et rollups journaliers."""
from urllib.parse import parse_qs, urlsplit

import pytest

from ollacart.core.exceptions import NotFoundError, ValidationError
from ollacart.services import affiliate_service, payment_service
from ollacart.utils.ids import today


async def test_create_link_builds_tracking_url(store, alice, make_product):
    product = await make_product(alice)

    link = await affiliate_service.create_affiliate_link(store, alice, product.id, "retailer_1", 0.08)

    assert link.affiliate_code.startswith("aff_")
    query = parse_qs(urlsplit(link.affiliate_url).query)
    assert query["ref"] == [link.affiliate_code]
    assert query["color"] == ["white"]
    assert link.commission_rate == 0.08
    assert (link.clicks, link.conversions, link.revenue) == (0, 0, 0.0)
    assert link.is_active is True


def test_build_tracking_url_replaces_existing_ref():
    url = affiliate_service.build_tracking_url("https://a.example.com/p?ref=old&x=1", "aff_new")
    assert parse_qs(urlsplit(url).query) == {"x": ["1"], "ref": ["aff_new"]}


async def test_create_link_validation(store, alice, make_product):
    product = await make_product(alice)

    with pytest.raises(NotFoundError):
        await affiliate_service.create_affiliate_link(store, alice, "prod_missing", "retailer_1")
    with pytest.raises(ValidationError):
        await affiliate_service.create_affiliate_link(store, alice, product.id, "retailer_1", 1.5)


async def test_codes_are_unique(store, alice, make_product):
    product = await make_product(alice)
    links = [
        await affiliate_service.create_affiliate_link(store, alice, product.id, "retailer_1")
        for _ in range(5)
    ]
    assert len({link.affiliate_code for link in links}) == 5


async def test_track_click(store, alice, make_product):
    product = await make_product(alice)
    link = await affiliate_service.create_affiliate_link(store, alice, product.id, "retailer_1")

    await affiliate_service.track_click(store, link.affiliate_code, {"clickSource": "feed"})
    tracked = await affiliate_service.track_click(store, link.affiliate_code)

    assert tracked.clicks == 2
    rollup = await store.analytics.first({"retailer_id": "retailer_1", "date": today()})
    assert rollup.product_views == 2


async def test_track_click_with_malformed_context(store, alice, make_product):
    product = await make_product(alice)
    link = await affiliate_service.create_affiliate_link(store, alice, product.id, "retailer_1")

    tracked = await affiliate_service.track_click(store, link.affiliate_code, {"userAgent": 123})
    await affiliate_service.track_click(store, link.affiliate_code, "not-an-object")

    assert tracked.clicks == 1
    assert (await store.affiliate_links.get(link.id)).clicks == 2


async def test_unknown_code_is_a_no_op(store):
    assert await affiliate_service.track_click(store, "aff_unknown") is None
    assert await affiliate_service.track_conversion(store, "aff_unknown", 10.0) is None
    assert await store.analytics.list() == []


async def test_track_conversion_adds_commission(store, alice, make_product):
    product = await make_product(alice)
    link = await affiliate_service.create_affiliate_link(store, alice, product.id, "retailer_1", 0.1)

    tracked = await affiliate_service.track_conversion(store, link.affiliate_code, 200.0)

    assert tracked.conversions == 1
    assert tracked.revenue == pytest.approx(20.0)
    rollup = await store.analytics.first({"retailer_id": "retailer_1", "date": today()})
    assert rollup.purchases == 1
    assert rollup.revenue == pytest.approx(200.0)


async def test_track_conversion_rejects_negative_revenue(store, alice, make_product):
    product = await make_product(alice)
    link = await affiliate_service.create_affiliate_link(store, alice, product.id, "retailer_1")
    with pytest.raises(ValidationError):
        await affiliate_service.track_conversion(store, link.affiliate_code, -5)


async def test_rollup_has_one_row_per_retailer_and_day(any_store):
    await affiliate_service.record_retailer_event(any_store, "r1", "click", day="2024-03-01")
    await affiliate_service.record_retailer_event(any_store, "r1", "click", day="2024-03-01")
    await affiliate_service.record_retailer_event(any_store, "r1", "cart_add", day="2024-03-01")
    await affiliate_service.record_retailer_event(any_store, "r1", "conversion", revenue=50.0, day="2024-03-01")
    await affiliate_service.record_retailer_event(any_store, "r1", "click", day="2024-03-02")
    await affiliate_service.record_retailer_event(any_store, "r2", "click", day="2024-03-01")

    rows = await any_store.analytics.list({"retailer_id": "r1"}, order_by=[("date", "asc")])

    assert [row.date for row in rows] == ["2024-03-01", "2024-03-02"]
    first = rows[0]
    assert (first.product_views, first.cart_adds, first.purchases) == (2, 1, 1)
    assert first.revenue == pytest.approx(50.0)
    assert rows[1].product_views == 1


async def test_record_unknown_event(store):
    with pytest.raises(ValueError):
        await affiliate_service.record_retailer_event(store, "r1", "refund")


async def test_links_listing_and_summary(store, alice, bob, make_product):
    product = await make_product(alice)
    first = await affiliate_service.create_affiliate_link(store, alice, product.id, "retailer_1", 0.1)
    await affiliate_service.create_affiliate_link(store, alice, product.id, "retailer_2")
    await affiliate_service.create_affiliate_link(store, bob, product.id, "retailer_1")
    await affiliate_service.track_click(store, first.affiliate_code)
    await affiliate_service.track_conversion(store, first.affiliate_code, 50.0)

    links = await affiliate_service.get_affiliate_links(store, alice)
    summary = affiliate_service.summarize_links(links)

    assert len(links) == 2
    assert summary.total_links == 2
    assert summary.total_clicks == 1
    assert summary.total_conversions == 1
    assert summary.total_revenue == pytest.approx(5.0)


async def test_conversion_credits_commission_not_gross(store, alice, provider, make_product):
    retailer = await payment_service.create_retailer(
        store, alice, provider, name="Shop", email="shop@example.com", domain="https://shop.example.com",
    )
    product = await make_product(alice)
    link = await affiliate_service.create_affiliate_link(
        store, alice, product.id, retailer.id, retailer.commission_rate
    )

    tracked = await affiliate_service.track_conversion(store, link.affiliate_code, 100)

    assert retailer.commission_rate == 0.05
    assert tracked.conversions == link.conversions + 1
    assert tracked.revenue == pytest.approx(5.0)
