"""Dispatch des événements du fournisseur de paiement."""
import pytest

from ollacart.services import cart_service, payment_service
from ollacart.services.webhook_service import handle_webhook


async def test_account_updated_completes_onboarding(store, alice, provider):
    retailer = await payment_service.create_retailer(
        store, alice, provider, name="Shop", email="shop@example.com", domain="https://shop.example.com"
    )

    result = await handle_webhook(store, provider.account_updated_event(retailer.stripe_account_id))

    assert result == "handled"
    updated = await payment_service.get_retailer(store, retailer.id)
    assert updated.onboarding_state == "complete"


async def test_account_updated_for_unknown_account_is_ignored(store, provider):
    assert await handle_webhook(store, provider.account_updated_event("acct_unknown")) == "ignored"


async def test_payment_succeeded_confirms_payment(store, alice, provider, onboarded_retailer):
    retailer = await onboarded_retailer()
    item = await cart_service.add_to_cart(store, alice, "prod_x")
    payment = await payment_service.create_payment_intent(store, alice, provider, [item], retailer.id)

    result = await handle_webhook(store, provider.payment_intent_event(payment, succeeded=True))

    assert result == "handled"
    assert (await payment_service.get_payment(store, payment.id)).status == "succeeded"

    # Rejeu du même événement
    assert await handle_webhook(store, provider.payment_intent_event(payment, succeeded=True)) == "handled"


async def test_payment_failed_marks_payment(store, alice, provider, onboarded_retailer):
    retailer = await onboarded_retailer()
    item = await cart_service.add_to_cart(store, alice, "prod_x")
    payment = await payment_service.create_payment_intent(store, alice, provider, [item], retailer.id)

    result = await handle_webhook(store, provider.payment_intent_event(payment, succeeded=False))

    assert result == "handled"
    assert (await payment_service.get_payment(store, payment.id)).status == "failed"


async def test_payment_event_without_payment_id_is_ignored(store, provider):
    event = provider.build_event("payment_intent.succeeded", {"id": "pi_x", "metadata": {}})
    assert await handle_webhook(store, event) == "ignored"


async def test_payment_event_for_unknown_payment_is_ignored(store, provider):
    event = provider.build_event("payment_intent.succeeded", {"id": "pi_x", "metadata": {"paymentId": "payment_missing"}})
    assert await handle_webhook(store, event) == "ignored"

    failed = provider.build_event("payment_intent.payment_failed", {"id": "pi_x", "metadata": {"paymentId": "payment_missing"}})
    assert await handle_webhook(store, failed) == "ignored"


@pytest.mark.parametrize("event", [
    {"type": "payment_intent.succeeded", "data": "oops"},
    {"type": "payment_intent.succeeded", "data": {"object": ["pi_x"]}},
    {"type": "payment_intent.payment_failed", "data": {"object": {"metadata": "paymentId"}}},
    {"type": "payment_intent.succeeded", "data": {"object": {"metadata": {"paymentId": {"in": ["x"]}}}}},
    {"type": "account.updated", "data": {"object": {"id": 42}}},
    {"type": ["account.updated"]},
    "not-an-event",
])
async def test_malformed_events_are_ignored(store, event):
    assert await handle_webhook(store, event) == "ignored"


async def test_unknown_event_type_is_ignored(store, provider):
    assert await handle_webhook(store, provider.build_event("charge.refunded", {"id": "ch_1"})) == "ignored"
    assert await handle_webhook(store, {}) == "ignored"
