"""
Smoke Tests - Parcours complet catalogue -> panier -> affiliation -> paiement.
Usage: python tests/smoke_test.py [memory|sql]
"""
import asyncio
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Add parent dir to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from ollacart.core.security import Caller
from ollacart.services import affiliate_service, cart_service, catalog_service, payment_service
from ollacart.services.payment_provider import MockPaymentProvider
from ollacart.services.webhook_service import handle_webhook
from ollacart.store import open_store


@dataclass
class StepResult:
    step: str
    success: bool
    duration_ms: float
    detail: Optional[str] = None
    error: Optional[str] = None


ALICE = Caller(user_id="smoke_alice")
BOB = Caller(user_id="smoke_bob")


class Scenario:
    """État partagé entre les étapes du parcours."""

    def __init__(self, store, provider):
        self.store = store
        self.provider = provider
        self.product = None
        self.link = None
        self.retailer = None
        self.payment = None

    async def create_product(self):
        self.product = await catalog_service.create_product(self.store, ALICE, {
            "name": "Smoke Sneakers",
            "price": 120.0,
            "url": "https://sneakers.example.com/p/smoke",
            "photo": "https://cdn.example.com/smoke.jpg",
        })
        await catalog_service.update_product(self.store, ALICE, self.product.id, {"shared": True})
        return f"{self.product.id} @ {self.product.domain}"

    async def fork_product(self):
        fork = await catalog_service.fork_product(self.store, BOB, self.product.id)
        return f"forked_ids={fork.forked_ids}"

    async def create_retailer(self):
        retailer = await payment_service.create_retailer(
            self.store, ALICE, self.provider,
            name="Smoke Shop", email="smoke@example.com", domain="https://sneakers.example.com",
        )
        event = self.provider.account_updated_event(retailer.stripe_account_id)
        await handle_webhook(self.store, event)
        self.retailer = await payment_service.get_retailer(self.store, retailer.id)
        return f"{self.retailer.id} onboarding={self.retailer.onboarding_state}"

    async def affiliate_link(self):
        self.link = await affiliate_service.create_affiliate_link(
            self.store, ALICE, self.product.id, self.retailer.id, 0.1
        )
        await affiliate_service.track_click(self.store, self.link.affiliate_code)
        return self.link.affiliate_url

    async def add_to_cart(self):
        item = await cart_service.add_to_cart(
            self.store, BOB, self.product.id, quantity=2, affiliate_link_id=self.link.id
        )
        return f"qty={item.quantity}"

    async def checkout(self):
        items = (await cart_service.get_cart_items(self.store, BOB, fallback_to_demo=False)).items
        self.payment = await payment_service.create_payment_intent(
            self.store, BOB, self.provider, items, self.retailer.id
        )
        event = self.provider.payment_intent_event(self.payment, succeeded=True)
        result = await handle_webhook(self.store, event)
        return f"{self.payment.amount:.2f} {self.payment.currency} webhook={result}"

    async def verify_analytics(self):
        link = await self.store.affiliate_links.get(self.link.id)
        summary = await payment_service.get_retailer_analytics(self.store, self.retailer.id)
        if link.conversions != 1 or summary.total_purchases != 1:
            raise AssertionError(f"conversions={link.conversions} purchases={summary.total_purchases}")
        return f"commission={link.revenue:.2f} conversion_rate={summary.conversion_rate:.0f}%"


STEPS = [
    "create_product",
    "fork_product",
    "create_retailer",
    "affiliate_link",
    "add_to_cart",
    "checkout",
    "verify_analytics",
]


async def run_step(scenario: Scenario, step: str) -> StepResult:
    """Exécute une étape et retourne le résultat."""
    start = time.perf_counter()
    try:
        detail = await getattr(scenario, step)()
        return StepResult(step=step, success=True, duration_ms=(time.perf_counter() - start) * 1000, detail=detail)
    except Exception as e:
        return StepResult(
            step=step,
            success=False,
            duration_ms=(time.perf_counter() - start) * 1000,
            error=f"{type(e).__name__}: {str(e)[:100]}",
        )


async def run(backend: str) -> int:
    store = await open_store(backend=backend, url="sqlite+aiosqlite://" if backend == "sql" else None)
    scenario = Scenario(store, MockPaymentProvider())

    print("\n" + "=" * 60)
    print(f"SMOKE TESTS - {backend} store")
    print("=" * 60 + "\n")

    results = []
    try:
        for step in STEPS:
            print(f"Running {step}...", end=" ", flush=True)
            result = await run_step(scenario, step)
            results.append(result)

            if result.success:
                print(f"✓ OK ({result.duration_ms:.0f}ms) - {result.detail}")
            else:
                print(f"✗ FAIL ({result.duration_ms:.0f}ms) - {result.error}")
                break
    finally:
        await store.close()

    # Summary
    print("\n" + "-" * 60)
    passed = sum(1 for r in results if r.success)
    total = len(STEPS)

    print(f"\nResults: {passed}/{total} steps OK")

    if passed == total:
        print("✓ All smoke tests PASSED")
        return 0
    else:
        print("✗ Some tests FAILED")
        return 1


def main():
    backend = sys.argv[1] if len(sys.argv) > 1 else "memory"
    return asyncio.run(run(backend))


if __name__ == "__main__":
    sys.exit(main())
