import pytest

from ollacart.core.security import Caller
from ollacart.db.session import make_engine
from ollacart.services import catalog_service, payment_service
from ollacart.services.payment_provider import MockPaymentProvider
from ollacart.store import MemoryStore, SQLStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
async def sql_store():
    store = SQLStore(engine=make_engine("sqlite+aiosqlite://"))
    await store.open()
    yield store
    await store.close()


@pytest.fixture(params=["memory", "sql"])
async def any_store(request):
    """Même scénario sur les deux backends."""
    if request.param == "memory":
        yield MemoryStore()
        return
    store = SQLStore(engine=make_engine("sqlite+aiosqlite://"))
    await store.open()
    yield store
    await store.close()


@pytest.fixture
def alice():
    return Caller(user_id="alice", email="alice@example.com")


@pytest.fixture
def bob():
    return Caller(user_id="bob", email="bob@example.com")


@pytest.fixture
def provider():
    return MockPaymentProvider()


@pytest.fixture
def make_product(store):
    async def _make(caller, **overrides):
        data = {
            "name": "Linen Shirt",
            "price": 40.0,
            "url": "https://shop.example.com/p/linen-shirt?color=white",
            "photo": "https://cdn.example.com/linen.jpg",
            "keywords": ["linen", "shirt"],
        }
        data.update(overrides)
        return await catalog_service.create_product(store, caller, data)
    return _make


@pytest.fixture
def onboarded_retailer(store, provider, alice):
    """Retailer avec compte fournisseur et onboarding terminé."""
    async def _make(caller=None, commission_rate=0.1):
        retailer = await payment_service.create_retailer(
            store,
            caller or alice,
            provider,
            name="Olla Shop",
            email="shop@example.com",
            domain="https://shop.example.com",
            commission_rate=commission_rate,
        )
        return await payment_service.handle_account_updated(store, {
            "id": retailer.stripe_account_id,
            "charges_enabled": True,
            "payouts_enabled": True,
        })
    return _make
