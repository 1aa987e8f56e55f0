"""
Service retailers & paiements.

Cycle de vie retailer:
    created (pas de compte) -> connecting (compte, onboarding en cours) -> complete

Cycle de vie paiement:
    pending -> succeeded | failed
Un paiement terminal ne change plus de statut (rejouer la même transition est un no-op).
"""
from datetime import timedelta
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from ollacart.core.config import ANALYTICS_DEFAULT_DAYS, CURRENCY, DEFAULT_COMMISSION_RATE, MOCK_UNIT_PRICE
from ollacart.core.exceptions import (
    NotFoundError,
    OnboardingIncomplete,
    PaymentProviderError,
    PaymentStateError,
    ProviderAccountMissing,
    ValidationError,
)
from ollacart.core.logging import get_logger, timed
from ollacart.core.security import Caller
from ollacart.schemas import (
    AnalyticsSummary,
    CartItem,
    DailyAnalytics,
    Retailer,
    RetailerCreate,
    StripePayment,
    parse_payload,
)
from ollacart.services.affiliate_service import record_retailer_event
from ollacart.services.payment_provider import MockPaymentProvider
from ollacart.store import Store
from ollacart.utils.ids import new_id, utcnow

logger = get_logger(__name__)

RETAILERS = "retailers"
PAYMENTS = "stripe_payments"


# =============================================================================
# RETAILERS
# =============================================================================

async def get_retailer(store: Store, retailer_id: str) -> Optional[Retailer]:
    return await store.retailers.get(retailer_id)


async def require_retailer(store: Store, retailer_id: str) -> Retailer:
    retailer = await store.retailers.get(retailer_id)
    if retailer is None:
        raise NotFoundError("Retailer not found", entity=RETAILERS, entity_id=retailer_id)
    return retailer


async def create_retailer(
    store: Store,
    caller: Caller,
    provider: MockPaymentProvider,
    name: str,
    email: str,
    domain: str,
    commission_rate: float = DEFAULT_COMMISSION_RATE,
) -> Retailer:
    """
    Crée le retailer puis provisionne son compte chez le fournisseur.

    Un échec du fournisseur ne fait pas échouer la création: le retailer
    reste à l'état "created" et provision_provider_account peut être relancé.
    """
    payload = parse_payload(RetailerCreate, {
        "name": name,
        "email": email,
        "domain": domain,
        "commission_rate": commission_rate,
    })

    now = utcnow()
    retailer = await store.retailers.create(Retailer(
        id=new_id("retailer"),
        user_id=caller.user_id,
        name=payload.name,
        email=str(payload.email),
        domain=payload.domain,
        commission_rate=payload.commission_rate,
        created_at=now,
        updated_at=now,
    ))
    logger.entity_created(RETAILERS, retailer.id, user_id=caller.user_id, domain=retailer.domain)

    try:
        return await provision_provider_account(store, provider, retailer.id)
    except PaymentProviderError as e:
        logger.error(
            "Payment provider account creation failed, retailer kept without account",
            entity=RETAILERS,
            entity_id=retailer.id,
            user_id=caller.user_id,
            error_type=type(e).__name__,
            exc_info=False,
        )
        return retailer


async def provision_provider_account(store: Store, provider: MockPaymentProvider, retailer_id: str) -> Retailer:
    """Crée le compte Connect du retailer. No-op si le compte existe déjà."""
    retailer = await require_retailer(store, retailer_id)
    if retailer.stripe_account_id:
        return retailer

    account = await provider.create_connect_account(retailer.id, retailer.email)
    updated = await store.retailers.update(retailer.id, {
        "stripe_account_id": account.account_id,
        "updated_at": utcnow(),
    })
    if updated is None:
        raise NotFoundError("Retailer not found", entity=RETAILERS, entity_id=retailer_id)
    logger.info("Payment provider account provisioned", entity=RETAILERS, entity_id=retailer_id)
    return updated


async def get_onboarding_link(store: Store, provider: MockPaymentProvider, retailer_id: str) -> str:
    retailer = await require_retailer(store, retailer_id)
    if not retailer.stripe_account_id:
        raise ProviderAccountMissing(entity=RETAILERS, entity_id=retailer_id)
    return await provider.create_account_link(retailer.stripe_account_id)


async def handle_account_updated(store: Store, account: Mapping[str, Any]) -> Optional[Retailer]:
    """
    Synchronise l'état d'onboarding depuis un événement account.updated.

    complete = charges_enabled ET payouts_enabled. Compte inconnu: ignoré (None).
    """
    account_id = account.get("id")
    if not isinstance(account_id, str):
        account_id = None
    retailer = await store.retailers.first({"stripe_account_id": account_id}) if account_id else None
    if retailer is None:
        logger.info("account.updated for unknown account ignored", entity=RETAILERS, account_id=account_id)
        return None

    complete = bool(account.get("charges_enabled")) and bool(account.get("payouts_enabled"))
    updated = await store.retailers.update(retailer.id, {
        "stripe_onboarding_complete": complete,
        "updated_at": utcnow(),
    })
    logger.info(
        "Retailer onboarding state synced",
        entity=RETAILERS,
        entity_id=retailer.id,
        onboarding_complete=complete,
    )
    return updated


# =============================================================================
# PAIEMENTS
# =============================================================================

async def _unit_price(store: Store, product_id: str) -> float:
    # Produit introuvable: prix fixe simulé
    product = await store.products.get(product_id)
    if product is None:
        return MOCK_UNIT_PRICE
    return product.price


@timed(logger)
async def create_payment_intent(
    store: Store,
    caller: Caller,
    provider: MockPaymentProvider,
    cart_items: Iterable[Any],
    retailer_id: str,
) -> StripePayment:
    """
    Crée un paiement pending pour les items donnés.

    - amount = Σ prix unitaire × quantité
    - affiliate_commission = Σ sous-totaux affiliés × commission du retailer
    Le panier n'est pas modifié.
    """
    retailer = await require_retailer(store, retailer_id)
    if not retailer.stripe_onboarding_complete:
        raise OnboardingIncomplete(entity=RETAILERS, entity_id=retailer_id)

    items: List[CartItem] = [parse_payload(CartItem, item) for item in cart_items]
    if not items:
        raise ValidationError("Cart is empty", field="cartItems")

    amount = 0.0
    commission = 0.0
    line_totals = {}
    affiliate_link_ids = {}
    for item in items:
        subtotal = await _unit_price(store, item.product_id) * item.quantity
        amount += subtotal
        line_totals[item.id] = round(subtotal, 2)
        if item.affiliate_link_id:
            commission += subtotal * retailer.commission_rate
            affiliate_link_ids[item.id] = item.affiliate_link_id

    payment_id = new_id("payment")
    intent_id = await provider.create_payment_intent(
        amount=amount,
        currency=CURRENCY,
        application_fee=commission,
        destination=retailer.stripe_account_id,
        metadata={"paymentId": payment_id, "retailerId": retailer.id, "userId": caller.user_id},
    )

    now = utcnow()
    payment = await store.payments.create(StripePayment(
        id=payment_id,
        stripe_payment_intent_id=intent_id,
        user_id=caller.user_id,
        retailer_id=retailer.id,
        amount=round(amount, 2),
        currency=CURRENCY,
        status="pending",
        affiliate_commission=round(commission, 2),
        cart_items=[item.id for item in items],
        line_totals=line_totals,
        affiliate_link_ids=affiliate_link_ids,
        created_at=now,
        updated_at=now,
    ))
    logger.entity_created(
        PAYMENTS,
        payment.id,
        user_id=caller.user_id,
        retailer_id=retailer.id,
        amount=payment.amount,
        items=len(items),
    )
    return payment


async def get_payment(store: Store, payment_id: str) -> Optional[StripePayment]:
    return await store.payments.get(payment_id)


async def _require_payment(store: Store, payment_id: str) -> StripePayment:
    payment = await store.payments.get(payment_id)
    if payment is None:
        raise NotFoundError("Payment not found", entity=PAYMENTS, entity_id=payment_id)
    return payment


async def _transition(store: Store, payment_id: str, target: str) -> Tuple[StripePayment, bool]:
    """
    pending -> target par écriture conditionnelle (status == "pending").

    Retourne (paiement, changé). Une livraison concurrente qui a déjà posé
    target donne changé=False; tout autre état terminal lève PaymentStateError.
    """
    payment = await _require_payment(store, payment_id)
    if payment.status == "pending":
        changed = await store.payments.update_where(
            {"id": payment_id, "status": "pending"},
            {"status": target, "updated_at": utcnow()},
        )
        payment = await _require_payment(store, payment_id)
        if changed:
            return payment, True
    if payment.status == target:
        return payment, False
    raise PaymentStateError(
        f"Cannot move a {payment.status} payment to {target}",
        current_status=payment.status,
        entity=PAYMENTS,
        entity_id=payment_id,
    )


async def confirm_payment(store: Store, payment_id: str) -> StripePayment:
    """
    pending -> succeeded, puis crédite les liens affiliés.

    Chaque item affilié compte une conversion; revenue du lien +=
    sous-total de l'item × commission du lien. Seule la livraison qui
    effectue la transition crédite les liens.
    """
    payment, changed = await _transition(store, payment_id, "succeeded")
    if not changed:
        logger.info("Payment already succeeded", entity=PAYMENTS, entity_id=payment_id)
        return payment

    credited = 0
    for item_id in payment.cart_items:
        link_id = payment.affiliate_link_ids.get(item_id)
        if not link_id:
            continue
        link = await store.affiliate_links.get(link_id)
        if link is None:
            logger.debug("Affiliate link gone, conversion skipped", entity=PAYMENTS, entity_id=payment_id, link_id=link_id)
            continue
        subtotal = payment.line_totals.get(item_id, 0.0)
        await store.affiliate_links.increment(link.id, {
            "conversions": 1,
            "revenue": subtotal * link.commission_rate,
        })
        await store.affiliate_links.update(link.id, {"updated_at": utcnow()})
        credited += 1

    await record_retailer_event(store, payment.retailer_id, "conversion", revenue=payment.amount)
    logger.info(
        "Payment succeeded",
        entity=PAYMENTS,
        entity_id=payment_id,
        user_id=payment.user_id,
        amount=payment.amount,
        affiliate_conversions=credited,
    )
    return payment


async def fail_payment(store: Store, payment_id: str) -> StripePayment:
    """pending -> failed. Sans effet sur les liens affiliés."""
    payment, changed = await _transition(store, payment_id, "failed")
    if changed:
        logger.warning("Payment failed", entity=PAYMENTS, entity_id=payment_id, user_id=payment.user_id)
    return payment


# =============================================================================
# DASHBOARD RETAILER
# =============================================================================

async def get_retailer_payments(store: Store, retailer_id: str) -> List[StripePayment]:
    return await store.payments.list({"retailer_id": retailer_id}, order_by=[("created_at", "desc")])


async def get_retailer_analytics(
    store: Store,
    retailer_id: str,
    days: int = ANALYTICS_DEFAULT_DAYS,
) -> AnalyticsSummary:
    """
    Agrégats sur les rollups journaliers des `days` derniers jours.

    conversion_rate = purchases / views × 100 (0 sans vues).
    """
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise ValidationError("days must be a positive integer", field="days")

    start = (utcnow().date() - timedelta(days=days)).isoformat()
    rows = await store.analytics.list(
        {"retailer_id": retailer_id, "date": {"gte": start}},
        order_by=[("date", "desc")],
    )

    total_views = sum(row.product_views for row in rows)
    total_purchases = sum(row.purchases for row in rows)
    return AnalyticsSummary(
        total_revenue=sum(row.revenue for row in rows),
        total_views=total_views,
        total_purchases=total_purchases,
        conversion_rate=(total_purchases / total_views) * 100 if total_views > 0 else 0.0,
        daily_data=[
            DailyAnalytics(date=row.date, revenue=row.revenue, views=row.product_views, purchases=row.purchases)
            for row in rows
        ],
    )
