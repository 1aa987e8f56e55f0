"""
Service d'affiliation.

- Émission de liens traçables (code + URL ?ref=<code>)
- Compteurs clicks / conversions, revenue = commissions cumulées
- Rollups journaliers par retailer (retailer_analytics)
"""
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ollacart.core.config import DEFAULT_COMMISSION_RATE
from ollacart.core.exceptions import DuplicateRecordError, ValidationError
from ollacart.core.logging import get_logger
from ollacart.core.security import Caller
from ollacart.schemas import AffiliateLink, ClickContext, LinkSummary, RetailerAnalytics, parse_payload
from ollacart.services.catalog_service import require_product
from ollacart.store import Store
from ollacart.utils.ids import new_id, today, utcnow

logger = get_logger(__name__)

ENTITY = "affiliate_links"

# Type d'événement -> compteurs du rollup journalier
_EVENT_COUNTERS: Dict[str, Dict[str, int]] = {
    "click": {"product_views": 1},
    "cart_add": {"cart_adds": 1},
    "conversion": {"purchases": 1},
}


def _check_rate(rate: Any) -> float:
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not 0 <= rate <= 1:
        raise ValidationError("Commission rate must be between 0 and 1", field="commissionRate")
    return float(rate)


def build_tracking_url(url: str, code: str) -> str:
    """Ajoute ref=<code> à la query de l'URL produit (query existante conservée)."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "ref"]
    query.append(("ref", code))
    return urlunsplit(parts._replace(query=urlencode(query)))


async def create_affiliate_link(
    store: Store,
    caller: Caller,
    product_id: str,
    retailer_id: str,
    commission_rate: float = DEFAULT_COMMISSION_RATE,
) -> AffiliateLink:
    rate = _check_rate(commission_rate)
    product = await require_product(store, product_id)

    code = new_id("aff")
    now = utcnow()
    link = await store.affiliate_links.create(AffiliateLink(
        id=new_id("afl"),
        product_id=product.id,
        retailer_id=retailer_id,
        user_id=caller.user_id,
        affiliate_code=code,
        affiliate_url=build_tracking_url(product.url, code),
        commission_rate=rate,
        created_at=now,
        updated_at=now,
    ))
    logger.entity_created(ENTITY, link.id, user_id=caller.user_id, retailer_id=retailer_id, rate=rate)
    return link


async def get_affiliate_links(store: Store, caller: Caller) -> List[AffiliateLink]:
    return await store.affiliate_links.list({"user_id": caller.user_id}, order_by=[("created_at", "desc")])


def summarize_links(links: List[AffiliateLink]) -> LinkSummary:
    return LinkSummary(
        total_links=len(links),
        total_clicks=sum(link.clicks for link in links),
        total_conversions=sum(link.conversions for link in links),
        total_revenue=sum(link.revenue for link in links),
    )


async def track_click(store: Store, code: str, context: Any = None) -> Optional[AffiliateLink]:
    """
    Compte un clic sur un lien affilié.

    Code inconnu: no-op (un clic ne doit jamais bloquer la navigation).
    Contexte invalide: ignoré, le clic est compté quand même.
    """
    try:
        ctx = parse_payload(ClickContext, context or {})
    except ValidationError as e:
        logger.warning("Invalid click context ignored", entity=ENTITY, code=code, error=e.message)
        ctx = ClickContext()
    link = await store.affiliate_links.first({"affiliate_code": code})
    if link is None:
        logger.info("Click on unknown affiliate code ignored", entity=ENTITY, code=code)
        return None

    await store.affiliate_links.increment(link.id, {"clicks": 1})
    updated = await store.affiliate_links.update(link.id, {"updated_at": utcnow()})
    await record_retailer_event(store, link.retailer_id, "click")
    logger.debug(
        "Affiliate click tracked",
        entity=ENTITY,
        entity_id=link.id,
        click_source=ctx.click_source,
        referrer=ctx.referrer,
    )
    return updated


async def track_conversion(store: Store, code: str, gross_revenue: float) -> Optional[AffiliateLink]:
    """
    Compte une conversion.

    revenue du lien += gross_revenue * commission_rate (commission, pas le brut).
    Le rollup journalier reçoit le brut.
    """
    if isinstance(gross_revenue, bool) or not isinstance(gross_revenue, (int, float)) or gross_revenue < 0:
        raise ValidationError("Revenue must be a non-negative number", field="grossRevenue")

    link = await store.affiliate_links.first({"affiliate_code": code})
    if link is None:
        logger.info("Conversion on unknown affiliate code ignored", entity=ENTITY, code=code)
        return None

    commission = gross_revenue * link.commission_rate
    await store.affiliate_links.increment(link.id, {"conversions": 1, "revenue": commission})
    updated = await store.affiliate_links.update(link.id, {"updated_at": utcnow()})
    await record_retailer_event(store, link.retailer_id, "conversion", revenue=gross_revenue)
    logger.info(
        "Affiliate conversion tracked",
        entity=ENTITY,
        entity_id=link.id,
        gross_revenue=gross_revenue,
        commission=commission,
    )
    return updated


async def record_retailer_event(
    store: Store,
    retailer_id: str,
    kind: str,
    revenue: float = 0.0,
    day: Optional[str] = None,
) -> RetailerAnalytics:
    """
    Upsert du rollup (retailer_id, date).

    - Premier événement du jour: insert avec les compteurs de l'événement
    - Sinon: incrément en place
    Chaque appel compte exactement une fois, quelle que soit la date des autres lignes.
    """
    if kind not in _EVENT_COUNTERS:
        raise ValueError(f"Unknown analytics event {kind!r}")
    deltas: Dict[str, float] = dict(_EVENT_COUNTERS[kind])
    if kind == "conversion":
        deltas["revenue"] = revenue

    day = day or today()
    key = {"retailer_id": retailer_id, "date": day}

    row = await store.analytics.first(key)
    if row is None:
        try:
            return await store.analytics.create(RetailerAnalytics(
                id=new_id("analytics"),
                retailer_id=retailer_id,
                date=day,
                created_at=utcnow(),
                **deltas,
            ))
        except DuplicateRecordError:
            # Premier événement concurrent du jour déjà inséré
            row = await store.analytics.first(key)
            if row is None:
                raise

    return await store.analytics.increment(row.id, deltas)
