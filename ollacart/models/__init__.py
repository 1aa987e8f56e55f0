from ollacart.models.base import Base
from ollacart.models.product import ProductRow
from ollacart.models.cart_item import CartItemRow
from ollacart.models.affiliate_link import AffiliateLinkRow
from ollacart.models.retailer import RetailerRow, RetailerAnalyticsRow
from ollacart.models.payment import StripePaymentRow

__all__ = [
    'Base', 'ProductRow', 'CartItemRow', 'AffiliateLinkRow',
    'RetailerRow', 'RetailerAnalyticsRow', 'StripePaymentRow',
]
