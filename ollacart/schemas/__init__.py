from ollacart.schemas.common import CamelModel, Listing, parse_payload
from ollacart.schemas.product import Photo, Product, ProductCreate, ProductUpdate, ProductSearch
from ollacart.schemas.cart import (
    CartItem, CartItemWithProduct, CartType, AddToCartRequest, UpdateCartItemRequest, PaymentIntentRequest,
)
from ollacart.schemas.affiliate import (
    AffiliateLink, CreateAffiliateLinkRequest, ClickContext, ConversionRequest, LinkSummary,
)
from ollacart.schemas.retailer import (
    Retailer, RetailerCreate, ConnectAccount, RetailerAnalytics, DailyAnalytics, AnalyticsSummary,
)
from ollacart.schemas.payment import StripePayment, PaymentStatus

__all__ = [
    'CamelModel', 'Listing', 'parse_payload',
    'Photo', 'Product', 'ProductCreate', 'ProductUpdate', 'ProductSearch',
    'CartItem', 'CartItemWithProduct', 'CartType', 'AddToCartRequest', 'UpdateCartItemRequest',
    'PaymentIntentRequest',
    'AffiliateLink', 'CreateAffiliateLinkRequest', 'ClickContext', 'ConversionRequest', 'LinkSummary',
    'Retailer', 'RetailerCreate', 'ConnectAccount', 'RetailerAnalytics', 'DailyAnalytics',
    'AnalyticsSummary',
    'StripePayment', 'PaymentStatus',
]
