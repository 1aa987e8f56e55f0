from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from ollacart.schemas.common import CamelModel
from ollacart.schemas.product import Product

CartType = Literal["shopping", "share", "sale"]


class CartItem(CamelModel):
    id: str
    user_id: str
    product_id: str
    cart_type: CartType
    quantity: int
    affiliate_link_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CartItemWithProduct(CartItem):
    product: Product


class AddToCartRequest(CamelModel):
    product_id: str
    quantity: int = 1
    cart_type: CartType = "shopping"
    affiliate_link_id: Optional[str] = None


class UpdateCartItemRequest(CamelModel):
    quantity: int


class PaymentIntentRequest(CamelModel):
    retailer_id: str
    cart_type: CartType = "shopping"
    # Sous-ensemble des items de la voie (tous si absent)
    cart_item_ids: Optional[List[str]] = Field(None)
