from datetime import datetime
from typing import Dict, List, Literal

from pydantic import Field

from ollacart.schemas.common import CamelModel

PaymentStatus = Literal["pending", "succeeded", "failed", "canceled"]


class StripePayment(CamelModel):
    id: str
    stripe_payment_intent_id: str
    user_id: str
    retailer_id: str
    amount: float  # brut
    currency: str
    status: PaymentStatus = "pending"
    affiliate_commission: float = 0.0
    # Capturés à la création: ids des cart items, sous-total et lien affilié par item
    cart_items: List[str] = Field(default_factory=list)
    line_totals: Dict[str, float] = Field(default_factory=dict)
    affiliate_link_ids: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
