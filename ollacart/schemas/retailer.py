from datetime import datetime
from typing import Dict, List, Optional

from pydantic import EmailStr, Field, computed_field

from ollacart.core.config import DEFAULT_COMMISSION_RATE
from ollacart.schemas.common import CamelModel


class Retailer(CamelModel):
    id: str
    user_id: str
    name: str
    email: str
    domain: str
    stripe_account_id: Optional[str] = None
    stripe_onboarding_complete: bool = False
    commission_rate: float
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def onboarding_state(self) -> str:
        """created -> connecting -> complete"""
        if self.stripe_onboarding_complete:
            return "complete"
        if self.stripe_account_id:
            return "connecting"
        return "created"


class RetailerCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    domain: str = Field(..., min_length=1)
    commission_rate: float = Field(DEFAULT_COMMISSION_RATE, ge=0, le=1)


class ConnectAccount(CamelModel):
    """Réponse du fournisseur de paiement à la création d'un compte Connect."""
    account_id: str
    onboarding_complete: bool = False
    charges_enabled: bool = False
    payouts_enabled: bool = False
    requirements: Dict[str, List[str]] = Field(default_factory=dict)


class RetailerAnalytics(CamelModel):
    id: str
    retailer_id: str
    date: str
    product_views: int = 0
    cart_adds: int = 0
    purchases: int = 0
    revenue: float = 0.0
    created_at: datetime


class DailyAnalytics(CamelModel):
    date: str
    revenue: float
    views: int
    purchases: int


class AnalyticsSummary(CamelModel):
    total_revenue: float
    total_views: int
    total_purchases: int
    conversion_rate: float  # en %
    daily_data: List[DailyAnalytics] = Field(default_factory=list)
