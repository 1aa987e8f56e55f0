from datetime import datetime
from typing import Optional

from pydantic import Field

from ollacart.core.config import DEFAULT_COMMISSION_RATE
from ollacart.schemas.common import CamelModel


class AffiliateLink(CamelModel):
    id: str
    product_id: str
    retailer_id: str
    user_id: str
    affiliate_code: str
    affiliate_url: str
    commission_rate: float
    clicks: int = 0
    conversions: int = 0
    revenue: float = 0.0  # commissions cumulées, pas le CA brut
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class CreateAffiliateLinkRequest(CamelModel):
    product_id: str
    retailer_id: str
    commission_rate: float = Field(DEFAULT_COMMISSION_RATE, ge=0, le=1)


class ClickContext(CamelModel):
    product_id: Optional[str] = None
    click_source: str = "direct"
    user_agent: Optional[str] = None
    referrer: Optional[str] = None


class ConversionRequest(CamelModel):
    gross_revenue: float = Field(..., ge=0)


class LinkSummary(CamelModel):
    total_links: int
    total_clicks: int
    total_conversions: int
    total_revenue: float
