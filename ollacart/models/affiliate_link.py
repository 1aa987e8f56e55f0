from datetime import datetime
from sqlalchemy import String, Integer, Float, Text
from sqlalchemy.orm import Mapped, mapped_column

from ollacart.models.base import Base, UTCDateTime


class AffiliateLinkRow(Base):
    """
    Lien traçable d'un produit pour un retailer.

    revenue = somme des commissions (pas le CA brut).
    """
    __tablename__ = "affiliate_links"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    product_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    retailer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    affiliate_code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    affiliate_url: Mapped[str] = mapped_column(Text, nullable=False)
    commission_rate: Mapped[float] = mapped_column(Float, nullable=False)

    # Compteurs
    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    conversions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    revenue: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    is_active: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
