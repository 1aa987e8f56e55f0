from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Float, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ollacart.models.base import Base, UTCDateTime


class RetailerRow(Base):
    """Compte vendeur + liaison au fournisseur de paiement."""
    __tablename__ = "retailers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str] = mapped_column(String(255), nullable=False)

    stripe_account_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    stripe_onboarding_complete: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    commission_rate: Mapped[float] = mapped_column(Float, nullable=False)
    is_active: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)


class RetailerAnalyticsRow(Base):
    """Rollup journalier par retailer, une ligne par (retailer_id, date)."""
    __tablename__ = "retailer_analytics"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    retailer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD

    product_views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cart_adds: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    purchases: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    revenue: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("retailer_id", "date", name="uq_retailer_analytics_day"),
    )
