from datetime import datetime
from sqlalchemy import String, Float, Text
from sqlalchemy.orm import Mapped, mapped_column

from ollacart.models.base import Base, UTCDateTime


class StripePaymentRow(Base):
    """
    Tentative de checkout.

    status: pending -> succeeded | failed (terminal)
    cart_items / line_totals / affiliate_link_ids: JSON capturé à la création de l'intent.
    """
    __tablename__ = "stripe_payments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    stripe_payment_intent_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    retailer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="usd")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    affiliate_commission: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    cart_items: Mapped[str] = mapped_column(Text, nullable=False)  # JSON
    line_totals: Mapped[str] = mapped_column(Text, nullable=False)  # JSON
    affiliate_link_ids: Mapped[str] = mapped_column(Text, nullable=False)  # JSON

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
