from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ollacart.models.base import Base, UTCDateTime


class CartItemRow(Base):
    """Appartenance d'un produit à une des trois voies de panier d'un utilisateur."""
    __tablename__ = "cart_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    cart_type: Mapped[str] = mapped_column(String(20), nullable=False)  # shopping, share, sale
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    affiliate_link_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Un seul item par (user, produit, voie)
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", "cart_type", name="uq_cart_user_product_type"),
    )

    def __repr__(self):
        return f"<CartItem {self.cart_type} user={self.user_id} product={self.product_id} x{self.quantity}>"
