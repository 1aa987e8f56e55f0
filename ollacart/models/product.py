from datetime import datetime
from typing import Optional
from sqlalchemy import String, Float, Text, Integer, BigInteger, Index
from sqlalchemy.orm import Mapped, mapped_column

from ollacart.models.base import Base, UTCDateTime


class ProductRow(Base):
    """
    Ligne persistée d'un produit ajouté par un utilisateur.

    Les champs tableau (keywords, photos, forked_ids, likes, dislikes) sont
    stockés en texte JSON et décodés par le store.
    La photo principale est aplatie en trois colonnes photo_*.
    """
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    keywords: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON
    color: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    size: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    price: Mapped[float] = mapped_column(Float, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    original_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    domain: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Photo principale + photos additionnelles (JSON)
    photo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    photo_small: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    photo_normal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    photos: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Etat social (0/1)
    shared: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    purchased: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    purchased_status: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    likes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON
    dislikes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON

    # Provenance
    fork_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    forked_ids: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON

    ce_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    sequence: Mapped[int] = mapped_column(BigInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (
        Index("ix_products_sequence", "sequence"),
        Index("ix_products_user_fork", "user_id", "fork_id"),
    )

    def __repr__(self) -> str:
        return f"<Product {self.id} - {self.name[:30]} @ {self.price}>"
