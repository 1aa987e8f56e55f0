"""Moteur SQLAlchemy async."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from ollacart.core.config import DATABASE_URL


def make_engine(url: Optional[str] = None, echo: bool = False) -> AsyncEngine:
    """
    Crée le moteur async pour l'URL donnée (DATABASE_URL par défaut).

    Une base SQLite en mémoire partage une seule connexion (StaticPool),
    sinon chaque connexion verrait une base vide.
    """
    url = url or DATABASE_URL
    if url.startswith("sqlite") and (url.endswith(":memory:") or url.endswith("://")):
        return create_async_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(url, echo=echo, pool_pre_ping=True)
