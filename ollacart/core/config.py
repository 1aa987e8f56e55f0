"""
Configuration de l'application (variables d'environnement).
"""
import os

# Stockage
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./ollacart.db")
STORE_BACKEND = os.getenv("STORE_BACKEND", "sql")  # sql | memory

# Auth (tokens émis par le fournisseur d'identité)
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALGO = os.getenv("JWT_ALGO", "HS256")
TOKEN_EXPIRE_MIN = int(os.getenv("TOKEN_EXPIRE_MIN", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Commerce
DEFAULT_COMMISSION_RATE = float(os.getenv("DEFAULT_COMMISSION_RATE", "0.05"))
MOCK_UNIT_PRICE = float(os.getenv("MOCK_UNIT_PRICE", "29.99"))
CURRENCY = os.getenv("CURRENCY", "usd")
CART_TYPES = ("shopping", "share", "sale")

# Mode dégradé: données de démo si le store est injoignable
DEMO_FALLBACK_ENABLED = os.getenv("DEMO_FALLBACK_ENABLED", "true").lower() in ("1", "true", "yes")

# Fournisseur de paiement (simulé)
CONNECT_ONBOARDING_BASE_URL = os.getenv(
    "CONNECT_ONBOARDING_BASE_URL", "https://connect.stripe.com/setup/s"
)

ANALYTICS_DEFAULT_DAYS = int(os.getenv("ANALYTICS_DEFAULT_DAYS", "30"))

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173"
    ).split(",")
    if origin.strip()
]
