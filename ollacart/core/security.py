"""
Identité de l'appelant.

L'authentification (inscription, login, sessions) est déléguée au fournisseur
d'identité externe. Ici on ne fait que vérifier le token bearer et exposer
l'appelant courant aux services.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, Request
from jose import jwt, JWTError

from ollacart.core.config import JWT_SECRET, JWT_ALGO, TOKEN_EXPIRE_MIN

COOKIE_NAME = "access_token"


@dataclass(frozen=True)
class Caller:
    """Appelant courant, injecté dans chaque service pour scoper les enregistrements."""
    user_id: str
    email: Optional[str] = None


def create_access_token(subject: str, email: Optional[str] = None, expires_minutes: int = TOKEN_EXPIRE_MIN) -> str:
    payload = {
        "sub": subject,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
        "iat": datetime.now(timezone.utc),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGO)


def decode_access_token(token: str) -> Caller:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGO])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return Caller(user_id=user_id, email=payload.get("email"))


def get_current_caller(request: Request) -> Caller:
    """Extract and validate the current caller from the bearer token or cookie."""
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]

    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    return decode_access_token(token)
