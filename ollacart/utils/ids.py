"""Génération des identifiants et horodatages des enregistrements."""
import secrets
import string
import threading
import time
from datetime import datetime, timezone

_ALPHABET = string.ascii_lowercase + string.digits

_sequence_lock = threading.Lock()
_last_sequence = 0


def now_ms() -> int:
    return int(time.time() * 1000)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today() -> str:
    """Date UTC du jour, format YYYY-MM-DD (clé des rollups journaliers)."""
    return utcnow().date().isoformat()


def new_id(prefix: str) -> str:
    """Ex: prod_1718000000000_k3j9x0a2b"""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"{prefix}_{now_ms()}_{suffix}"


def next_sequence() -> int:
    """
    Valeur de tri monotone attribuée à la création (ordre d'insertion).

    Basée sur l'horloge en ms, strictement croissante dans le process.
    """
    global _last_sequence
    with _sequence_lock:
        _last_sequence = max(now_ms(), _last_sequence + 1)
        return _last_sequence
