"""
Configuration du logging structuré JSON.

Chaque log contient:
- timestamp: ISO8601
- level: DEBUG/INFO/WARNING/ERROR/CRITICAL
- message: message principal
- entity: collection concernée (optionnel)
- entity_id: id de l'enregistrement (optionnel)
- user_id: appelant (optionnel)
- trace_id: ID de traçage pour corrélation (optionnel)
- duration_ms: durée en ms (optionnel)
- extra: données additionnelles
"""
import asyncio
import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Optional

# Context variable pour le trace_id (propagé à travers les appels)
_trace_id: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

_RECORD_KEYS = ("entity", "entity_id", "user_id", "duration_ms", "event_type", "error_type", "status_code")


def get_trace_id() -> Optional[str]:
    """Récupère le trace_id courant."""
    return _trace_id.get()


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Définit un trace_id. Génère un nouveau si non fourni."""
    if trace_id is None:
        trace_id = str(uuid.uuid4())[:8]
    _trace_id.set(trace_id)
    return trace_id


class JSONFormatter(logging.Formatter):
    """Formatter qui produit des logs en JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        trace_id = get_trace_id()
        if trace_id:
            log_data["trace_id"] = trace_id

        for key in _RECORD_KEYS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data") and record.extra_data:
            log_data["extra"] = record.extra_data

        return json.dumps(log_data, ensure_ascii=False, default=str)


class StructuredLogger:
    """
    Logger structuré avec méthodes helper pour le contexte des services.
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(
        self,
        level: int,
        message: str,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        user_id: Optional[str] = None,
        duration_ms: Optional[float] = None,
        event_type: Optional[str] = None,
        error_type: Optional[str] = None,
        status_code: Optional[int] = None,
        exc_info: bool = False,
        **extra
    ):
        extra_dict = {k: v for k, v in extra.items() if v is not None}

        record_extra = {}
        if entity:
            record_extra["entity"] = entity
        if entity_id:
            record_extra["entity_id"] = entity_id
        if user_id:
            record_extra["user_id"] = user_id
        if duration_ms is not None:
            record_extra["duration_ms"] = round(duration_ms, 2)
        if event_type:
            record_extra["event_type"] = event_type
        if error_type:
            record_extra["error_type"] = error_type
        if status_code:
            record_extra["status_code"] = status_code
        if extra_dict:
            record_extra["extra_data"] = extra_dict

        self._logger.log(level, message, exc_info=exc_info, extra=record_extra)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = True, **kwargs):
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def critical(self, message: str, exc_info: bool = True, **kwargs):
        self._log(logging.CRITICAL, message, exc_info=exc_info, **kwargs)

    # Méthodes spécialisées pour les services

    def entity_created(self, entity: str, entity_id: str, user_id: Optional[str] = None, **extra):
        """Log une création d'enregistrement."""
        self.info(f"{entity} created", entity=entity, entity_id=entity_id, user_id=user_id, **extra)

    def degraded_fallback(self, entity: str, error: Exception, user_id: Optional[str] = None):
        """Log un basculement sur les données de démo."""
        self.warning(
            f"Store unavailable, serving demo {entity}",
            entity=entity,
            user_id=user_id,
            error_type=type(error).__name__,
            reason=str(error)[:200],
        )

    def webhook_received(self, event_type: str, handled: bool):
        """Log la réception d'un événement webhook."""
        self.info(
            f"Webhook {'handled' if handled else 'ignored'}: {event_type}",
            event_type=event_type,
            handled=handled,
        )


def setup_logging(level: str = "INFO"):
    """
    Configure le logging pour l'application.

    Args:
        level: Niveau de log (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Supprimer les handlers existants
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    # Réduire le bruit des libs externes
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """Obtient un logger structuré."""
    return StructuredLogger(name)


def timed(logger: Optional[StructuredLogger] = None):
    """
    Décorateur pour mesurer et logger la durée d'une fonction (sync ou async).

    Usage:
        @timed(logger)
        async def create_payment_intent(...):
            ...
    """
    def decorator(func):
        def _report(start: float, error: Optional[Exception] = None):
            if not logger:
                return
            duration_ms = (time.perf_counter() - start) * 1000
            if error is None:
                logger.debug(f"{func.__name__} completed", duration_ms=duration_ms)
            else:
                logger.error(
                    f"{func.__name__} failed",
                    duration_ms=duration_ms,
                    error_type=type(error).__name__,
                    exc_info=False,
                )

        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _report(start, e)
                    raise
                _report(start)
                return result
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _report(start, e)
                raise
            _report(start)
            return result
        return wrapper
    return decorator
