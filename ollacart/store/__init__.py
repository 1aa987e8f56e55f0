from typing import Optional

from ollacart.core.config import STORE_BACKEND
from ollacart.store.base import Collection, Store, StoreResult
from ollacart.store.memory import MemoryStore
from ollacart.store.sql import SQLStore


async def open_store(backend: Optional[str] = None, url: Optional[str] = None) -> Store:
    """Construit et prépare le store configuré (STORE_BACKEND: sql | memory)."""
    backend = backend or STORE_BACKEND
    if backend == "memory":
        store = MemoryStore()
    elif backend == "sql":
        store = SQLStore(url=url)
    else:
        raise ValueError(f"Unknown store backend {backend!r}")
    await store.open()
    return store


__all__ = ['Collection', 'Store', 'StoreResult', 'MemoryStore', 'SQLStore', 'open_store']
