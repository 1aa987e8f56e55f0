"""
Surface CRUD abstraite du store d'entités.

Chaque collection expose create / get / first / update / update_where /
increment / list / delete / delete_where sur la forme normalisée (entités
pydantic). Le mapping vers les lignes de stockage passe par ollacart.store.mapping; les backends
n'implémentent que les opérations sur lignes brutes.

Erreurs:
- StorageUnavailable: backend injoignable
- DuplicateRecordError: clé d'unicité violée
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel

from ollacart.core.exceptions import StorageUnavailable
from ollacart.store.mapping import (
    AFFILIATE_LINK_SCHEMA,
    ANALYTICS_SCHEMA,
    CART_ITEM_SCHEMA,
    PAYMENT_SCHEMA,
    PRODUCT_SCHEMA,
    RETAILER_SCHEMA,
    EntitySchema,
    column_for,
    encode_order,
    encode_where,
    to_entity,
    to_row,
)

T = TypeVar("T")
E = TypeVar("E", bound=BaseModel)

Row = Dict[str, Any]
Where = Optional[Mapping[str, Any]]
OrderBy = Optional[Sequence[Tuple[str, str]]]


@dataclass
class StoreResult(Generic[T]):
    """
    Issue explicite d'une lecture: valeur ou StorageUnavailable.

    L'appelant décide quoi faire de l'erreur (propager ou données de démo).
    """
    value: Optional[T] = None
    error: Optional[StorageUnavailable] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value


class Collection(ABC, Generic[E]):
    """Collection d'un type d'entité, paramétrée par sa table de schéma."""

    def __init__(self, schema: EntitySchema):
        self.schema = schema

    @property
    def name(self) -> str:
        return self.schema.collection

    def _entity(self, row: Row) -> E:
        return to_entity(self.schema, row)

    # Opérations sur la forme normalisée

    async def create(self, entity: E) -> E:
        row = to_row(self.schema, entity.model_dump())
        return self._entity(await self._insert(row))

    async def get(self, id: str) -> Optional[E]:
        return await self.first({"id": id})

    async def first(self, where: Where, order_by: OrderBy = None) -> Optional[E]:
        rows = await self._select(encode_where(self.schema, where), encode_order(self.schema, order_by), 1, 0)
        return self._entity(rows[0]) if rows else None

    async def update(self, id: str, partial: Mapping[str, Any]) -> Optional[E]:
        """Applique uniquement les champs présents. None si l'id est inconnu."""
        if "id" in partial:
            raise ValueError("id is immutable")
        row = await self._update(id, to_row(self.schema, partial))
        return self._entity(row) if row is not None else None

    async def update_where(self, where: Mapping[str, Any], partial: Mapping[str, Any]) -> int:
        """
        Mise à jour conditionnelle en une seule écriture.

        Retourne le nombre de lignes modifiées; 0 si la condition ne tient plus.
        """
        if not where:
            raise ValueError("update_where requires a where clause")
        if "id" in partial:
            raise ValueError("id is immutable")
        return await self._update_where(encode_where(self.schema, where), to_row(self.schema, partial))

    async def increment(self, id: str, deltas: Mapping[str, float]) -> Optional[E]:
        """Ajoute des deltas à des compteurs numériques en une seule écriture."""
        columns = {column_for(self.schema, name): delta for name, delta in deltas.items()}
        row = await self._increment(id, columns)
        return self._entity(row) if row is not None else None

    async def list(
        self,
        where: Where = None,
        order_by: OrderBy = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[E]:
        rows = await self._select(
            encode_where(self.schema, where), encode_order(self.schema, order_by), limit, offset
        )
        return [self._entity(row) for row in rows]

    async def try_list(
        self,
        where: Where = None,
        order_by: OrderBy = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> StoreResult[List[E]]:
        try:
            return StoreResult(value=await self.list(where, order_by, limit, offset))
        except StorageUnavailable as e:
            return StoreResult(error=e)

    async def delete(self, id: str) -> bool:
        return await self._delete({"id": id}) > 0

    async def delete_where(self, where: Mapping[str, Any]) -> int:
        """Supprime toutes les lignes correspondantes en une seule opération."""
        if not where:
            raise ValueError("delete_where requires a where clause")
        return await self._delete(encode_where(self.schema, where))

    # Opérations sur lignes brutes (backends)

    @abstractmethod
    async def _insert(self, row: Row) -> Row:
        ...

    @abstractmethod
    async def _select(
        self,
        where: Row,
        order: Tuple[Tuple[str, bool], ...],
        limit: Optional[int],
        offset: int,
    ) -> List[Row]:
        ...

    @abstractmethod
    async def _update(self, id: str, values: Row) -> Optional[Row]:
        ...

    @abstractmethod
    async def _update_where(self, where: Row, values: Row) -> int:
        ...

    @abstractmethod
    async def _increment(self, id: str, deltas: Row) -> Optional[Row]:
        ...

    @abstractmethod
    async def _delete(self, where: Row) -> int:
        ...


class Store:
    """
    Les six collections du domaine.

    Les services reçoivent un Store injecté; aucun état global.
    """

    def __init__(self):
        self.products = self._collection(PRODUCT_SCHEMA)
        self.cart_items = self._collection(CART_ITEM_SCHEMA)
        self.affiliate_links = self._collection(AFFILIATE_LINK_SCHEMA)
        self.retailers = self._collection(RETAILER_SCHEMA)
        self.payments = self._collection(PAYMENT_SCHEMA)
        self.analytics = self._collection(ANALYTICS_SCHEMA)

    def _collection(self, schema: EntitySchema) -> Collection:
        raise NotImplementedError

    async def open(self) -> None:
        """Prépare le backend (création des tables, etc.)."""

    async def close(self) -> None:
        """Libère les ressources du backend."""
