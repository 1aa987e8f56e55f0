"""
Backend mémoire du store d'entités.

Garde les lignes dans la même forme que les tables SQL (colonnes snake_case,
texte JSON) et applique les mêmes clés d'unicité. Sert aux tests et au
STORE_BACKEND=memory. set_available(False) simule un store injoignable.
"""
import copy
from typing import Any, Dict, List, Optional, Tuple

from ollacart.core.exceptions import DuplicateRecordError, StorageUnavailable
from ollacart.store.base import Collection, Row, Store
from ollacart.store.mapping import EntitySchema


def _matches(row: Row, where: Row) -> bool:
    for column, condition in where.items():
        value = row.get(column)
        if isinstance(condition, dict):
            if "in" in condition and value not in condition["in"]:
                return False
            if "gte" in condition and (value is None or value < condition["gte"]):
                return False
            if "lte" in condition and (value is None or value > condition["lte"]):
                return False
        elif value != condition:
            return False
    return True


class MemoryCollection(Collection):

    def __init__(self, schema: EntitySchema, store: "MemoryStore"):
        super().__init__(schema)
        self._store = store
        self._rows: Dict[str, Row] = {}

    def _check_available(self):
        if not self._store.available:
            raise StorageUnavailable(f"{self.name}: memory store offline", entity=self.name)

    def _check_unique(self, candidate: Row, ignore_id: Optional[str] = None):
        if candidate["id"] in self._rows and candidate["id"] != ignore_id:
            raise DuplicateRecordError(entity=self.name, entity_id=candidate["id"])
        for key in self.schema.unique:
            for row in self._rows.values():
                if row["id"] == ignore_id:
                    continue
                if all(row.get(col) == candidate.get(col) for col in key):
                    raise DuplicateRecordError(
                        f"Duplicate {self.name} on {', '.join(key)}",
                        entity=self.name,
                        entity_id=row["id"],
                    )

    async def _insert(self, row: Row) -> Row:
        self._check_available()
        full = {col: None for col in self.schema.columns}
        full.update(row)
        self._check_unique(full)
        self._rows[full["id"]] = full
        return copy.deepcopy(full)

    async def _select(
        self,
        where: Row,
        order: Tuple[Tuple[str, bool], ...],
        limit: Optional[int],
        offset: int,
    ) -> List[Row]:
        self._check_available()
        rows = [row for row in self._rows.values() if _matches(row, where)]
        # Tris stables successifs, clé la moins prioritaire d'abord
        for column, descending in reversed(order):
            rows.sort(key=lambda r: _sort_key(r.get(column)), reverse=descending)
        rows = rows[offset:]
        if limit is not None:
            rows = rows[:limit]
        return [copy.deepcopy(row) for row in rows]

    async def _update(self, id: str, values: Row) -> Optional[Row]:
        self._check_available()
        row = self._rows.get(id)
        if row is None:
            return None
        candidate = {**row, **values}
        self._check_unique(candidate, ignore_id=id)
        row.update(values)
        return copy.deepcopy(row)

    async def _update_where(self, where: Row, values: Row) -> int:
        self._check_available()
        rows = [row for row in self._rows.values() if _matches(row, where)]
        for row in rows:
            self._check_unique({**row, **values}, ignore_id=row["id"])
        for row in rows:
            row.update(values)
        return len(rows)

    async def _increment(self, id: str, deltas: Row) -> Optional[Row]:
        self._check_available()
        row = self._rows.get(id)
        if row is None:
            return None
        for column, delta in deltas.items():
            row[column] = (row.get(column) or 0) + delta
        return copy.deepcopy(row)

    async def _delete(self, where: Row) -> int:
        self._check_available()
        ids = [id for id, row in self._rows.items() if _matches(row, where)]
        for id in ids:
            del self._rows[id]
        return len(ids)


def _sort_key(value: Any) -> Tuple[int, Any]:
    # None en dernier en ascendant
    return (0, value) if value is not None else (1, 0)


class MemoryStore(Store):

    def __init__(self):
        self.available = True
        super().__init__()

    def _collection(self, schema: EntitySchema) -> MemoryCollection:
        return MemoryCollection(schema, self)

    def set_available(self, available: bool) -> None:
        self.available = available
